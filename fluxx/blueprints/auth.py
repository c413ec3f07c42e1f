"""Auth blueprint: /auth/*

Handles registration, login, logout against the credential store.
"""

from flask import (
    Blueprint,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required, login_user, logout_user

from fluxx.extensions import db, limiter
from fluxx.models.user import User
from fluxx.services import credential_store

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


# ──────────────────────────────────────────────
# GET/POST /auth/register
# ──────────────────────────────────────────────

@auth_bp.route("/register", methods=["GET", "POST"])
@limiter.limit("10 per minute", methods=["POST"])
def register():
    """Create an agent account.

    GET: show register form
    POST: create user, log in
    """
    if current_user.is_authenticated:
        return redirect("/")

    form = {
        "email": request.form.get("email", "").lower().strip(),
        "firstname": request.form.get("firstname", "").strip(),
        "lastname": request.form.get("lastname", "").strip(),
        "role": request.form.get("role", "").strip(),
        "department": request.form.get("department", "").strip(),
        "reference_id": request.form.get("reference_id", "").strip(),
    }

    if request.method == "POST":
        password = request.form.get("password", "")

        if form["role"] and form["role"] not in User.ROLES:
            flash("Please choose a valid role.", "error")
            return _render_register(form)
        if form["department"] and form["department"] not in User.DEPARTMENTS:
            flash("Please choose a valid department.", "error")
            return _render_register(form)

        user, error = credential_store.register_user(
            email=form["email"],
            password=password,
            firstname=form["firstname"],
            lastname=form["lastname"],
            role=form["role"] or None,
            department=form["department"] or None,
            reference_id=form["reference_id"],
        )
        if error:
            flash(error, "error")
            return _render_register(form)

        db.session.commit()
        login_user(user)

        flash("Welcome! Your account has been created.", "success")
        return redirect(url_for("sales.information"))

    return _render_register(form)


def _render_register(form):
    return render_template(
        "auth/register.html",
        form=form,
        roles=User.ROLES,
        departments=User.DEPARTMENTS,
    )


# ──────────────────────────────────────────────
# GET/POST /auth/login?next=/sales/information
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["GET", "POST"])
@limiter.limit("15 per minute", methods=["POST"])
def login():
    """Email + password + department login.

    After login, redirects to the `next` query param.
    """
    if current_user.is_authenticated:
        return redirect(_safe_next(request.args.get("next")))

    if request.method == "POST":
        email = request.form.get("email", "").lower().strip()
        password = request.form.get("password", "")
        department = request.form.get("department", "").strip()
        remember = bool(request.form.get("remember"))

        if not email or not password:
            flash("Email and password are required.", "error")
            return _render_login(email, department)

        user, error = credential_store.validate_user(email, password, department or None)
        if error:
            flash(error, "error")
            return _render_login(email, department)

        login_user(user, remember=remember)

        # Redirect to `next` (from query param or hidden form field)
        next_url = request.form.get("next") or request.args.get("next")

        flash("Logged in successfully.", "success")
        return redirect(_safe_next(next_url))

    return _render_login("", "", next_url=request.args.get("next", ""))


def _safe_next(next_url):
    """Only allow relative redirects (prevent open redirect)."""
    if not next_url or not next_url.startswith("/") or next_url[1:2] in ("/", "\\"):
        return "/"
    return next_url


def _render_login(email, department, next_url=None):
    return render_template(
        "auth/login.html",
        email=email,
        department=department,
        departments=User.DEPARTMENTS,
        next_url=request.form.get("next", "") if next_url is None else next_url,
    )


# ──────────────────────────────────────────────
# GET /auth/logout
# ──────────────────────────────────────────────

@auth_bp.route("/logout")
@login_required
def logout():
    """Log out and redirect to login page."""
    logout_user()
    flash("You have been logged out.", "info")
    return redirect(url_for("auth.login"))
