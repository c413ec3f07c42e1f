import os
import logging

import click
from flask import Flask, redirect, render_template, url_for
from flask_login import current_user

from fluxx.config import config_by_name
from fluxx.extensions import db, migrate, login_manager, csrf, limiter


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars: both stores must be configured ---
    config_by_name[config_name].validate()

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from fluxx import models  # noqa: F401

    # --- Register blueprints ---
    from fluxx.blueprints.auth import auth_bp
    from fluxx.blueprints.sales import sales_bp
    from fluxx.blueprints.api import api_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(api_bp)

    # Exempt the JSON API from CSRF; it is called by the activity client, not forms
    csrf.exempt(api_bp)

    # --- Root route ---
    @app.route("/")
    def index():
        """Root URL: profile for logged-in agents, login otherwise."""
        if current_user.is_authenticated:
            return redirect(url_for("sales.information"))
        return redirect(url_for("auth.login"))

    # --- Local file serving (dev only) ---
    if app.debug:
        @app.route("/uploads/<path:filepath>")
        def serve_upload(filepath):
            """Serve uploaded photos from instance/uploads in dev mode."""
            from flask import send_from_directory
            upload_dir = os.path.join(app.instance_path, "uploads")
            return send_from_directory(upload_dir, filepath)

    # --- Error handlers ---
    @app.errorhandler(403)
    def forbidden(e):
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def not_found(e):
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def server_error(e):
        return render_template("errors/500.html"), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Control referrer information
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Camera and location are used by the activity form on our own origin only
        response.headers["Permissions-Policy"] = (
            "camera=(self), microphone=(), geolocation=(self), payment=()"
        )
        # Content Security Policy
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https://*.supabase.co; "
            "connect-src 'self' https://nominatim.openstreetmap.org; "
            "base-uri 'self'; "
            "form-action 'self'; "
            "frame-ancestors 'none';"
        )
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Custom Jinja filters ---
    from fluxx.services.report_service import format_currency, format_date

    app.add_template_filter(format_currency, "currency")
    app.add_template_filter(format_date, "report_date")

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("init-db")
    def init_db():
        """Create tables in both the relational and the credential store."""
        db.create_all()
        click.echo("Tables created.")

    @app.cli.command("seed-user")
    @click.option("--email", required=True, help="Login email")
    @click.option("--password", required=True, help="Login password")
    @click.option("--firstname", required=True)
    @click.option("--lastname", required=True)
    @click.option("--reference-id", required=True, help="Agent reference ID")
    @click.option("--role", default="Territory Sales Associate")
    @click.option("--department", default="Sales")
    @click.option("--manager", default=None, help="Manager reference ID")
    @click.option("--tsm", default=None, help="TSM reference ID")
    def seed_user(email, password, firstname, lastname, reference_id, role,
                  department, manager, tsm):
        """Create an agent in the credential store.

        Usage:
            flask seed-user --email agent@example.com --password s3cretpass \\
                --firstname Ana --lastname Cruz --reference-id AC-001
        """
        from fluxx.services import credential_store

        user, error = credential_store.register_user(
            email=email,
            password=password,
            firstname=firstname,
            lastname=lastname,
            role=role,
            department=department,
            reference_id=reference_id,
            manager=manager,
            tsm=tsm,
        )
        if error:
            raise click.ClickException(error)
        db.session.commit()
        click.echo(f"Created user: {user.email} ({user.reference_id})")

    @app.cli.command("log-activity")
    @click.option("--email", required=True, help="Agent logging the activity")
    @click.option("--status", "status_label", default=None, help="Activity status")
    @click.option("--duration", type=int, default=None, help="Duration in minutes")
    @click.option("--remarks", default=None, help="Remarks (not used for field visits)")
    @click.option("--lat", type=float, default=None, help="Latitude for field visits")
    @click.option("--lng", type=float, default=None, help="Longitude for field visits")
    @click.option("--photo", type=click.Path(dir_okay=False), default=None,
                  help="Photo to attach on field visits")
    @click.option("--api-url", default=None,
                  help="Activities endpoint (default: APP_BASE_URL/api/activities)")
    @click.option("--yes", is_flag=True, help="Submit without asking for confirmation.")
    def log_activity(email, status_label, duration, remarks, lat, lng, photo,
                     api_url, yes):
        """Fill in and submit an activity, the same way the activity form does.

        Field visits take their remarks from --lat/--lng (reverse geocoded)
        and attach --photo if given. The composed record is shown before it
        is sent; on failure you can retry.

        Usage:
            flask log-activity --email agent@example.com
            flask log-activity --email agent@example.com --status "Client Visit" \\
                --duration 60 --lat 14.5995 --lng 120.9842 --photo selfie.jpg
        """
        from fluxx.models.user import User
        from fluxx.services import storage_service
        from fluxx.services.activity_form import (
            SUBMIT_ERROR_MESSAGE,
            ActivityDraft,
            FileCamera,
            FixedLocator,
            SubmissionFailed,
            http_poster,
        )
        from fluxx.services.activity_status import DURATIONS, ActivityStatus

        user = User.query.filter_by(email=email.lower().strip()).first()
        if user is None:
            raise click.ClickException(f"No user with email {email}.")

        if status_label is None:
            status_label = click.prompt(
                "Activity", type=click.Choice(ActivityStatus.labels())
            )
        try:
            status = ActivityStatus.from_label(status_label)
        except ValueError as e:
            raise click.ClickException(str(e))

        api_url = api_url or f"{app.config['APP_BASE_URL'].rstrip('/')}/api/activities"

        with ActivityDraft(
            user.reference_id,
            manager=user.manager,
            tsm=user.tsm,
            camera=FileCamera(photo) if photo else None,
            locator=FixedLocator(lat, lng),
            timezone=app.config["BUSINESS_TIMEZONE"],
        ) as draft:
            draft.set_status(status)

            if draft.mode.acquires_devices:
                click.echo(f"Location: {draft.remarks}")
                if draft.camera_active:
                    draft.capture_image()
                    click.echo("Image captured and ready to upload")
            else:
                if remarks is None:
                    remarks = click.prompt("Remarks")
                draft.set_remarks(remarks)

            if duration is None:
                duration = click.prompt(
                    "Duration (minutes)",
                    type=click.Choice([str(d) for d in DURATIONS]),
                )
            draft.set_duration(int(duration))

            for name, link in draft.meeting_links().items():
                click.echo(f"{name}: {link}")
            entry = draft.calendar_entry()
            if entry:
                click.echo(f"Calendar: {entry['title']} {entry['start']} - {entry['end']}")

            if not draft.is_valid:
                raise click.ClickException("Status, duration and remarks are required.")

            click.echo("")
            for key, value in draft.compose().items():
                click.echo(f"  {key}: {value}")
            click.echo("")

            post = http_poster(api_url)
            while True:
                if not yes and not click.confirm("Submit this activity?", default=True):
                    click.echo("Cancelled.")
                    return
                try:
                    draft.submit(upload=storage_service.upload_photo, post=post)
                except SubmissionFailed as e:
                    click.echo(SUBMIT_ERROR_MESSAGE, err=True)
                    click.echo(f"  {e}", err=True)
                    if yes or not click.confirm("Try again?", default=True):
                        raise click.ClickException("Activity was not submitted.")
                    continue
                click.echo("Activity submitted.")
                return
