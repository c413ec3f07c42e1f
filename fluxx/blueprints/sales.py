"""Sales blueprint: /sales/*

Pages for the logged-in agent.

Route Map:
  GET      /sales/information          profile of the logged-in agent
  GET      /sales/reports/pending-so   pending sales orders report
  GET      /sales/activities           the agent's recent activity log
  GET/POST /sales/activities/new       log an activity (edit, review, confirm)
"""

import logging
import math

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from fluxx.extensions import db
from fluxx.models.activity import Activity
from fluxx.services import (
    account_service,
    activity_service,
    report_service,
    storage_service,
)
from fluxx.services.activity_form import (
    SUBMIT_ERROR_MESSAGE,
    ActivityDraft,
    FixedLocator,
    FormInvalid,
    PhotoCamera,
    SubmissionFailed,
)
from fluxx.services.activity_status import DURATIONS, ActivityStatus

sales_bp = Blueprint("sales", __name__, url_prefix="/sales")

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 50


@sales_bp.route("/information")
@login_required
def information():
    return render_template("sales/information.html", user=current_user)


@sales_bp.route("/reports/pending-so")
@login_required
def pending_so():
    """Pending SO table.

    Query params: start_date, end_date, per_page, page. The filter form
    does not carry `page`, so changing a date or the page size lands on
    page 1.
    """
    orders = account_service.fetch_pending_sales_orders(current_user.reference_id)
    report = report_service.build_report(
        [o.to_dict() for o in orders],
        start_date=request.args.get("start_date", ""),
        end_date=request.args.get("end_date", ""),
        page=request.args.get("page", 1),
        per_page=request.args.get("per_page", report_service.DEFAULT_PAGE_SIZE),
    )
    return render_template("sales/pending_so.html", report=report)


@sales_bp.route("/activities")
@login_required
def activities():
    recent = (
        Activity.query
        .filter_by(reference_id=current_user.reference_id)
        .order_by(Activity.start_date.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    return render_template("sales/activities.html", activities=recent)


# ──────────────────────────────────────────────
# GET/POST /sales/activities/new
# ──────────────────────────────────────────────

def _coordinate(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _duration(value):
    value = (value or "").strip()
    if value.isdigit() and int(value) in DURATIONS:
        return int(value)
    return None


def _build_draft(form, camera=None):
    """Replay the posted form onto a fresh draft.

    The browser supplies the position (lat/lng) and, on the confirm step,
    the photo. A changed status drops the typed remarks and any map pin,
    the same as switching status on an open form.
    """
    status_changed = form.get("activitystatus", "") != form.get("previous_status", "")

    draft = ActivityDraft(
        current_user.reference_id,
        manager=current_user.manager,
        tsm=current_user.tsm,
        camera=camera,
        locator=FixedLocator(_coordinate(form.get("lat")), _coordinate(form.get("lng"))),
        timezone=current_app.config["BUSINESS_TIMEZONE"],
    )
    try:
        draft.set_status(form.get("activitystatus", ""))

        pin_lat, pin_lng = _coordinate(form.get("pin_lat")), _coordinate(form.get("pin_lng"))
        if (draft.mode.acquires_devices and not status_changed
                and pin_lat is not None and pin_lng is not None):
            draft.move_location(pin_lat, pin_lng)

        if draft.mode.remarks_editable and not status_changed:
            draft.set_remarks(form.get("activityremarks", "").strip())

        draft.set_duration(_duration(form.get("duration")))
    except ValueError:
        draft.close()
        raise
    return draft, status_changed


def _save_activity(payload):
    """Persist through the activity service. Returns (ok, error)."""
    try:
        activity_service.create_activity(payload)
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return False, str(e)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Error saving activity for {payload.get('referenceid')}")
        return False, "Failed to save activity."
    return True, None


def _photo_camera():
    photo = request.files.get("photo")
    if photo is None or not photo.filename:
        return None
    content_type = storage_service.content_type_for(photo.filename) or photo.mimetype
    return PhotoCamera(photo.read(), content_type)


@sales_bp.route("/activities/new", methods=["GET", "POST"])
@login_required
def new_activity():
    """Log an activity.

    Every change posts the whole form back (step=edit) and the page is
    re-rendered for the selected mode. Submit stays disabled until status,
    duration and remarks are all present. step=review shows the composed
    record; step=confirm uploads the photo (field visits) and saves.
    """
    form = request.form if request.method == "POST" else request.args
    step = request.form.get("step", "edit")
    camera = _photo_camera() if step == "confirm" else None

    try:
        draft, status_changed = _build_draft(form, camera)
    except ValueError as e:
        flash(str(e), "error")
        draft, status_changed = _build_draft({}), True
        step = "edit"

    with draft:
        if step == "review" and not draft.is_valid:
            flash("Status, duration and remarks are required.", "error")
            step = "edit"

        if step == "confirm":
            if draft.camera_active:
                draft.capture_image()
            try:
                draft.submit(upload=storage_service.upload_photo, post=_save_activity)
            except FormInvalid as e:
                flash(str(e), "error")
                step = "edit"
            except SubmissionFailed as e:
                logger.warning(f"Activity not submitted for {current_user.reference_id}: {e}")
                flash(SUBMIT_ERROR_MESSAGE, "error")
                step = "review"
            else:
                flash("Activity submitted.", "success")
                return redirect(url_for("sales.activities"))

        context = {
            "draft": draft,
            "form": form,
            "status_changed": status_changed,
            "statuses": ActivityStatus.labels(),
            "durations": DURATIONS,
        }
        if step == "review":
            return render_template("sales/confirm_activity.html", **context)
        return render_template("sales/new_activity.html", **context)
