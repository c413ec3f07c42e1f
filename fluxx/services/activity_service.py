"""Activity service: validate and persist submitted activity payloads.

Payload keys follow the activity form: referenceid, manager, tsm,
activitystatus, activityremarks, startdate, enddate and optional selfieUrl.
Remarks are sanitized with bleach.clean() to strip HTML tags.

Functions flush but do NOT commit; the caller commits.
"""

from datetime import datetime

import bleach

from fluxx.extensions import db
from fluxx.models.activity import Activity
from fluxx.services.activity_status import ActivityStatus, StatusGroup

REQUIRED_FIELDS = ["referenceid", "activitystatus", "activityremarks", "startdate", "enddate"]


def _sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()


def _parse_timestamp(value, name):
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Invalid {name} '{value}'.")


def create_activity(payload):
    """Create an Activity from a submitted payload.

    Returns:
        The created Activity object.

    Raises:
        ValueError: If a field is missing or invalid.
    """
    if not isinstance(payload, dict):
        raise ValueError("Invalid request.")

    missing = [name for name in REQUIRED_FIELDS if not str(payload.get(name) or "").strip()]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}.")

    status = ActivityStatus.from_label(payload["activitystatus"])
    remarks = _sanitize(payload["activityremarks"])
    if not remarks:
        if status.group is StatusGroup.FIELD_VISIT:
            raise ValueError("Field visits must include a location in the remarks.")
        raise ValueError("Remarks are required.")

    start_date = _parse_timestamp(payload["startdate"], "startdate")
    end_date = _parse_timestamp(payload["enddate"], "enddate")
    if (start_date.tzinfo is None) != (end_date.tzinfo is None):
        raise ValueError("startdate and enddate must both carry a time zone, or neither.")
    if end_date < start_date:
        raise ValueError("enddate must not be earlier than startdate.")

    selfie_url = payload.get("selfieUrl")
    if selfie_url is not None and not isinstance(selfie_url, str):
        raise ValueError("Invalid selfieUrl.")
    selfie_url = (selfie_url or "").strip() or None

    activity = Activity(
        reference_id=str(payload["referenceid"]).strip(),
        manager=payload.get("manager"),
        tsm=payload.get("tsm"),
        activity_status=status.label,
        activity_remarks=remarks,
        start_date=start_date,
        end_date=end_date,
        selfie_url=selfie_url,
    )
    db.session.add(activity)
    db.session.flush()

    return activity
