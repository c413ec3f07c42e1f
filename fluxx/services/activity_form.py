"""Activity form: the status-driven draft behind "log an activity".

ActivityDraft holds one activity while it is being filled in. Changing the
status always tears down whatever the previous mode acquired (camera,
captured photo, location, remarks) before the new mode is applied:

    field visit  -> start camera, locate once, reverse-geocode into remarks
    meeting      -> meeting links
    scheduling   -> calendar entry
    default      -> nothing; remarks are typed

Devices are injected so the same draft runs against a photo posted by the
browser (web page), a file on disk (CLI) or a fake (tests). Use the draft
as a context manager so the camera is released even when the caller bails
out:

    with ActivityDraft(reference_id, camera=cam, locator=loc) as draft:
        draft.set_status("Client Visit")
        draft.set_duration(30)
        draft.capture_image()
        draft.submit(upload=upload_photo, post=http_poster(url))

submit() only closes the draft on success; after SubmissionFailed the
draft stays open with everything intact so the user can try again.
"""

import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timedelta

import pytz
import requests

from fluxx.services import geocoding_service
from fluxx.services.activity_status import (
    MEETING_LINKS,
    NO_STATUS_MODE,
    ActivityStatus,
)
from fluxx.services.storage_service import StorageError, content_type_for

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Manila"

LOCATION_ERROR_REMARKS = "Unable to fetch location."
SUBMIT_ERROR_MESSAGE = "An error occurred while submitting. Please try again."


class ActivityFormError(Exception):
    """Base class for activity form errors."""


class FormInvalid(ActivityFormError):
    """Submit attempted while status, duration or remarks is missing."""


class SubmissionFailed(ActivityFormError):
    """Photo upload or the persistence endpoint failed. The draft stays open."""


class LocationUnavailable(ActivityFormError):
    """The locator could not produce a position fix."""


class CameraUnavailable(ActivityFormError):
    """The camera could not be started or has nothing to capture."""


# ──────────────────────────────────────────────
# Devices
# ──────────────────────────────────────────────

class Camera(ABC):
    """A camera the draft starts on entering field-visit mode and stops on exit.

    Subclasses implement capture(); start() and stop() default to no-ops.
    """

    content_type = "image/jpeg"

    def start(self):
        pass

    @abstractmethod
    def capture(self):
        """Return one frame as encoded image bytes."""

    def stop(self):
        pass


class PhotoCamera(Camera):
    """Camera fed with a photo the browser already took (file input)."""

    def __init__(self, data, content_type="image/jpeg"):
        self.data = data
        self.content_type = content_type or "image/jpeg"

    def start(self):
        if not self.data:
            raise CameraUnavailable("No photo was taken.")

    def capture(self):
        return self.data


class FileCamera(Camera):
    """Camera backed by an image file, for headless clients."""

    def __init__(self, path):
        self.path = path
        self.content_type = content_type_for(path) or "image/jpeg"
        self.active = False

    def start(self):
        if not os.path.isfile(self.path):
            raise CameraUnavailable(f"No photo at {self.path}.")
        self.active = True

    def capture(self):
        if not self.active:
            raise CameraUnavailable("Camera is not running.")
        with open(self.path, "rb") as f:
            return f.read()

    def stop(self):
        self.active = False


class Locator(ABC):
    @abstractmethod
    def locate(self):
        """Return (lat, lng) or raise LocationUnavailable."""


class NoLocator(Locator):
    """Used when the client has no location source at all."""

    def locate(self):
        raise LocationUnavailable("No location source configured.")


class FixedLocator(Locator):
    """Reports a fixed position, e.g. coordinates passed on the command line."""

    def __init__(self, lat, lng):
        self.lat = lat
        self.lng = lng

    def locate(self):
        if self.lat is None or self.lng is None:
            raise LocationUnavailable("Coordinates not provided.")
        return self.lat, self.lng


def http_poster(api_url, timeout=30):
    """Build a post callable that sends the payload to the activities endpoint.

    The callable returns (ok, error_message).
    """

    def post(payload):
        try:
            resp = requests.post(api_url, json=payload, timeout=timeout)
        except requests.RequestException as e:
            return False, str(e)
        if not resp.ok:
            return False, resp.text
        return True, None

    return post


# ──────────────────────────────────────────────
# Draft
# ──────────────────────────────────────────────

class ActivityDraft:
    def __init__(self, reference_id, manager=None, tsm=None, camera=None,
                 locator=None, geocoder=None, timezone=DEFAULT_TIMEZONE,
                 clock=None):
        self.reference_id = reference_id
        self.manager = manager
        self.tsm = tsm
        self.camera = camera
        self.locator = locator or NoLocator()
        # geocoder(lat, lng) -> address or None
        self.geocoder = geocoder or geocoding_service.reverse_geocode
        self.tz = pytz.timezone(timezone)
        self._clock = clock or (lambda: datetime.now(self.tz))

        self.status = None
        self.remarks = ""
        self.duration = None
        self.start_date = self._clock()
        self.end_date = self.start_date

        self.location = None
        self.location_address = ""
        self.image = None
        self.image_content_type = None
        self.camera_active = False
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # --- Mode ---

    @property
    def mode(self):
        return self.status.mode if self.status else NO_STATUS_MODE

    def set_status(self, status):
        """Switch status: tear down the current mode, then apply the new one.

        Accepts an ActivityStatus, its label, or "" / None to clear.
        """
        self._ensure_open()
        if isinstance(status, str):
            status = ActivityStatus.from_label(status) if status else None

        self._teardown_mode()
        self.status = status
        if self.mode.acquires_devices:
            self._enter_field_visit()

    def _teardown_mode(self):
        self._stop_camera()
        self.image = None
        self.image_content_type = None
        self.location = None
        self.location_address = ""
        self.remarks = ""

    def _enter_field_visit(self):
        if self.camera is not None:
            try:
                self.camera.start()
                self.camera_active = True
            except CameraUnavailable as e:
                logger.warning(f"Failed to access camera: {e}")

        try:
            lat, lng = self.locator.locate()
        except LocationUnavailable as e:
            logger.warning(f"Location error: {e}")
            self.remarks = LOCATION_ERROR_REMARKS
            return

        self._apply_location(lat, lng)

    def _apply_location(self, lat, lng):
        self.location = (lat, lng)
        address = self.geocoder(lat, lng)
        if address:
            self.location_address = address
            self.remarks = address
        else:
            self.remarks = geocoding_service.format_coordinates(lat, lng)

    def _stop_camera(self):
        if self.camera_active:
            self.camera.stop()
            self.camera_active = False

    # --- Fields ---

    def set_remarks(self, text):
        self._ensure_open()
        if not self.mode.remarks_editable:
            raise ValueError("Remarks are filled in from your location for field visits.")
        self.remarks = text or ""

    def move_location(self, lat, lng):
        """Re-pin the location (map correction) and re-derive remarks."""
        self._ensure_open()
        if not self.mode.acquires_devices:
            raise ValueError("Location is only recorded for field visits.")
        self.location_address = ""
        self._apply_location(lat, lng)

    def set_duration(self, minutes):
        """Set the duration and re-derive start/end.

        Start is reset to "now" on every call, not kept from when the draft
        was opened.
        """
        self._ensure_open()
        if minutes is not None:
            minutes = int(minutes)
            if minutes <= 0:
                raise ValueError("Duration must be a positive number of minutes.")
        self.duration = minutes

        now = self._clock()
        self.start_date = now
        if minutes is None:
            self.end_date = now
        else:
            self.end_date = (now + timedelta(minutes=minutes)).astimezone(self.tz)

    def capture_image(self):
        """Grab one frame from the running camera and keep it for upload."""
        self._ensure_open()
        if not self.camera_active:
            raise CameraUnavailable("Camera is not running.")
        self.image = self.camera.capture()
        self.image_content_type = self.camera.content_type
        return self.image

    # --- Affordances ---

    @property
    def is_valid(self):
        return (
            self.status is not None
            and self.duration is not None
            and self.remarks.strip() != ""
        )

    def meeting_links(self):
        return dict(MEETING_LINKS) if self.mode.shows_meeting_links else {}

    def calendar_entry(self):
        if not self.mode.shows_calendar:
            return None
        return {
            "title": self.status.label,
            "details": self.remarks,
            "start": self.start_date.isoformat(),
            "end": self.end_date.isoformat(),
        }

    # --- Submission ---

    def compose(self):
        """The record shown on the confirmation step and sent on submit."""
        return {
            "referenceid": self.reference_id,
            "manager": self.manager,
            "tsm": self.tsm,
            "activitystatus": self.status.label if self.status else "",
            "activityremarks": self.remarks,
            "startdate": self.start_date.isoformat(),
            "enddate": self.end_date.isoformat(),
        }

    def submit(self, upload, post):
        """Upload the photo (if any), then post the payload.

        Args:
            upload: upload(data, reference_id, content_type) -> public URL
            post: post(payload) -> (ok, error_message)

        Returns:
            The payload that was accepted.

        Raises:
            FormInvalid: The form is incomplete; nothing was sent.
            SubmissionFailed: Upload or post failed; the draft stays open.
        """
        self._ensure_open()
        if not self.is_valid:
            raise FormInvalid("Status, duration and remarks are required.")

        payload = self.compose()

        if self.image:
            try:
                payload["selfieUrl"] = upload(
                    self.image, self.reference_id, self.image_content_type
                )
            except (ValueError, OSError, StorageError, requests.RequestException) as e:
                logger.error(f"Photo upload failed for {self.reference_id}: {e}")
                raise SubmissionFailed(str(e)) from e

        ok, error = post(payload)
        if not ok:
            logger.error(f"Error submitting activity for {self.reference_id}: {error}")
            raise SubmissionFailed(error or SUBMIT_ERROR_MESSAGE)

        self.close()
        return payload

    def close(self):
        """Release the camera. Safe to call more than once."""
        self._stop_camera()
        self.closed = True

    def _ensure_open(self):
        if self.closed:
            raise ActivityFormError("This activity form has been closed.")
