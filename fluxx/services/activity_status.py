"""Activity statuses and the form mode each one selects.

Every status belongs to exactly one StatusGroup, and every group maps to one
ActivityMode describing what the activity form does in that state:

    FIELD_VISIT  camera + one-shot location, remarks derived from the address
    MEETING      video meeting links
    SCHEDULING   calendar entry built from status/remarks/start/end
    DEFAULT      plain remarks entry (breaks, coaching)
"""

from collections import namedtuple
from enum import Enum


class StatusGroup(Enum):
    FIELD_VISIT = "field_visit"
    MEETING = "meeting"
    SCHEDULING = "scheduling"
    DEFAULT = "default"


class ActivityStatus(Enum):
    # Scheduling
    ASSISTING_OTHER_AGENTS_CLIENT = ("Assisting other Agents Client", StatusGroup.SCHEDULING)
    COORDINATION_SO_TO_WAREHOUSE = ("Coordination of SO to Warehouse", StatusGroup.SCHEDULING)
    COORDINATION_SO_TO_ORDERS = ("Coordination of SO to Orders", StatusGroup.SCHEDULING)
    UPDATING_REPORTS = ("Updating Reports", StatusGroup.SCHEDULING)
    EMAIL_AND_VIBER_CHECKING = ("Email and Viber Checking", StatusGroup.SCHEDULING)
    # Breaks, meetings, coaching
    FIRST_BREAK = ("1st Break", StatusGroup.DEFAULT)
    CLIENT_MEETING = ("Client Meeting", StatusGroup.MEETING)
    COFFEE_BREAK = ("Coffee Break", StatusGroup.DEFAULT)
    GROUP_MEETING = ("Group Meeting", StatusGroup.MEETING)
    LAST_BREAK = ("Last Break", StatusGroup.DEFAULT)
    LUNCH_BREAK = ("Lunch Break", StatusGroup.DEFAULT)
    TSM_COACHING = ("TSM Coaching", StatusGroup.DEFAULT)
    # Field work
    CLIENT_VISIT = ("Client Visit", StatusGroup.FIELD_VISIT)
    SITE_VISIT = ("Site Visit", StatusGroup.FIELD_VISIT)
    ON_FIELD = ("On Field", StatusGroup.FIELD_VISIT)

    def __init__(self, label, group):
        self.label = label
        self.group = group

    @property
    def mode(self):
        return MODES[self.group]

    @classmethod
    def from_label(cls, label):
        """Look up a status by its display label. Raises ValueError."""
        for status in cls:
            if status.label == label:
                return status
        raise ValueError(f"Unknown activity status '{label}'.")

    @classmethod
    def labels(cls):
        return [status.label for status in cls]


ActivityMode = namedtuple(
    "ActivityMode",
    [
        "group",
        "acquires_devices",   # camera + location on entry, released on exit
        "remarks_editable",   # False: remarks are derived, not typed
        "shows_meeting_links",
        "shows_calendar",
    ],
)

MODES = {
    StatusGroup.FIELD_VISIT: ActivityMode(
        StatusGroup.FIELD_VISIT,
        acquires_devices=True,
        remarks_editable=False,
        shows_meeting_links=False,
        shows_calendar=False,
    ),
    StatusGroup.MEETING: ActivityMode(
        StatusGroup.MEETING,
        acquires_devices=False,
        remarks_editable=True,
        shows_meeting_links=True,
        shows_calendar=False,
    ),
    StatusGroup.SCHEDULING: ActivityMode(
        StatusGroup.SCHEDULING,
        acquires_devices=False,
        remarks_editable=True,
        shows_meeting_links=False,
        shows_calendar=True,
    ),
    StatusGroup.DEFAULT: ActivityMode(
        StatusGroup.DEFAULT,
        acquires_devices=False,
        remarks_editable=True,
        shows_meeting_links=False,
        shows_calendar=False,
    ),
}

# Mode of a form with no status selected yet.
NO_STATUS_MODE = MODES[StatusGroup.DEFAULT]

# Duration choices offered by the form, in minutes.
DURATIONS = [5, 10, 15, 20, 30, 45, 60, 90, 120, 180, 240, 480]

MEETING_LINKS = {
    "Google Meet": "https://meet.google.com/new",
    "Microsoft Teams": "https://teams.microsoft.com/l/meeting/new",
    "Zoom": "https://zoom.us/start/videomeeting",
}
