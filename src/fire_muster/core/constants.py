"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import AttendanceStatus

SESSION_PAGE_SIZE = 50
SSE_KEEPALIVE_SECONDS = 15

DEPARTMENTS = (
    "Brands",
    "Business",
    "Credit",
    "Customer Care",
    "ESG",
    "Finance",
    "Management",
    "Marketing",
    "PSG",
    "Retail",
    "Technical",
)

STATUS_ICONS = {
    AttendanceStatus.UNACCOUNTED: "?",
    AttendanceStatus.PRESENT: "✓",
    AttendanceStatus.MISSING: "✗",
    AttendanceStatus.EXCUSED: "∅",
}

STATUS_LABELS = {
    AttendanceStatus.UNACCOUNTED: "Unaccounted",
    AttendanceStatus.PRESENT: "Present",
    AttendanceStatus.MISSING: "Missing",
    AttendanceStatus.EXCUSED: "Off-site",
}

# Lower sorts first in the drill roster: people still to find come on top.
STATUS_SORT_PRIORITY = {
    AttendanceStatus.UNACCOUNTED: 0,
    AttendanceStatus.MISSING: 1,
    AttendanceStatus.PRESENT: 2,
    AttendanceStatus.EXCUSED: 2,
}
