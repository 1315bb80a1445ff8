"""Attendance status and calendar day enumerations."""

import enum


class AttendanceStatus(str, enum.Enum):
    """Attendance status enumeration."""

    PRESENT = "present"
    SICK = "sick"
    EXCUSED = "excused"
    UNEXCUSED = "unexcused"

    @property
    def code(self) -> str:
        """Single-letter code used in report cells (H/S/I/A)."""
        return _STATUS_CODES[self]

    @classmethod
    def from_string(cls, value: str) -> "AttendanceStatus":
        """Convert string to AttendanceStatus, handling common variations."""
        value = value.strip().upper()
        mapping = {
            "H": cls.PRESENT,
            "P": cls.PRESENT,
            "PRESENT": cls.PRESENT,
            "HADIR": cls.PRESENT,
            "S": cls.SICK,
            "SICK": cls.SICK,
            "SAKIT": cls.SICK,
            "I": cls.EXCUSED,
            "E": cls.EXCUSED,
            "EXCUSED": cls.EXCUSED,
            "EXCUSEDABSENCE": cls.EXCUSED,
            "IZIN": cls.EXCUSED,
            "A": cls.UNEXCUSED,
            "U": cls.UNEXCUSED,
            "UNEXCUSED": cls.UNEXCUSED,
            "UNEXCUSEDABSENCE": cls.UNEXCUSED,
            "ALPHA": cls.UNEXCUSED,
        }
        if value in mapping:
            return mapping[value]
        raise ValueError(f"Invalid attendance status: {value}")

    @classmethod
    def parse(cls, value: "AttendanceStatus | str") -> "AttendanceStatus | None":
        """Like from_string, but returns None for unrecognized values."""
        if isinstance(value, cls):
            return value
        try:
            return cls.from_string(str(value))
        except ValueError:
            return None


_STATUS_CODES = {
    AttendanceStatus.PRESENT: "H",
    AttendanceStatus.SICK: "S",
    AttendanceStatus.EXCUSED: "I",
    AttendanceStatus.UNEXCUSED: "A",
}

# Column order shared by every tally (recap counters, monthly buckets)
STATUS_ORDER = (
    AttendanceStatus.PRESENT,
    AttendanceStatus.SICK,
    AttendanceStatus.EXCUSED,
    AttendanceStatus.UNEXCUSED,
)


class DayKind(str, enum.Enum):
    """How the school calendar classifies a date."""

    INSTRUCTIONAL = "instructional"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"


class DuplicatePolicy(str, enum.Enum):
    """Which same-day record wins when a student has several on one date."""

    FIRST = "first"
    LAST = "last"
