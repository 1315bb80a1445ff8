"""Domain enumerations."""

from attendance_recap.models.attendance import STATUS_ORDER, AttendanceStatus, DayKind, DuplicatePolicy
from attendance_recap.models.report import CellTag, ReportKind

__all__ = [
    # Attendance
    "AttendanceStatus",
    "STATUS_ORDER",
    "DayKind",
    "DuplicatePolicy",
    # Report
    "CellTag",
    "ReportKind",
]
