"""Per-student attendance recap engine: school calendar, aggregation and report grids."""

from attendance_recap.models.attendance import AttendanceStatus, DayKind, DuplicatePolicy
from attendance_recap.models.report import CellTag, ReportKind
from attendance_recap.schemas.attendance import (
    AttendanceRecord,
    MonthSelector,
    PeriodSpec,
    SemesterSelector,
    Student,
    StudentRecap,
)
from attendance_recap.schemas.report import AttendanceReport, ReportGrid
from attendance_recap.services.aggregator import AttendanceAggregator
from attendance_recap.services.grid_builder import ReportGridBuilder
from attendance_recap.services.recap_block import RecapSummaryBlock
from attendance_recap.services.report import AttendanceReportService
from attendance_recap.services.school_calendar import SchoolCalendar

__version__ = "1.0.0"

__all__ = [
    "AttendanceAggregator",
    "AttendanceRecord",
    "AttendanceReport",
    "AttendanceReportService",
    "AttendanceStatus",
    "CellTag",
    "DayKind",
    "DuplicatePolicy",
    "MonthSelector",
    "PeriodSpec",
    "RecapSummaryBlock",
    "ReportGrid",
    "ReportGridBuilder",
    "ReportKind",
    "SchoolCalendar",
    "SemesterSelector",
    "Student",
    "StudentRecap",
]
