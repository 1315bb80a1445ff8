"""Attendance report orchestration: selector to period to recaps to grid."""

import calendar
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from attendance_recap.core.config import Settings, get_settings
from attendance_recap.core.exceptions import InvalidPeriodError
from attendance_recap.models.attendance import DuplicatePolicy
from attendance_recap.models.report import ReportKind
from attendance_recap.schemas.attendance import (
    AttendanceRecord,
    MonthSelector,
    PeriodSelector,
    PeriodSpec,
    SemesterSelector,
    Student,
)
from attendance_recap.schemas.report import AttendanceReport, ReportMeta
from attendance_recap.services.aggregator import AttendanceAggregator
from attendance_recap.services.grid_builder import ReportGridBuilder
from attendance_recap.services.school_calendar import SchoolCalendar

logger = logging.getLogger(__name__)

_selector_adapter = TypeAdapter(PeriodSelector)


def parse_period_selector(data: MonthSelector | SemesterSelector | Mapping[str, Any]):
    """Validate a period selector given as a model or a plain mapping."""
    if isinstance(data, (MonthSelector, SemesterSelector)):
        return data
    try:
        return _selector_adapter.validate_python(data)
    except PydanticValidationError as e:
        raise InvalidPeriodError(
            "Invalid period selector",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def period_label(selector: MonthSelector | SemesterSelector) -> str:
    """Human-readable period, e.g. 'January 2026' or 'Semester 2 2025/2026'."""
    if isinstance(selector, MonthSelector):
        return f"{calendar.month_name[selector.month_index + 1]} {selector.year}"
    return f"Semester {selector.semester_index} {selector.year}/{selector.year + 1}"


def build_report_filename(report_kind: ReportKind | str, cohort: str | None, label: str) -> str:
    """Spreadsheet filename: <reportKind>_<cohort>_<period>.xlsx."""
    kind = report_kind.value if isinstance(report_kind, ReportKind) else str(report_kind)
    parts = [kind, cohort or "all", label]
    cleaned = [re.sub(r"[\s/\\]+", "_", str(p).strip()) for p in parts]
    return "_".join(cleaned) + ".xlsx"


class AttendanceReportService:
    """Generates attendance reports for one academic-year calendar."""

    def __init__(
        self,
        school_calendar: SchoolCalendar,
        aggregator: AttendanceAggregator | None = None,
        grid_builder: ReportGridBuilder | None = None,
        title: str = "Attendance Recap",
    ):
        self.calendar = school_calendar
        self.aggregator = aggregator or AttendanceAggregator()
        self.grid_builder = grid_builder or ReportGridBuilder()
        self.title = title

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AttendanceReportService":
        """Wire calendar, aggregator and builder from application settings."""
        settings = settings or get_settings()
        return cls(
            school_calendar=SchoolCalendar.from_settings(settings),
            aggregator=AttendanceAggregator(DuplicatePolicy(settings.DUPLICATE_POLICY)),
            grid_builder=ReportGridBuilder(
                merge_width=settings.RECAP_MERGE_WIDTH,
                separator_rows=settings.RECAP_SEPARATOR_ROWS,
            ),
            title=settings.REPORT_TITLE,
        )

    def resolve_period(
        self, selector: MonthSelector | SemesterSelector | Mapping[str, Any]
    ) -> PeriodSpec:
        """Date range for a month or semester selector."""
        selector = parse_period_selector(selector)
        if isinstance(selector, SemesterSelector):
            return self.calendar.semester_range(selector.semester_index, selector.year)

        period = self.calendar.month_range(selector.month_index, selector.year)
        if selector.clip_to_semester:
            period = self._clip_to_semester(period)
        return period

    def _clip_to_semester(self, period: PeriodSpec) -> PeriodSpec:
        for day in (period.start, period.end):
            semester = self.calendar.semester_containing(day)
            if semester is not None:
                return period.intersect(semester)
        # Month lies entirely in a break; nothing to clip against
        logger.debug(f"[REPORT] {period.start:%Y-%m} is outside every semester, not clipped")
        return period

    def generate(
        self,
        roster: Sequence[Student],
        records: Sequence[AttendanceRecord],
        selector: MonthSelector | SemesterSelector | Mapping[str, Any],
        cohort: str | None = None,
    ) -> AttendanceReport:
        """Build the report for a month (Daily Matrix) or semester (Monthly Summary)."""
        selector = parse_period_selector(selector)
        period = self.resolve_period(selector)
        label = period_label(selector)

        result = self.aggregator.aggregate_with_issues(roster, records, period, self.calendar)

        subtitle = f"{label} - {cohort}" if cohort else label
        if isinstance(selector, MonthSelector):
            kind = ReportKind.DAILY_MATRIX
            grid = self.grid_builder.build_daily_matrix(
                result.recaps, period, self.calendar, title=self.title, subtitle=subtitle
            )
        else:
            kind = ReportKind.MONTHLY_SUMMARY
            grid = self.grid_builder.build_monthly_summary(
                result.recaps, period, title=self.title, subtitle=subtitle
            )

        meta = ReportMeta(
            kind=kind,
            start=period.start,
            end=period.end,
            label=label,
            instructional_day_count=result.instructional_day_count,
            holidays_in_period=self.calendar.holidays_in_range(period.start, period.end),
            cohort=cohort,
        )
        if result.issues.total:
            logger.info(f"[REPORT] {label}: {result.issues.total} records not counted")

        return AttendanceReport(
            meta=meta,
            recaps=result.recaps,
            grid=grid,
            issues=result.issues,
            filename=build_report_filename(kind, cohort, label),
        )
