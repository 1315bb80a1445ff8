"""School calendar: instructional days and period ranges."""

import calendar
import logging
from collections.abc import Callable, Iterable
from datetime import date, timedelta
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from attendance_recap.core.config import Settings
from attendance_recap.core.exceptions import CalendarConfigError, InvalidPeriodError
from attendance_recap.models.attendance import DayKind
from attendance_recap.schemas.attendance import (
    AcademicCalendarConfig,
    MonthDay,
    PeriodSpec,
    SemesterAnchors,
)

logger = logging.getLogger(__name__)

WeekendRule = Callable[[date], bool]


def weekday_rule(weekend_days: Iterable[int] = (5, 6)) -> WeekendRule:
    """Weekend rule from weekday numbers (Monday=0 ... Sunday=6)."""
    days = frozenset(weekend_days)

    def is_weekend(day: date) -> bool:
        return day.weekday() in days

    return is_weekend


class SchoolCalendar:
    """Holiday set and weekend rule for one academic year.

    Instances are immutable; build one per academic year and share it
    between report requests.
    """

    def __init__(
        self,
        holidays: Iterable[date] = (),
        weekend_rule: WeekendRule | None = None,
        anchors: SemesterAnchors | None = None,
        academic_year: str | None = None,
    ):
        self._holidays = frozenset(holidays)
        self._weekend_rule = weekend_rule or weekday_rule()
        self._anchors = anchors or SemesterAnchors()
        self._academic_year = academic_year

    @property
    def holidays(self) -> frozenset[date]:
        return self._holidays

    @property
    def anchors(self) -> SemesterAnchors:
        return self._anchors

    @property
    def academic_year(self) -> str | None:
        return self._academic_year

    # ==========================================
    # Construction
    # ==========================================

    @classmethod
    def from_config(cls, config: AcademicCalendarConfig) -> "SchoolCalendar":
        """Build a calendar from a parsed calendar document."""
        return cls(
            holidays=config.holidays,
            weekend_rule=weekday_rule(config.weekend_days),
            anchors=config.semesters,
            academic_year=config.academic_year,
        )

    @classmethod
    def from_file(cls, path: Path | str) -> "SchoolCalendar":
        """Load a calendar JSON document (see calendars/ for the format)."""
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"[CALENDAR] Cannot read {path}: {e}")
            raise CalendarConfigError(f"Cannot read calendar file: {path}") from e

        try:
            config = AcademicCalendarConfig.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.error(f"[CALENDAR] Invalid calendar file {path}: {e.error_count()} errors")
            raise CalendarConfigError(
                f"Invalid calendar file: {path}",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

        logger.info(
            f"[CALENDAR] Loaded {config.academic_year or path.name}: "
            f"{len(config.holidays)} holidays, weekend={config.weekend_days}"
        )
        return cls.from_config(config)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SchoolCalendar":
        """Build the calendar configured for this deployment."""
        if settings.CALENDAR_FILE:
            return cls.from_file(settings.CALENDAR_FILE)

        anchors = SemesterAnchors(
            **{
                name: MonthDay(month=month, day=day)
                for name, (month, day) in settings.semester_anchor_values.items()
            }
        )
        return cls(
            holidays=settings.HOLIDAYS,
            weekend_rule=weekday_rule(settings.WEEKEND_DAYS),
            anchors=anchors,
        )

    # ==========================================
    # Day Classification
    # ==========================================

    def day_kind(self, day: date) -> DayKind:
        """Classify a date; a holiday on a weekend counts as a holiday."""
        if day in self._holidays:
            return DayKind.HOLIDAY
        if self._weekend_rule(day):
            return DayKind.WEEKEND
        return DayKind.INSTRUCTIONAL

    def is_instructional_day(self, day: date) -> bool:
        return not self._weekend_rule(day) and day not in self._holidays

    def instructional_days_in_range(self, start: date, end: date) -> list[date]:
        """All instructional days from start to end inclusive."""
        days = []
        current = start
        while current <= end:
            if self.is_instructional_day(current):
                days.append(current)
            current += timedelta(days=1)
        return days

    def holidays_in_range(self, start: date, end: date) -> list[date]:
        return sorted(d for d in self._holidays if start <= d <= end)

    # ==========================================
    # Period Ranges
    # ==========================================

    def month_range(self, month_index: int, year: int) -> PeriodSpec:
        """First to last day of a month; month_index is 0 (Jan) to 11 (Dec)."""
        if not isinstance(month_index, int) or not 0 <= month_index <= 11:
            raise InvalidPeriodError(
                f"Month index must be 0-11, got {month_index}",
                details={"month_index": month_index},
            )
        self._check_year(year)
        month = month_index + 1
        _, days_in_month = calendar.monthrange(year, month)
        return PeriodSpec(start=date(year, month, 1), end=date(year, month, days_in_month))

    def semester_range(self, semester_index: int, base_year: int) -> PeriodSpec:
        """Date range of a semester in the academic year starting in base_year.

        Semester 1 runs inside base_year, semester 2 inside base_year + 1.
        """
        if semester_index == 1:
            self._check_year(base_year)
            start = self._anchors.semester_1_start.on(base_year)
            end = self._anchors.semester_1_end.on(base_year)
        elif semester_index == 2:
            self._check_year(base_year + 1)
            start = self._anchors.semester_2_start.on(base_year + 1)
            end = self._anchors.semester_2_end.on(base_year + 1)
        else:
            raise InvalidPeriodError(
                f"Semester index must be 1 or 2, got {semester_index}",
                details={"semester_index": semester_index},
            )
        return PeriodSpec.between(start, end)

    def semester_containing(self, day: date) -> PeriodSpec | None:
        """The semester whose range includes day, if any."""
        candidates = [(1, day.year), (2, day.year - 1)]
        for semester_index, base_year in candidates:
            if base_year < 1:
                continue
            period = self.semester_range(semester_index, base_year)
            if period.contains(day):
                return period
        return None

    @staticmethod
    def _check_year(year: int) -> None:
        if not isinstance(year, int) or not 1 <= year <= 9999:
            raise InvalidPeriodError(f"Year out of range: {year}", details={"year": year})
