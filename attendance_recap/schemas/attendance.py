"""Attendance, calendar and period schemas."""

import calendar
from datetime import date, datetime, timedelta
from typing import Annotated, Any, Literal, Union

from pydantic import Field, field_validator, model_validator

from attendance_recap.core.exceptions import InvalidPeriodError
from attendance_recap.models.attendance import AttendanceStatus
from attendance_recap.schemas.common import BaseSchema, FrozenSchema

StudentId = Union[int, str]


# ==========================================
# Roster and Records
# ==========================================

class Student(FrozenSchema):
    """Roster entry."""

    id: StudentId
    display_id: str = Field(..., alias="displayId", description="Roll number shown on reports")
    name: str


class AttendanceRecord(FrozenSchema):
    """One raw daily attendance entry."""

    student_id: StudentId = Field(..., alias="studentId")
    attendance_date: date = Field(..., alias="date")
    status: AttendanceStatus | str

    @field_validator("attendance_date", mode="before")
    @classmethod
    def strip_time(cls, v: Any) -> Any:
        # Keep the record's own calendar date; never shift it through another zone
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        parsed = AttendanceStatus.parse(v)
        return parsed if parsed is not None else str(v)

    @property
    def recognized_status(self) -> AttendanceStatus | None:
        return self.status if isinstance(self.status, AttendanceStatus) else None


# ==========================================
# Periods
# ==========================================

class PeriodSpec(FrozenSchema):
    """Inclusive reporting date range."""

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> "PeriodSpec":
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")
        return self

    @classmethod
    def between(cls, start: date, end: date) -> "PeriodSpec":
        """Build a period, raising InvalidPeriodError when start > end."""
        if start > end:
            raise InvalidPeriodError(
                f"Period start {start} is after end {end}",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        return cls(start=start, end=end)

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def dates(self) -> list[date]:
        """Every calendar date in the period, in order."""
        return [self.start + timedelta(days=offset) for offset in range(self.day_count)]

    def months(self) -> list[tuple[int, int]]:
        """Distinct (year, month) pairs covered, chronologically."""
        result = []
        year, month = self.start.year, self.start.month
        while (year, month) <= (self.end.year, self.end.month):
            result.append((year, month))
            month += 1
            if month > 12:
                year, month = year + 1, 1
        return result

    def intersect(self, other: "PeriodSpec") -> "PeriodSpec | None":
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if start > end:
            return None
        return PeriodSpec(start=start, end=end)


class MonthSelector(BaseSchema):
    """Select one calendar month (month_index is zero-based)."""

    kind: Literal["month"] = "month"
    month_index: int = Field(..., alias="monthIndex", ge=0, le=11)
    year: int = Field(..., ge=1, le=9999)
    clip_to_semester: bool = Field(False, alias="clipToSemester")


class SemesterSelector(BaseSchema):
    """Select a semester of the academic year starting in `year`."""

    kind: Literal["semester"] = "semester"
    semester_index: int = Field(..., alias="semesterIndex", ge=1, le=2)
    year: int = Field(..., ge=1, le=9998)


PeriodSelector = Annotated[Union[MonthSelector, SemesterSelector], Field(discriminator="kind")]


# ==========================================
# Calendar Configuration
# ==========================================

class MonthDay(FrozenSchema):
    """A yearless calendar anchor such as 14 July."""

    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)

    @model_validator(mode="before")
    @classmethod
    def parse_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            month, _, day = data.strip().partition("-")
            try:
                return {"month": int(month), "day": int(day)}
            except ValueError as e:
                raise ValueError(f"Expected MM-DD, got '{data}'") from e
        if isinstance(data, (tuple, list)) and len(data) == 2:
            return {"month": data[0], "day": data[1]}
        return data

    @model_validator(mode="after")
    def check_day(self) -> "MonthDay":
        # Leap-year check happens in on()
        if self.day > calendar.monthrange(2000, self.month)[1]:
            raise ValueError(f"{calendar.month_name[self.month]} has no day {self.day}")
        return self

    def on(self, year: int) -> date:
        """Resolve the anchor in a concrete year."""
        try:
            return date(year, self.month, self.day)
        except ValueError as e:
            raise InvalidPeriodError(
                f"Anchor {self.month:02d}-{self.day:02d} does not exist in {year}",
                details={"year": year},
            ) from e


class SemesterAnchors(FrozenSchema):
    """Start/end anchors of both semesters; semester 2 falls in base_year + 1."""

    semester_1_start: MonthDay = MonthDay(month=7, day=14)
    semester_1_end: MonthDay = MonthDay(month=12, day=24)
    semester_2_start: MonthDay = MonthDay(month=1, day=12)
    semester_2_end: MonthDay = MonthDay(month=6, day=26)


class AcademicCalendarConfig(BaseSchema):
    """One academic year's calendar as shipped in a calendar JSON file."""

    academic_year: str | None = None
    semesters: SemesterAnchors = SemesterAnchors()
    holidays: list[date] = []
    weekend_days: list[int] = [5, 6]

    @field_validator("weekend_days")
    @classmethod
    def validate_weekend_days(cls, v: list[int]) -> list[int]:
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"Weekend day must be 0 (Mon) to 6 (Sun), got {day}")
        return v


# ==========================================
# Aggregation Results
# ==========================================

class StudentRecap(FrozenSchema):
    """Aggregated attendance of one student over one period."""

    student: Student
    present_count: int = 0
    sick_count: int = 0
    excused_count: int = 0
    unexcused_count: int = 0
    instructional_day_count: int = 0
    attendance_percentage: int = 0
    daily_log: dict[str, AttendanceStatus] = {}

    @property
    def total_recorded(self) -> int:
        return self.present_count + self.sick_count + self.excused_count + self.unexcused_count

    def count_for(self, status: AttendanceStatus) -> int:
        return {
            AttendanceStatus.PRESENT: self.present_count,
            AttendanceStatus.SICK: self.sick_count,
            AttendanceStatus.EXCUSED: self.excused_count,
            AttendanceStatus.UNEXCUSED: self.unexcused_count,
        }[status]


class IntegrityIssues(FrozenSchema):
    """Non-fatal data problems found while aggregating."""

    duplicate_records: int = 0
    unknown_student_records: int = 0
    unrecognized_status_records: int = 0
    out_of_period_records: int = 0

    @property
    def total(self) -> int:
        return (
            self.duplicate_records
            + self.unknown_student_records
            + self.unrecognized_status_records
            + self.out_of_period_records
        )


class AggregationResult(FrozenSchema):
    """Recaps in roster order plus the issues met on the way."""

    recaps: list[StudentRecap]
    instructional_day_count: int
    issues: IntegrityIssues = IntegrityIssues()
