from __future__ import annotations

from datetime import date

import pytest

from attendance_recap.schemas.attendance import AttendanceRecord, PeriodSpec, Student
from attendance_recap.services.school_calendar import SchoolCalendar


def rec(student_id, day: date, status) -> AttendanceRecord:
    return AttendanceRecord(student_id=student_id, attendance_date=day, status=status)


@pytest.fixture
def plain_calendar():
    """Saturday/Sunday weekends, no holidays."""
    return SchoolCalendar()


@pytest.fixture
def holiday_calendar():
    # 2026-01-16 is a Friday, 2026-01-17 a Saturday
    return SchoolCalendar(holidays=[date(2026, 1, 16), date(2026, 1, 17)])


@pytest.fixture
def ana():
    return Student(id="s1", display_id="01", name="Ana")


@pytest.fixture
def roster(ana):
    return [
        ana,
        Student(id="s2", display_id="02", name="Budi"),
        Student(id="s3", display_id="03", name="Citra"),
    ]


@pytest.fixture
def jan_clipped():
    """January 2026 clipped to the start of semester 2."""
    return PeriodSpec(start=date(2026, 1, 12), end=date(2026, 1, 31))


@pytest.fixture
def make_record():
    return rec
