from __future__ import annotations

import os
import subprocess
import sys
from datetime import date

import pydantic
import pytest

from attendance_recap.core.config import Settings, get_settings
from attendance_recap.core.exceptions import GridInvariantError, InvalidPeriodError
from attendance_recap.services.report import AttendanceReportService
from attendance_recap.services.school_calendar import SchoolCalendar


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.WEEKEND_DAYS == [5, 6]
    assert settings.RECAP_MERGE_WIDTH == 2
    assert settings.DUPLICATE_POLICY == "first"
    assert settings.semester_anchor_values["semester_1_start"] == (7, 14)


def test_environment_overrides_anchors_and_holidays(monkeypatch):
    monkeypatch.setenv("SEMESTER_2_START", "01-05")
    monkeypatch.setenv("HOLIDAYS", '["2026-01-16"]')
    monkeypatch.setenv("WEEKEND_DAYS", "[6]")

    cal = SchoolCalendar.from_settings(Settings(_env_file=None))

    assert cal.semester_range(2, 2025).start == date(2026, 1, 5)
    assert not cal.is_instructional_day(date(2026, 1, 16))
    assert cal.is_instructional_day(date(2026, 1, 17))


def test_calendar_file_setting_takes_precedence(tmp_path):
    path = tmp_path / "calendar.json"
    path.write_text('{"academic_year": "2026/2027", "holidays": ["2026-08-17"]}')

    cal = SchoolCalendar.from_settings(Settings(_env_file=None, CALENDAR_FILE=path, HOLIDAYS=[]))

    assert cal.academic_year == "2026/2027"
    assert cal.holidays == frozenset({date(2026, 8, 17)})


@pytest.mark.parametrize(
    "overrides",
    [
        {"SEMESTER_1_START": "13-01"},
        {"SEMESTER_1_END": "12/24"},
        {"WEEKEND_DAYS": [7]},
        {"RECAP_MERGE_WIDTH": -1},
        {"RECAP_MERGE_WIDTH": 0},
        {"RECAP_SEPARATOR_ROWS": -1},
        {"DUPLICATE_POLICY": "newest"},
    ],
)
def test_invalid_settings(overrides):
    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None, **overrides)


def test_error_payload_shape():
    error = InvalidPeriodError("Semester index must be 1 or 2, got 3", details={"semester_index": 3})

    assert isinstance(error, ValueError)
    assert error.status_code == 422
    assert error.to_dict() == {
        "success": False,
        "error": {
            "code": "INVALID_PERIOD",
            "message": "Semester index must be 1 or 2, got 3",
            "details": {"semester_index": 3},
        },
    }
    assert GridInvariantError().status_code == 500


def test_separator_rows_may_be_zero():
    assert Settings(_env_file=None, RECAP_SEPARATOR_ROWS=0).RECAP_SEPARATOR_ROWS == 0


@pytest.mark.parametrize("name, value", [("DEBUG", "release"), ("WEEKEND_DAYS", "[7]")])
def test_package_imports_with_invalid_environment(name, value):
    env = {**os.environ, name: value}
    proc = subprocess.run(
        [sys.executable, "-c", "import attendance_recap, attendance_recap.services.report"],
        env=env,
        capture_output=True,
        text=True,
    )
    assert proc.returncode == 0, proc.stderr


def test_from_settings_defaults_to_cached_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("REPORT_TITLE", "Rekap Absensi")
    monkeypatch.setenv("RECAP_MERGE_WIDTH", "3")
    get_settings.cache_clear()
    try:
        service = AttendanceReportService.from_settings()
    finally:
        get_settings.cache_clear()

    assert service.title == "Rekap Absensi"
    assert service.grid_builder.recap_block.merge_width == 3
