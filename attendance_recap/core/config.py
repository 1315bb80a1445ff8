"""Application configuration settings."""

import re
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MONTH_DAY_PATTERN = re.compile(r"^(\d{2})-(\d{2})$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Attendance Recap"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Calendar
    CALENDAR_FILE: Path | None = None
    HOLIDAYS: list[date] = []
    WEEKEND_DAYS: list[int] = [5, 6]  # Saturday, Sunday

    # Semester anchors (MM-DD); semester 2 falls in the following calendar year
    SEMESTER_1_START: str = "07-14"
    SEMESTER_1_END: str = "12-24"
    SEMESTER_2_START: str = "01-12"
    SEMESTER_2_END: str = "06-26"

    # Aggregation
    DUPLICATE_POLICY: Literal["first", "last"] = "first"

    # Report layout
    REPORT_TITLE: str = "Attendance Recap"
    RECAP_MERGE_WIDTH: int = 2
    RECAP_SEPARATOR_ROWS: int = 2

    @field_validator(
        "SEMESTER_1_START",
        "SEMESTER_1_END",
        "SEMESTER_2_START",
        "SEMESTER_2_END",
    )
    @classmethod
    def validate_month_day(cls, v: str) -> str:
        match = MONTH_DAY_PATTERN.match(v.strip())
        if not match:
            raise ValueError(f"Expected MM-DD, got '{v}'")
        # 2000 is a leap year, so Feb 29 passes here
        date(2000, int(match.group(1)), int(match.group(2)))
        return v.strip()

    @field_validator("WEEKEND_DAYS")
    @classmethod
    def validate_weekend_days(cls, v: list[int]) -> list[int]:
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"Weekend day must be 0 (Mon) to 6 (Sun), got {day}")
        return v

    @field_validator("RECAP_MERGE_WIDTH")
    @classmethod
    def validate_merge_width(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Recap merge width must be at least 1, got {v}")
        return v

    @field_validator("RECAP_SEPARATOR_ROWS")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Separator rows cannot be negative")
        return v

    @property
    def semester_anchor_values(self) -> dict[str, tuple[int, int]]:
        """Semester anchors as (month, day) pairs."""
        return {
            "semester_1_start": _split_month_day(self.SEMESTER_1_START),
            "semester_1_end": _split_month_day(self.SEMESTER_1_END),
            "semester_2_start": _split_month_day(self.SEMESTER_2_START),
            "semester_2_end": _split_month_day(self.SEMESTER_2_END),
        }


def _split_month_day(value: str) -> tuple[int, int]:
    month, day = value.split("-")
    return int(month), int(day)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
