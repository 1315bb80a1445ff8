"""Report grid enumerations."""

import enum


class CellTag(str, enum.Enum):
    """Semantic tag a renderer maps to styling."""

    TITLE = "title"
    HEADER = "header"
    DATA = "data"
    HOLIDAY = "holiday"
    WEEKEND = "weekend"
    SEPARATOR = "separator"


class ReportKind(str, enum.Enum):
    """Grid layout produced for a period kind."""

    DAILY_MATRIX = "daily_matrix"
    MONTHLY_SUMMARY = "monthly_summary"
