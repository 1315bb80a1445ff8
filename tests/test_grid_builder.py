from __future__ import annotations

from datetime import date

import pytest

from attendance_recap.core.exceptions import GridInvariantError
from attendance_recap.models.attendance import AttendanceStatus
from attendance_recap.models.report import CellTag, ReportKind
from attendance_recap.schemas.attendance import PeriodSpec, StudentRecap
from attendance_recap.schemas.report import GridBlock, GridCell, MergeSpan, ReportGrid
from attendance_recap.services.aggregator import AttendanceAggregator
from attendance_recap.services.grid_builder import ReportGridBuilder, check_grid


@pytest.fixture
def january_recaps(roster, holiday_calendar, make_record):
    period = PeriodSpec(start=date(2026, 1, 1), end=date(2026, 1, 31))
    records = [
        make_record("s1", date(2026, 1, 2), "H"),
        make_record("s1", date(2026, 1, 5), "S"),
        make_record("s2", date(2026, 1, 5), "A"),
    ]
    return AttendanceAggregator().aggregate(roster, records, period, holiday_calendar)


# ==========================================
# Daily Matrix
# ==========================================

def test_daily_matrix_has_one_column_per_calendar_day(january_recaps, holiday_calendar):
    period = PeriodSpec(start=date(2026, 1, 1), end=date(2026, 1, 31))

    grid = ReportGridBuilder().build_daily_matrix(january_recaps, period, holiday_calendar)

    header = grid.row_values(0)
    assert header[:3] == ["No", "Roll ID", "Name"]
    assert header[3:34] == list(range(1, 32))
    assert grid.block("daily_matrix").width == 3 + (period.end - period.start).days + 1
    assert grid.kind == ReportKind.DAILY_MATRIX


def test_daily_matrix_column_count_ignores_instructional_days(plain_calendar, roster):
    # Weekend-heavy short range still gets a column per day
    period = PeriodSpec(start=date(2026, 1, 9), end=date(2026, 1, 12))
    recaps = AttendanceAggregator().aggregate(roster, [], period, plain_calendar)

    grid = ReportGridBuilder().build_daily_matrix(recaps, period, plain_calendar)

    assert grid.block("daily_matrix").width == 3 + 4
    # The recap block is wider than this matrix
    assert grid.width == 15


def test_daily_matrix_cells_and_flags(january_recaps, holiday_calendar):
    period = PeriodSpec(start=date(2026, 1, 1), end=date(2026, 1, 31))

    grid = ReportGridBuilder().build_daily_matrix(january_recaps, period, holiday_calendar)

    ana_row = grid.row_values(1)
    assert ana_row[:3] == [1, "01", "Ana"]
    assert ana_row[3 + 1] == "H"  # Jan 2
    assert ana_row[3 + 4] == "S"  # Jan 5
    assert ana_row[3 + 5] is None
    assert grid.row_values(2)[3 + 4] == "A"

    holiday_col = 3 + 15  # Jan 16
    weekend_col = 3 + 3  # Jan 4, Sunday
    for row in range(0, 4):
        assert grid.cell(row, holiday_col).has(CellTag.HOLIDAY)
        assert grid.cell(row, weekend_col).has(CellTag.WEEKEND)
    # Jan 17 is both a Saturday and a holiday
    assert grid.cell(1, 3 + 16).has(CellTag.HOLIDAY)
    assert not grid.cell(1, 3 + 16).has(CellTag.WEEKEND)
    assert grid.cell(0, holiday_col).has(CellTag.HEADER)
    assert grid.cell(1, 3 + 4).tags == frozenset({CellTag.DATA})


def test_daily_matrix_appends_merged_recap(january_recaps, holiday_calendar):
    period = PeriodSpec(start=date(2026, 1, 1), end=date(2026, 1, 31))

    grid = ReportGridBuilder(merge_width=2, separator_rows=2).build_daily_matrix(
        january_recaps, period, holiday_calendar
    )

    recap = grid.block("recap_summary")
    # header + 3 students, then 2 separator rows
    assert recap.first_row == 1 + 3 + 2
    assert grid.row_values(recap.first_row)[:5] == ["No", "Roll ID", "Name", "Present", None]
    assert grid.row_values(recap.first_row + 1)[:4] == [1, "01", "Ana", 1]
    assert grid.cell(4, 0).has(CellTag.SEPARATOR)
    assert MergeSpan(row=recap.first_row, column=3, col_span=2) in grid.merges
    assert len(grid.merges) == 6 * 4


def test_daily_matrix_with_title_rows(january_recaps, holiday_calendar):
    period = PeriodSpec(start=date(2026, 1, 1), end=date(2026, 1, 31))

    grid = ReportGridBuilder().build_daily_matrix(
        january_recaps, period, holiday_calendar, title="Attendance Recap", subtitle="January 2026 - 5A"
    )

    assert grid.cell(0, 0).value == "Attendance Recap"
    assert grid.cell(1, 0).value == "January 2026 - 5A"
    assert grid.cell(0, 0).has(CellTag.TITLE)
    assert MergeSpan(row=0, column=0, col_span=34) in grid.merges
    assert grid.block("daily_matrix").first_row == 3
    assert grid.row_values(3)[:3] == ["No", "Roll ID", "Name"]


def test_daily_matrix_empty_roster_is_header_only(holiday_calendar):
    period = PeriodSpec(start=date(2026, 1, 1), end=date(2026, 1, 31))

    grid = ReportGridBuilder().build_daily_matrix([], period, holiday_calendar)

    assert grid.block("daily_matrix").row_count == 1
    assert grid.block("recap_summary").row_count == 1
    assert grid.height == 1 + 2 + 1


def test_rows_are_rectangular_and_widths_cover_grid(january_recaps, holiday_calendar):
    period = PeriodSpec(start=date(2026, 1, 1), end=date(2026, 1, 31))

    grid = ReportGridBuilder().build_daily_matrix(january_recaps, period, holiday_calendar)

    assert {len(row) for row in grid.rows} == {34}
    assert len(grid.column_widths) == 34
    assert grid.column_widths[:4] == [5, 12, 30, 4]


# ==========================================
# Monthly-Bucketed Summary
# ==========================================

@pytest.fixture
def boundary_recap(ana):
    return StudentRecap(
        student=ana,
        present_count=2,
        sick_count=1,
        instructional_day_count=100,
        attendance_percentage=2,
        daily_log={
            "2025-12-02": AttendanceStatus.PRESENT,
            "2025-12-03": AttendanceStatus.SICK,
            "2026-01-13": AttendanceStatus.PRESENT,
            "2026-03-02": AttendanceStatus.UNEXCUSED,
        },
    )


def test_monthly_buckets_are_chronological_across_year_boundary(boundary_recap):
    period = PeriodSpec(start=date(2025, 12, 1), end=date(2026, 6, 26))

    grid = ReportGridBuilder().build_monthly_summary([boundary_recap], period)

    month_headers = [v for v in grid.row_values(0)[3:] if v]
    assert month_headers == [
        "December 2025",
        "January 2026",
        "February 2026",
        "March 2026",
        "April 2026",
        "May 2026",
        "June 2026",
    ]
    assert grid.kind == ReportKind.MONTHLY_SUMMARY


def test_monthly_header_rows_and_merges(boundary_recap):
    period = PeriodSpec(start=date(2025, 12, 1), end=date(2026, 1, 31))

    grid = ReportGridBuilder().build_monthly_summary([boundary_recap], period)

    assert grid.row_values(0)[:8] == ["No", "Roll ID", "Name", "December 2025", None, None, None, "January 2026"]
    assert grid.row_values(1)[:11] == [None, None, None, "H", "S", "I", "A", "H", "S", "I", "A"]
    for column in range(3):
        assert MergeSpan(row=0, column=column, row_span=2) in grid.merges
    assert MergeSpan(row=0, column=3, col_span=4) in grid.merges
    assert MergeSpan(row=0, column=7, col_span=4) in grid.merges
    assert grid.block("monthly_summary").header_rows == 2


def test_monthly_tallies_come_from_daily_log(boundary_recap):
    period = PeriodSpec(start=date(2025, 12, 1), end=date(2026, 3, 31))

    grid = ReportGridBuilder().build_monthly_summary([boundary_recap], period)

    assert grid.row_values(2)[:19] == [
        1, "01", "Ana",
        1, 1, 0, 0,  # December
        1, 0, 0, 0,  # January
        0, 0, 0, 0,  # February
        0, 0, 0, 1,  # March
    ]


def test_monthly_recap_block_is_unmerged(boundary_recap):
    period = PeriodSpec(start=date(2026, 1, 12), end=date(2026, 6, 26))

    grid = ReportGridBuilder(merge_width=2).build_monthly_summary([boundary_recap], period)

    recap = grid.block("recap_summary")
    assert recap.width == 9
    assert not [m for m in grid.merges if m.row >= recap.first_row]
    assert grid.row_values(recap.first_row + 1)[:9] == [1, "01", "Ana", 2, 1, 0, 0, 100, 2]


# ==========================================
# Structural Invariants
# ==========================================

def _grid(merges, width=4, block_width=4):
    rows = [[GridCell(value=i, tags=frozenset({CellTag.HEADER})) for i in range(width)]]
    rows.append([GridCell(tags=frozenset({CellTag.DATA})) for _ in range(width)])
    return ReportGrid(
        kind=ReportKind.DAILY_MATRIX,
        rows=rows,
        merges=merges,
        column_widths=[5] * width,
        blocks=[GridBlock(name="table", first_row=0, row_count=2, width=block_width)],
    )


def test_check_grid_accepts_valid_grid():
    check_grid(_grid([MergeSpan(row=1, column=0, col_span=4)]))


def test_check_grid_rejects_merge_wider_than_block():
    with pytest.raises(GridInvariantError):
        check_grid(_grid([MergeSpan(row=1, column=2, col_span=3)]))


def test_check_grid_rejects_overlapping_merges():
    merges = [MergeSpan(row=0, column=0, row_span=2), MergeSpan(row=1, column=0, col_span=2)]
    with pytest.raises(GridInvariantError):
        check_grid(_grid(merges))


def test_check_grid_rejects_header_width_mismatch():
    with pytest.raises(GridInvariantError) as exc:
        check_grid(_grid([], width=4, block_width=3))
    assert exc.value.code == "GRID_INVARIANT_VIOLATION"


def test_check_grid_rejects_single_cell_merge():
    with pytest.raises(GridInvariantError):
        check_grid(_grid([MergeSpan(row=0, column=1)]))


def test_monthly_summary_empty_roster_is_header_only():
    period = PeriodSpec(start=date(2026, 1, 12), end=date(2026, 6, 26))

    grid = ReportGridBuilder().build_monthly_summary([], period)

    table = grid.block("monthly_summary")
    recap = grid.block("recap_summary")
    assert (table.row_count, table.header_rows) == (2, 2)
    assert recap.row_count == 1
    assert recap.first_row == 2 + 2
    assert grid.height == 2 + 2 + 1
    assert grid.row_values(1)[3:7] == ["H", "S", "I", "A"]
    assert grid.row_values(recap.first_row)[:3] == ["No", "Roll ID", "Name"]
    # Vertical identity merges plus one per month
    assert len(grid.merges) == 3 + 6
