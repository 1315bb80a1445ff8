"""Report grid layouts: Daily Matrix and Monthly-Bucketed Summary."""

import calendar
import logging
from collections import Counter, defaultdict
from collections.abc import Sequence

from attendance_recap.core.exceptions import GridInvariantError
from attendance_recap.models.attendance import STATUS_ORDER, AttendanceStatus, DayKind
from attendance_recap.models.report import CellTag, ReportKind
from attendance_recap.schemas.attendance import PeriodSpec, StudentRecap
from attendance_recap.schemas.report import (
    GridBlock,
    GridCell,
    GridSection,
    MergeSpan,
    ReportGrid,
)
from attendance_recap.services.recap_block import (
    HEADER,
    IDENTITY_HEADERS,
    RecapSummaryBlock,
    data_cell,
    header_cell,
    identity_cells,
)
from attendance_recap.services.school_calendar import SchoolCalendar

logger = logging.getLogger(__name__)

DAY_FLAGS = {
    DayKind.HOLIDAY: frozenset({CellTag.HOLIDAY}),
    DayKind.WEEKEND: frozenset({CellTag.WEEKEND}),
    DayKind.INSTRUCTIONAL: frozenset(),
}

# Column width hints, in characters
IDENTITY_WIDTHS = [5, 12, 30]
DAY_COLUMN_WIDTH = 4
BUCKET_COLUMN_WIDTH = 5
DEFAULT_COLUMN_WIDTH = 10


class ReportGridBuilder:
    """Builds structural report grids from student recaps."""

    def __init__(self, merge_width: int = 2, separator_rows: int = 2):
        self.recap_block = RecapSummaryBlock(merge_width)
        self.separator_rows = separator_rows

    # ==========================================
    # Daily Matrix (month period)
    # ==========================================

    def build_daily_matrix(
        self,
        recaps: Sequence[StudentRecap],
        period: PeriodSpec,
        school_calendar: SchoolCalendar,
        title: str | None = None,
        subtitle: str | None = None,
    ) -> ReportGrid:
        """One column per calendar date, one row per student.

        Non-instructional days keep their column and carry a holiday or
        weekend tag on every cell of it.
        """
        dates = period.dates()
        day_flags = [DAY_FLAGS[school_calendar.day_kind(d)] for d in dates]
        width = len(IDENTITY_HEADERS) + len(dates)

        rows: list[list[GridCell]] = []
        merges: list[MergeSpan] = []
        blocks: list[GridBlock] = []
        self._add_titles(rows, merges, blocks, width, title, subtitle)

        first_row = len(rows)
        rows.append(
            [header_cell(h) for h in IDENTITY_HEADERS]
            + [GridCell(value=d.day, tags=HEADER | flags) for d, flags in zip(dates, day_flags)]
        )
        for index, recap in enumerate(recaps, start=1):
            row = identity_cells(index, recap)
            for d, flags in zip(dates, day_flags):
                status = recap.daily_log.get(d.isoformat())
                row.append(data_cell(status.code if status else None, flags))
            rows.append(row)
        blocks.append(GridBlock(
            name="daily_matrix",
            first_row=first_row,
            row_count=len(rows) - first_row,
            width=width,
        ))

        self._add_recap(rows, merges, blocks, recaps, self.recap_block)

        column_widths = IDENTITY_WIDTHS + [DAY_COLUMN_WIDTH] * len(dates)
        grid = self._assemble(ReportKind.DAILY_MATRIX, rows, merges, blocks, column_widths)
        logger.info(
            f"[GRID] Daily matrix {period.start} to {period.end}: "
            f"{len(dates)} date columns, {len(recaps)} students, {len(grid.merges)} merges"
        )
        return grid

    # ==========================================
    # Monthly-Bucketed Summary (semester period)
    # ==========================================

    def build_monthly_summary(
        self,
        recaps: Sequence[StudentRecap],
        period: PeriodSpec,
        title: str | None = None,
        subtitle: str | None = None,
    ) -> ReportGrid:
        """One H/S/I/A column group per month covered by the period."""
        months = period.months()
        group = len(STATUS_ORDER)
        lead = len(IDENTITY_HEADERS)
        width = lead + group * len(months)

        rows: list[list[GridCell]] = []
        merges: list[MergeSpan] = []
        blocks: list[GridBlock] = []
        self._add_titles(rows, merges, blocks, width, title, subtitle)

        first_row = len(rows)
        month_row = [header_cell(h) for h in IDENTITY_HEADERS]
        code_row = [GridCell(tags=HEADER) for _ in IDENTITY_HEADERS]
        for column in range(lead):
            merges.append(MergeSpan(row=first_row, column=column, row_span=2))

        for month_index, (year, month) in enumerate(months):
            month_row.append(header_cell(f"{calendar.month_name[month]} {year}"))
            month_row.extend(GridCell(tags=HEADER) for _ in range(group - 1))
            code_row.extend(header_cell(status.code) for status in STATUS_ORDER)
            merges.append(MergeSpan(
                row=first_row,
                column=lead + month_index * group,
                col_span=group,
            ))
        rows.extend([month_row, code_row])

        for index, recap in enumerate(recaps, start=1):
            buckets = self._month_buckets(recap)
            row = identity_cells(index, recap)
            for year, month in months:
                tally = buckets.get(f"{year:04d}-{month:02d}", Counter())
                row.extend(data_cell(tally[status]) for status in STATUS_ORDER)
            rows.append(row)
        blocks.append(GridBlock(
            name="monthly_summary",
            first_row=first_row,
            row_count=len(rows) - first_row,
            width=width,
            header_rows=2,
        ))

        # The monthly table's column count differs from the recap's, so no merges
        self._add_recap(rows, merges, blocks, recaps, RecapSummaryBlock(merge_width=1))

        column_widths = IDENTITY_WIDTHS + [BUCKET_COLUMN_WIDTH] * (group * len(months))
        grid = self._assemble(ReportKind.MONTHLY_SUMMARY, rows, merges, blocks, column_widths)
        logger.info(
            f"[GRID] Monthly summary {period.start} to {period.end}: "
            f"{len(months)} months, {len(recaps)} students, {len(grid.merges)} merges"
        )
        return grid

    @staticmethod
    def _month_buckets(recap: StudentRecap) -> dict[str, Counter]:
        """Re-tally one student's daily log per YYYY-MM key."""
        buckets: dict[str, Counter] = defaultdict(Counter)
        for day_key, status in recap.daily_log.items():
            buckets[day_key[:7]][AttendanceStatus(status)] += 1
        return buckets

    # ==========================================
    # Shared Assembly
    # ==========================================

    def _add_titles(
        self,
        rows: list[list[GridCell]],
        merges: list[MergeSpan],
        blocks: list[GridBlock],
        width: int,
        title: str | None,
        subtitle: str | None,
    ) -> None:
        lines = [line for line in (title, subtitle) if line]
        if not lines:
            return
        first_row = len(rows)
        for line in lines:
            row_index = len(rows)
            rows.append(
                [GridCell(value=line, tags=frozenset({CellTag.TITLE}))]
                + [GridCell(tags=frozenset({CellTag.TITLE})) for _ in range(width - 1)]
            )
            if width > 1:
                merges.append(MergeSpan(row=row_index, column=0, col_span=width))
        # Blank line between titles and the table
        rows.append([])
        blocks.append(GridBlock(
            name="title",
            first_row=first_row,
            row_count=len(lines),
            width=width,
            header_rows=0,
        ))

    def _add_recap(
        self,
        rows: list[list[GridCell]],
        merges: list[MergeSpan],
        blocks: list[GridBlock],
        recaps: Sequence[StudentRecap],
        recap_block: RecapSummaryBlock,
    ) -> None:
        for _ in range(self.separator_rows):
            rows.append([GridCell(tags=frozenset({CellTag.SEPARATOR}))])
        section: GridSection = recap_block.build(recaps, first_row=len(rows))
        rows.extend(section.rows)
        merges.extend(section.merges)
        blocks.append(section.block)

    def _assemble(
        self,
        kind: ReportKind,
        rows: list[list[GridCell]],
        merges: list[MergeSpan],
        blocks: list[GridBlock],
        column_widths: list[int],
    ) -> ReportGrid:
        width = max(block.width for block in blocks)
        padded = [row + [GridCell() for _ in range(width - len(row))] for row in rows]
        widths = column_widths[:width] + [DEFAULT_COLUMN_WIDTH] * (width - len(column_widths))
        grid = ReportGrid(
            kind=kind,
            rows=padded,
            merges=merges,
            column_widths=widths,
            blocks=blocks,
        )
        check_grid(grid)
        return grid


def check_grid(grid: ReportGrid) -> None:
    """Raise GridInvariantError unless every block and merge is well formed."""
    height, width = grid.height, grid.width

    for row_index, row in enumerate(grid.rows):
        if len(row) != width:
            raise GridInvariantError(
                f"Row {row_index} has {len(row)} cells, grid width is {width}",
                details={"row": row_index},
            )

    for block in grid.blocks:
        if block.last_row >= height or block.width > width:
            raise GridInvariantError(
                f"Block '{block.name}' exceeds the grid",
                details={"block": block.name},
            )
        for row_index in range(block.first_row, block.first_row + block.header_rows):
            header_columns = [
                c for c, cell in enumerate(grid.rows[row_index]) if cell.has(CellTag.HEADER)
            ]
            if header_columns != list(range(block.width)):
                raise GridInvariantError(
                    f"Header row {row_index} of '{block.name}' has {len(header_columns)} "
                    f"header cells, block declares {block.width} columns",
                    details={"block": block.name, "row": row_index},
                )

    for merge in grid.merges:
        if merge.row_span == 1 and merge.col_span == 1:
            raise GridInvariantError("Merge covers a single cell", details=merge.model_dump())
        if merge.last_row >= height or merge.last_column >= width:
            raise GridInvariantError(
                f"Merge at ({merge.row}, {merge.column}) exceeds grid {height}x{width}",
                details=merge.model_dump(),
            )
        owner = next(
            (b for b in grid.blocks if b.first_row <= merge.row and merge.last_row <= b.last_row),
            None,
        )
        if owner is None:
            raise GridInvariantError(
                f"Merge at row {merge.row} is outside every block",
                details=merge.model_dump(),
            )
        if merge.last_column >= owner.width:
            raise GridInvariantError(
                f"Merge span {merge.col_span} at column {merge.column} exceeds "
                f"'{owner.name}' width {owner.width}",
                details={"block": owner.name, **merge.model_dump()},
            )

    for i, first in enumerate(grid.merges):
        for second in grid.merges[i + 1:]:
            if first.overlaps(second):
                raise GridInvariantError(
                    f"Merges at ({first.row}, {first.column}) and "
                    f"({second.row}, {second.column}) overlap",
                )
