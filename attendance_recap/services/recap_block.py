"""Recap Summary block shared by both report layouts."""

from collections.abc import Sequence

from attendance_recap.core.exceptions import ValidationError
from attendance_recap.models.report import CellTag
from attendance_recap.schemas.attendance import StudentRecap
from attendance_recap.schemas.report import GridBlock, GridCell, GridSection, MergeSpan

IDENTITY_HEADERS = ("No", "Roll ID", "Name")
STATISTIC_HEADERS = (
    "Present",
    "Sick",
    "Excused",
    "Unexcused",
    "Instructional Days",
    "Percentage",
)

HEADER = frozenset({CellTag.HEADER})
DATA = frozenset({CellTag.DATA})


def header_cell(value) -> GridCell:
    return GridCell(value=value, tags=HEADER)


def data_cell(value, extra: frozenset[CellTag] = frozenset()) -> GridCell:
    return GridCell(value=value, tags=DATA | extra)


def identity_cells(index: int, recap: StudentRecap) -> list[GridCell]:
    """No / Roll ID / Name cells for one student row (index is one-based)."""
    return [
        data_cell(index),
        data_cell(recap.student.display_id),
        data_cell(recap.student.name),
    ]


class RecapSummaryBlock:
    """Builds the fixed-column recap table.

    Each of the six statistic columns spans ``merge_width`` grid columns so
    the block lines up under a wider table above it; with ``merge_width=1``
    no merges are emitted.
    """

    name = "recap_summary"

    def __init__(self, merge_width: int = 2):
        if merge_width < 1:
            raise ValidationError(
                f"Recap merge width must be at least 1, got {merge_width}",
                details={"merge_width": merge_width},
            )
        self.merge_width = merge_width

    @property
    def width(self) -> int:
        return len(IDENTITY_HEADERS) + len(STATISTIC_HEADERS) * self.merge_width

    def build(self, recaps: Sequence[StudentRecap], first_row: int) -> GridSection:
        """Header plus one row per recap, anchored at grid row first_row."""
        rows = [self._row(
            [header_cell(h) for h in IDENTITY_HEADERS],
            [header_cell(h) for h in STATISTIC_HEADERS],
            HEADER,
        )]
        for index, recap in enumerate(recaps, start=1):
            statistics = [
                recap.present_count,
                recap.sick_count,
                recap.excused_count,
                recap.unexcused_count,
                recap.instructional_day_count,
                recap.attendance_percentage,
            ]
            rows.append(self._row(
                identity_cells(index, recap),
                [data_cell(v) for v in statistics],
                DATA,
            ))

        merges = []
        if self.merge_width > 1:
            for row_offset in range(len(rows)):
                for stat_index in range(len(STATISTIC_HEADERS)):
                    merges.append(MergeSpan(
                        row=first_row + row_offset,
                        column=len(IDENTITY_HEADERS) + stat_index * self.merge_width,
                        col_span=self.merge_width,
                    ))

        block = GridBlock(
            name=self.name,
            first_row=first_row,
            row_count=len(rows),
            width=self.width,
        )
        return GridSection(block=block, rows=rows, merges=merges)

    def _row(
        self,
        identity: list[GridCell],
        statistics: list[GridCell],
        filler_tags: frozenset[CellTag],
    ) -> list[GridCell]:
        # Covered cells of a merge stay blank but keep the row's tags for borders
        row = list(identity)
        for cell in statistics:
            row.append(cell)
            row.extend(GridCell(tags=filler_tags) for _ in range(self.merge_width - 1))
        return row
