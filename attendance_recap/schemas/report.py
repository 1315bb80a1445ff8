"""Report grid schemas."""

from datetime import date
from typing import Union

from pydantic import Field

from attendance_recap.models.report import CellTag, ReportKind
from attendance_recap.schemas.attendance import IntegrityIssues, StudentRecap
from attendance_recap.schemas.common import FrozenSchema

CellValue = Union[int, float, str, None]


class GridCell(FrozenSchema):
    """One cell of the report grid."""

    value: CellValue = None
    tags: frozenset[CellTag] = frozenset()

    def has(self, tag: CellTag) -> bool:
        return tag in self.tags


class MergeSpan(FrozenSchema):
    """Rectangular merged region anchored at a zero-based (row, column)."""

    row: int = Field(..., ge=0)
    column: int = Field(..., ge=0)
    row_span: int = Field(1, ge=1)
    col_span: int = Field(1, ge=1)

    @property
    def last_row(self) -> int:
        return self.row + self.row_span - 1

    @property
    def last_column(self) -> int:
        return self.column + self.col_span - 1

    def overlaps(self, other: "MergeSpan") -> bool:
        return not (
            self.last_row < other.row
            or other.last_row < self.row
            or self.last_column < other.column
            or other.last_column < self.column
        )


class GridBlock(FrozenSchema):
    """A table region of the grid and the width it declares."""

    name: str
    first_row: int
    row_count: int
    width: int
    header_rows: int = 1

    @property
    def last_row(self) -> int:
        return self.first_row + self.row_count - 1


class GridSection(FrozenSchema):
    """Rows and merges of one block before it is placed into a grid."""

    block: GridBlock
    rows: list[list[GridCell]]
    merges: list[MergeSpan] = []


class ReportGrid(FrozenSchema):
    """Structural description of a report, ready for a spreadsheet renderer."""

    kind: ReportKind
    rows: list[list[GridCell]]
    merges: list[MergeSpan] = []
    column_widths: list[int] = []
    blocks: list[GridBlock] = []

    @property
    def width(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    @property
    def height(self) -> int:
        return len(self.rows)

    def cell(self, row: int, column: int) -> GridCell:
        return self.rows[row][column]

    def row_values(self, row: int) -> list:
        return [c.value for c in self.rows[row]]

    def block(self, name: str) -> GridBlock:
        for b in self.blocks:
            if b.name == name:
                return b
        raise KeyError(name)


class ReportMeta(FrozenSchema):
    """Period facts shown alongside the grid."""

    kind: ReportKind
    start: date
    end: date
    label: str
    instructional_day_count: int
    holidays_in_period: list[date] = []
    cohort: str | None = None


class AttendanceReport(FrozenSchema):
    """Everything produced for one report request."""

    meta: ReportMeta
    recaps: list[StudentRecap]
    grid: ReportGrid
    issues: IntegrityIssues
    filename: str
