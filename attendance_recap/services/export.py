"""Reference spreadsheet writer for report grids."""

import logging
import re
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from attendance_recap.models.report import CellTag
from attendance_recap.schemas.report import GridCell, ReportGrid

logger = logging.getLogger(__name__)

INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


def sheet_name(title: str) -> str:
    """Worksheet title Excel accepts: no []:*?/\\ and at most 31 characters."""
    cleaned = INVALID_SHEET_CHARS.sub("-", title).strip()
    return cleaned[:31] or "Sheet"


class XlsxGridWriter:
    """Draws a ReportGrid into an .xlsx workbook using openpyxl.

    Tags map to styling only; the grid decides values, merges and widths.
    """

    def __init__(self):
        # Styles
        self.title_font = Font(bold=True, size=14)
        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")
        self.holiday_fill = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
        self.weekend_fill = PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid")
        self.holiday_header_fill = PatternFill(start_color="C00000", end_color="C00000", fill_type="solid")
        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        self.center_align = Alignment(horizontal='center', vertical='center')
        self.left_align = Alignment(horizontal='left', vertical='center')

    def render(self, grid: ReportGrid, sheet_title: str = "Attendance Recap") -> bytes:
        """Render the grid to workbook bytes."""
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name(sheet_title)

        for row_idx, row in enumerate(grid.rows, start=1):
            for col_idx, grid_cell in enumerate(row, start=1):
                if grid_cell.value is None and not grid_cell.tags:
                    continue
                cell = ws.cell(row=row_idx, column=col_idx, value=grid_cell.value)
                self._style(cell, grid_cell, col_idx)

        for merge in grid.merges:
            ws.merge_cells(
                start_row=merge.row + 1,
                start_column=merge.column + 1,
                end_row=merge.last_row + 1,
                end_column=merge.last_column + 1,
            )

        for col_idx, width in enumerate(grid.column_widths, start=1):
            ws.column_dimensions[get_column_letter(col_idx)].width = width

        output = BytesIO()
        wb.save(output)
        output.seek(0)
        logger.info(
            f"[EXPORT] Rendered {grid.kind.value}: {grid.height} rows x {grid.width} cols, "
            f"{len(grid.merges)} merges"
        )
        return output.getvalue()

    def _style(self, cell, grid_cell: GridCell, col_idx: int) -> None:
        tags = grid_cell.tags
        if CellTag.TITLE in tags:
            cell.font = self.title_font
            cell.alignment = self.center_align
            return
        if CellTag.SEPARATOR in tags:
            return

        cell.border = self.thin_border
        # Name column reads better left-aligned
        cell.alignment = self.left_align if col_idx == 3 and CellTag.DATA in tags else self.center_align

        if CellTag.HEADER in tags:
            cell.font = self.header_font
            cell.fill = self.holiday_header_fill if CellTag.HOLIDAY in tags else self.header_fill
        elif CellTag.HOLIDAY in tags:
            cell.fill = self.holiday_fill
        elif CellTag.WEEKEND in tags:
            cell.fill = self.weekend_fill
