from __future__ import annotations

import pytest

from attendance_recap.core.exceptions import ValidationError
from attendance_recap.models.report import CellTag
from attendance_recap.schemas.attendance import StudentRecap
from attendance_recap.schemas.report import MergeSpan
from attendance_recap.services.recap_block import RecapSummaryBlock


@pytest.fixture
def recap(ana):
    return StudentRecap(
        student=ana,
        present_count=12,
        sick_count=1,
        excused_count=1,
        unexcused_count=0,
        instructional_day_count=15,
        attendance_percentage=80,
    )


def test_merged_block_spreads_statistics(recap):
    section = RecapSummaryBlock(merge_width=2).build([recap], first_row=10)

    header, row = section.rows
    assert len(header) == 15
    assert [c.value for c in header][:5] == ["No", "Roll ID", "Name", "Present", None]
    assert [c.value for c in row] == [
        1, "01", "Ana", 12, None, 1, None, 1, None, 0, None, 15, None, 80, None,
    ]
    assert all(c.has(CellTag.HEADER) for c in header)
    assert all(c.has(CellTag.DATA) for c in row)

    assert len(section.merges) == 12
    assert section.merges[0] == MergeSpan(row=10, column=3, col_span=2)
    assert section.merges[5] == MergeSpan(row=10, column=13, col_span=2)
    assert section.merges[6] == MergeSpan(row=11, column=3, col_span=2)
    assert section.block.width == 15
    assert section.block.first_row == 10
    assert section.block.row_count == 2


def test_unmerged_block(recap):
    section = RecapSummaryBlock(merge_width=1).build([recap], first_row=0)

    assert section.merges == []
    assert [c.value for c in section.rows[0]] == [
        "No", "Roll ID", "Name", "Present", "Sick", "Excused", "Unexcused",
        "Instructional Days", "Percentage",
    ]
    assert [c.value for c in section.rows[1]] == [1, "01", "Ana", 12, 1, 1, 0, 15, 80]


def test_merge_width_is_independent_of_table_above(recap):
    block = RecapSummaryBlock(merge_width=4)
    assert block.width == 27
    section = block.build([recap], first_row=0)
    assert all(m.col_span == 4 for m in section.merges)


def test_empty_recaps_produce_header_only(recap):
    section = RecapSummaryBlock().build([], first_row=3)
    assert len(section.rows) == 1
    assert section.block.row_count == 1


@pytest.mark.parametrize("width", [0, -2])
def test_rejects_non_positive_merge_width(width):
    with pytest.raises(ValidationError):
        RecapSummaryBlock(merge_width=width)
