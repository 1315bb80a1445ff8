"""Per-student attendance aggregation over a reporting period."""

import logging
from collections.abc import Sequence

from attendance_recap.models.attendance import AttendanceStatus, DuplicatePolicy
from attendance_recap.schemas.attendance import (
    AggregationResult,
    AttendanceRecord,
    IntegrityIssues,
    PeriodSpec,
    Student,
    StudentId,
    StudentRecap,
)
from attendance_recap.services.school_calendar import SchoolCalendar

logger = logging.getLogger(__name__)


def attendance_percentage(present_count: int, instructional_day_count: int) -> int:
    """Present days as a whole percentage of instructional days, halves rounded up.

    Clamped to 0-100; records on non-instructional days can push present_count
    above the instructional day count.
    """
    if instructional_day_count <= 0:
        return 0
    percentage = (present_count * 200 + instructional_day_count) // (2 * instructional_day_count)
    return max(0, min(100, percentage))


class AttendanceAggregator:
    """Turns a roster and raw records into one StudentRecap per student."""

    def __init__(self, duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIRST):
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)

    def aggregate(
        self,
        roster: Sequence[Student],
        records: Sequence[AttendanceRecord],
        period: PeriodSpec,
        calendar: SchoolCalendar,
    ) -> list[StudentRecap]:
        """Recaps in roster order, one per student."""
        return self.aggregate_with_issues(roster, records, period, calendar).recaps

    def aggregate_with_issues(
        self,
        roster: Sequence[Student],
        records: Sequence[AttendanceRecord],
        period: PeriodSpec,
        calendar: SchoolCalendar,
    ) -> AggregationResult:
        """Aggregate and report the records that were dropped along the way."""
        instructional_day_count = len(
            calendar.instructional_days_in_range(period.start, period.end)
        )
        roster_ids = {student.id for student in roster}

        out_of_period = 0
        unknown_student = 0
        duplicates = 0
        unknown_student_ids: set[StudentId] = set()

        # student_id -> {iso date -> record}, insertion order follows input order
        by_student: dict[StudentId, dict[str, AttendanceRecord]] = {}
        for record in records:
            if not period.contains(record.attendance_date):
                out_of_period += 1
                continue
            if record.student_id not in roster_ids:
                unknown_student += 1
                unknown_student_ids.add(record.student_id)
                continue

            day_key = record.attendance_date.isoformat()
            student_days = by_student.setdefault(record.student_id, {})
            if day_key in student_days:
                duplicates += 1
                if self.duplicate_policy == DuplicatePolicy.LAST:
                    student_days[day_key] = record
                continue
            student_days[day_key] = record

        unrecognized = 0
        recaps = []
        for student in roster:
            counts = dict.fromkeys(AttendanceStatus, 0)
            daily_log: dict[str, AttendanceStatus] = {}

            for day_key, record in by_student.get(student.id, {}).items():
                status = record.recognized_status
                if status is None:
                    unrecognized += 1
                    continue
                counts[status] += 1
                daily_log[day_key] = status

            recaps.append(StudentRecap(
                student=student,
                present_count=counts[AttendanceStatus.PRESENT],
                sick_count=counts[AttendanceStatus.SICK],
                excused_count=counts[AttendanceStatus.EXCUSED],
                unexcused_count=counts[AttendanceStatus.UNEXCUSED],
                instructional_day_count=instructional_day_count,
                attendance_percentage=attendance_percentage(
                    counts[AttendanceStatus.PRESENT], instructional_day_count
                ),
                daily_log=dict(sorted(daily_log.items())),
            ))

        issues = IntegrityIssues(
            duplicate_records=duplicates,
            unknown_student_records=unknown_student,
            unrecognized_status_records=unrecognized,
            out_of_period_records=out_of_period,
        )
        self._log_issues(issues, unknown_student_ids)

        logger.info(
            f"[AGGREGATE] {len(recaps)} students, {len(records)} records, "
            f"{instructional_day_count} instructional days ({period.start} to {period.end})"
        )
        return AggregationResult(
            recaps=recaps,
            instructional_day_count=instructional_day_count,
            issues=issues,
        )

    def _log_issues(self, issues: IntegrityIssues, unknown_student_ids: set[StudentId]) -> None:
        if issues.duplicate_records:
            logger.warning(
                f"[AGGREGATE] Ignored {issues.duplicate_records} duplicate same-day records "
                f"(kept {self.duplicate_policy.value} occurrence)"
            )
        if issues.unknown_student_records:
            sample = sorted(str(i) for i in unknown_student_ids)
            logger.warning(
                f"[AGGREGATE] Dropped {issues.unknown_student_records} records for students "
                f"not in roster: {sample[:10]}{'...' if len(sample) > 10 else ''}"
            )
        if issues.unrecognized_status_records:
            logger.warning(
                f"[AGGREGATE] Dropped {issues.unrecognized_status_records} records "
                f"with unrecognized status"
            )
        if issues.out_of_period_records:
            logger.debug(f"[AGGREGATE] Skipped {issues.out_of_period_records} records outside period")
