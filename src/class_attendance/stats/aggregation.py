"""Attendance statistics derived from ledger records.

Nothing here touches storage: every function takes the records to count and
returns fresh values, so results always reflect the ledger as it was read.
Late arrivals count toward the attendance percentage and are tallied apart.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Protocol

from ..core.constants import STATS_PERCENT_PLACES, SUMMARY_PERCENT_PLACES
from ..core.enums import AttendanceStatus


class CountableRecord(Protocol):
    class_id: int
    student_id: int
    status: AttendanceStatus


@dataclass
class StatusTally:
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0

    def add(self, status: AttendanceStatus) -> None:
        self.total += 1
        if status == AttendanceStatus.PRESENT:
            self.present += 1
        elif status == AttendanceStatus.LATE:
            self.late += 1
        elif status == AttendanceStatus.ABSENT:
            self.absent += 1

    def percentage(self, places: int) -> float:
        if self.total <= 0:
            return 0
        return round_half_up((self.present + self.late) / self.total * 100, places)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AttendanceStats:
    total: int
    present: int
    absent: int
    late: int
    percentage: float

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class StudentSummary:
    student: dict
    tally: StatusTally = field(default_factory=StatusTally)
    percentage: float = 0

    def as_dict(self) -> dict:
        return {"student": self.student, **self.tally.as_dict(), "percentage": self.percentage}


def round_half_up(value: float, places: int) -> float:
    """Round like JavaScript's toFixed for display (2.25 -> 2.3, not 2.2)."""

    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def compute_stats(records: Iterable[CountableRecord]) -> AttendanceStats:
    tally = StatusTally()
    for r in records:
        tally.add(r.status)
    return AttendanceStats(
        total=tally.total,
        present=tally.present,
        absent=tally.absent,
        late=tally.late,
        percentage=tally.percentage(STATS_PERCENT_PLACES),
    )


def compute_class_wise_stats(records: Iterable[CountableRecord]) -> dict[int, StatusTally]:
    by_class: dict[int, StatusTally] = {}
    for r in records:
        by_class.setdefault(r.class_id, StatusTally()).add(r.status)
    return by_class


def _student_info(record: Any) -> dict:
    return {
        "id": record.student_id,
        "name": getattr(record, "student_name", None),
        "email": getattr(record, "student_email", None),
    }


def compute_student_wise_summary(
    records: Iterable[CountableRecord],
    *,
    places: Optional[int] = None,
) -> dict[int, StudentSummary]:
    """Per-student tallies for a class roster view.

    Percentages here use one decimal place, unlike compute_stats.
    """

    places = SUMMARY_PERCENT_PLACES if places is None else places

    by_student: dict[int, StudentSummary] = {}
    for r in records:
        summary = by_student.get(r.student_id)
        if summary is None:
            summary = StudentSummary(student=_student_info(r))
            by_student[r.student_id] = summary
        summary.tally.add(r.status)

    for summary in by_student.values():
        summary.percentage = summary.tally.percentage(places)
    return by_student
