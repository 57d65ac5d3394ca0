from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..access.policy import can_view_class_summary, can_view_student_record, ensure
from ..attendance.repository import AttendanceRepository
from ..classes.model import SchoolClass
from ..classes.repository import ClassRepository
from ..common.datetime_utils import DateLike, optional_range
from ..common.validators import require_id
from ..core.exceptions import NotFoundError
from ..users.model import Identity
from .aggregation import (
    AttendanceStats,
    StatusTally,
    StudentSummary,
    compute_class_wise_stats,
    compute_stats,
    compute_student_wise_summary,
)


@dataclass(frozen=True)
class StudentStats:
    stats: AttendanceStats
    class_stats: dict[int, StatusTally]


@dataclass(frozen=True)
class ClassSummary:
    school_class: SchoolClass
    summary: list[StudentSummary]
    total_days: Optional[int]


class StatsService:
    def __init__(self, attendance: AttendanceRepository, classes: ClassRepository):
        self._attendance = attendance
        self._classes = classes

    def student_stats(self, *, actor: Identity, student_id: Any) -> StudentStats:
        ensure(can_view_student_record(actor.role, actor.user_id, student_id))
        sid = require_id(student_id, "student ID")

        records = self._attendance.list_details(student_id=sid)
        return StudentStats(stats=compute_stats(records), class_stats=compute_class_wise_stats(records))

    def class_summary(
        self,
        *,
        actor: Identity,
        class_id: int,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> ClassSummary:
        cls = self._classes.get_by_id(int(class_id))
        if not cls:
            raise NotFoundError("Class not found")
        ensure(can_view_class_summary(actor.role))

        bounds = optional_range(start, end)
        lo, hi = bounds if bounds else (None, None)

        records = self._attendance.list_details(class_id=cls.class_id, start=lo, end=hi)
        summary = list(compute_student_wise_summary(records).values())

        total_days = None
        if bounds:
            total_days = (hi.date() - lo.date()).days + 1

        return ClassSummary(school_class=cls, summary=summary, total_days=total_days)
