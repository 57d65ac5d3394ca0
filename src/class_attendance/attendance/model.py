from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's status in one class on one calendar day."""

    attendance_id: int
    class_id: int
    student_id: int
    attend_date: datetime
    status: AttendanceStatus
    marked_by: int
    remarks: str = ""
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceDetail:
    """Read-model for listings (record joined with student, class and marker names)."""

    attendance_id: int
    class_id: int
    student_id: int
    attend_date: datetime
    status: AttendanceStatus
    marked_by: int
    remarks: str = ""
    created_at: Optional[datetime] = None
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    class_name: Optional[str] = None
    class_code: Optional[str] = None
    marked_by_name: Optional[str] = None


@dataclass(frozen=True)
class MarkEntry:
    """One row of a mark request, as received.

    Values are left raw so the ledger can skip malformed rows instead of
    rejecting the whole batch.
    """

    student_id: Any
    status: Any = None
    remarks: Any = None

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any]) -> "MarkEntry":
        student_id = item.get("studentId", item.get("student_id"))
        return cls(student_id=student_id, status=item.get("status"), remarks=item.get("remarks"))
