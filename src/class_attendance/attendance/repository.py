from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceDetail, AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        class_id: int,
        student_id: int,
        attend_date: datetime,
        status: AttendanceStatus,
        remarks: str,
        marked_by: int,
    ) -> AttendanceRecord:
        """Insert or overwrite the record keyed by (class_id, student_id, attend_date).

        Must be a single storage-level operation so concurrent marks for the
        same key can never produce two rows. An existing row keeps its id.
        """

        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        remarks: str,
    ) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_details(
        self,
        *,
        class_id: Optional[int] = None,
        student_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceDetail]:
        """List records newest first; every given filter is ANDed, date bounds inclusive."""

        raise NotImplementedError
