from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..access.policy import can_manage_class, can_view_student_record, ensure
from ..classes.repository import ClassRepository
from ..common.datetime_utils import DateLike, day_bounds, optional_range, start_of_day
from ..common.validators import parse_id, require_id, require_max_length
from ..core.constants import MAX_REMARKS_LENGTH
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import Identity
from .model import AttendanceDetail, AttendanceRecord, MarkEntry
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_status(value: Any, *, default: Optional[AttendanceStatus] = None) -> Optional[AttendanceStatus]:
    if value is None or value == "":
        return default
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}")


class AttendanceService:
    """Use case: mark, correct and query attendance records."""

    def __init__(self, attendance: AttendanceRepository, classes: ClassRepository):
        self._attendance = attendance
        self._classes = classes

    def _ensure_owner_of_record(self, actor: Identity, attendance_id: int) -> AttendanceRecord:
        ensure(actor.role == Role.FACULTY)

        rec = self._attendance.get_by_id(int(attendance_id))
        if not rec:
            raise NotFoundError("Attendance record not found")

        cls = self._classes.get_by_id(rec.class_id)
        ensure(cls is not None and can_manage_class(actor.role, actor.user_id, cls))
        return rec

    def mark_batch(
        self,
        *,
        actor: Identity,
        class_id: Any,
        date: Optional[DateLike],
        entries: Any,
    ) -> list[AttendanceRecord]:
        """Upsert one record per entry for (class, student, day).

        Bad entries are logged and skipped; the rest of the batch still applies.
        Re-running the same batch updates the same rows.
        """

        ensure(actor.role == Role.FACULTY)
        if not class_id or not date or entries is None or not isinstance(entries, (list, tuple)):
            raise ValidationError("Invalid data")

        cid = require_id(class_id, "class ID")
        cls = self._classes.get_by_id(cid)
        ensure(cls is not None and can_manage_class(actor.role, actor.user_id, cls))

        attend_date = start_of_day(date)

        results: list[AttendanceRecord] = []
        for entry in entries:
            if isinstance(entry, Mapping):
                entry = MarkEntry.from_mapping(entry)
            if not isinstance(entry, MarkEntry):
                logger.warning("Skipping malformed attendance entry: %r", entry)
                continue

            student_id = parse_id(entry.student_id)
            if student_id is None:
                logger.warning("Skipping attendance entry with invalid studentId: %r", entry.student_id)
                continue

            try:
                status = parse_status(entry.status, default=AttendanceStatus.ABSENT)
            except ValidationError:
                logger.warning("Skipping student %s: invalid status %r", student_id, entry.status)
                continue

            remarks = "" if entry.remarks is None else str(entry.remarks)
            if len(remarks) > MAX_REMARKS_LENGTH:
                logger.warning(
                    "Skipping student %s: remarks longer than %d characters", student_id, MAX_REMARKS_LENGTH
                )
                continue

            try:
                rec = self._attendance.upsert(
                    class_id=cid,
                    student_id=student_id,
                    attend_date=attend_date,
                    status=status,
                    remarks=remarks,
                    marked_by=actor.user_id,
                )
            except Exception:
                logger.exception("Failed to mark attendance for student %s in class %s", student_id, cid)
                continue

            results.append(rec)
            logger.debug("Attendance marked for student %s on %s", student_id, attend_date.date())

        logger.info(
            "Marked %d/%d attendance entries for class %s on %s",
            len(results),
            len(entries),
            cid,
            attend_date.date(),
        )
        return results

    def update_record(
        self,
        *,
        actor: Identity,
        attendance_id: int,
        status: Any = None,
        remarks: Any = None,
    ) -> AttendanceRecord:
        rec = self._ensure_owner_of_record(actor, attendance_id)

        new_status = parse_status(status, default=rec.status)
        new_remarks = rec.remarks if remarks is None else str(remarks)
        require_max_length(new_remarks, "Remarks", MAX_REMARKS_LENGTH)

        if not self._attendance.update(attendance_id=rec.attendance_id, status=new_status, remarks=new_remarks):
            raise NotFoundError("Attendance record not found")

        updated = self._attendance.get_by_id(rec.attendance_id)
        if not updated:
            raise NotFoundError("Attendance record not found")
        return updated

    def delete_record(self, *, actor: Identity, attendance_id: int) -> None:
        rec = self._ensure_owner_of_record(actor, attendance_id)
        if not self._attendance.delete(rec.attendance_id):
            raise NotFoundError("Attendance record not found")
        logger.info("Attendance record %s deleted by faculty %s", rec.attendance_id, actor.user_id)

    def get_by_class_and_date(self, *, actor: Identity, class_id: int, date: DateLike) -> Sequence[AttendanceDetail]:
        start, end = day_bounds(date)
        return self._attendance.list_details(class_id=int(class_id), start=start, end=end)

    def get_by_student(
        self,
        *,
        actor: Identity,
        student_id: Any,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        class_id: Any = None,
    ) -> Sequence[AttendanceDetail]:
        ensure(can_view_student_record(actor.role, actor.user_id, student_id))
        sid = require_id(student_id, "student ID")

        cid = None
        if class_id is not None and class_id != "":
            cid = require_id(class_id, "class ID")

        bounds = optional_range(start, end)
        lo, hi = bounds if bounds else (None, None)

        return self._attendance.list_details(student_id=sid, class_id=cid, start=lo, end=hi)
