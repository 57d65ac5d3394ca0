from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceDetail, AttendanceRecord
from .repository import AttendanceRepository

_RECORD_COLUMNS = "attendance_id, class_id, student_id, attend_date, status, remarks, marked_by, created_at"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        class_id=int(r["class_id"]),
        student_id=int(r["student_id"]),
        attend_date=r["attend_date"],
        status=AttendanceStatus(r["status"]),
        marked_by=int(r["marked_by"]),
        remarks=r.get("remarks") or "",
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            # LAST_INSERT_ID(attendance_id) makes lastrowid report the existing id on update.
            cur.execute(
                """
                INSERT INTO attendance_records(class_id, student_id, attend_date, status, remarks, marked_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    attendance_id=LAST_INSERT_ID(attendance_id),
                    status=VALUES(status),
                    remarks=VALUES(remarks),
                    marked_by=VALUES(marked_by)
                """,
                (int(class_id), int(student_id), attend_date, status.value, remarks, int(marked_by)),
            )
            attendance_id = int(cur.lastrowid)

            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE attendance_id=%s",
                (attendance_id,),
            )
            return _to_record(fetchone(cur))

    def update(self, *, attendance_id: int, status: AttendanceStatus, remarks: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, remarks=%s
                WHERE attendance_id=%s
                """,
                (status.value, remarks, int(attendance_id)),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_details(
        self,
        *,
        class_id: Optional[int] = None,
        student_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceDetail]:
        clauses: list[str] = []
        params: list[object] = []

        if class_id is not None:
            clauses.append("ar.class_id=%s")
            params.append(int(class_id))
        if student_id is not None:
            clauses.append("ar.student_id=%s")
            params.append(int(student_id))
        if start is not None:
            clauses.append("ar.attend_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("ar.attend_date <= %s")
            params.append(end)

        where = " AND ".join(clauses) if clauses else "1=1"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    ar.attendance_id, ar.class_id, ar.student_id, ar.attend_date,
                    ar.status, ar.remarks, ar.marked_by, ar.created_at,
                    s.full_name AS student_name, s.email AS student_email,
                    c.class_name, c.class_code,
                    m.full_name AS marked_by_name
                FROM attendance_records ar
                LEFT JOIN users s ON s.user_id = ar.student_id
                LEFT JOIN classes c ON c.class_id = ar.class_id
                LEFT JOIN users m ON m.user_id = ar.marked_by
                WHERE {where}
                ORDER BY ar.attend_date DESC, ar.student_id ASC
                """,
                tuple(params),
            )
            rows = fetchall(cur)

            return [
                AttendanceDetail(
                    attendance_id=int(r["attendance_id"]),
                    class_id=int(r["class_id"]),
                    student_id=int(r["student_id"]),
                    attend_date=r["attend_date"],
                    status=AttendanceStatus(r["status"]),
                    marked_by=int(r["marked_by"]),
                    remarks=r.get("remarks") or "",
                    created_at=r.get("created_at"),
                    student_name=r.get("student_name"),
                    student_email=r.get("student_email"),
                    class_name=r.get("class_name"),
                    class_code=r.get("class_code"),
                    marked_by_name=r.get("marked_by_name"),
                )
                for r in rows
            ]
