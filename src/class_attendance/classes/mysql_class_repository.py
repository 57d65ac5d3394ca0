from __future__ import annotations

from typing import Optional, Sequence

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import ClassSchedule, SchoolClass
from .repository import ClassRepository

_CLASS_COLUMNS = "class_id, class_name, class_code, faculty_id, schedule_day, schedule_time, created_at"


def _load_rosters(cur, class_ids: Sequence[int]) -> dict[int, tuple[int, ...]]:
    if not class_ids:
        return {}
    cur.execute(
        f"""
        SELECT class_id, student_id
        FROM class_students
        WHERE class_id IN ({in_clause(class_ids)})
        ORDER BY enrolled_at ASC, student_id ASC
        """,
        tuple(class_ids),
    )
    rosters: dict[int, list[int]] = {int(cid): [] for cid in class_ids}
    for r in fetchall(cur):
        rosters[int(r["class_id"])].append(int(r["student_id"]))
    return {cid: tuple(ids) for cid, ids in rosters.items()}


def _to_classes(cur, rows: list[dict]) -> list[SchoolClass]:
    rosters = _load_rosters(cur, [int(r["class_id"]) for r in rows])
    return [
        SchoolClass(
            class_id=int(r["class_id"]),
            name=r["class_name"],
            code=r["class_code"],
            faculty_id=int(r["faculty_id"]),
            student_ids=rosters.get(int(r["class_id"]), ()),
            schedule=ClassSchedule(day=r.get("schedule_day"), time=r.get("schedule_time")),
            created_at=r.get("created_at"),
        )
        for r in rows
    ]


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CLASS_COLUMNS} FROM classes WHERE {where}", params)
            r = fetchone(cur)
            if not r:
                return None
            return _to_classes(cur, [r])[0]

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        return self._get_one("class_id=%s", (int(class_id),))

    def get_by_code(self, code: str) -> Optional[SchoolClass]:
        return self._get_one("class_code=%s", (code,))

    def create(self, *, name: str, code: str, faculty_id: int, schedule: ClassSchedule) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO classes(class_name, class_code, faculty_id, schedule_day, schedule_time)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (name, code, int(faculty_id), schedule.day, schedule.time),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("Class code already exists. Please use a different code.") from e
            raise

    def add_student(self, *, class_id: int, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # The (class_id, student_id) primary key makes this add-if-absent atomic.
            cur.execute(
                "INSERT IGNORE INTO class_students(class_id, student_id) VALUES(%s,%s)",
                (int(class_id), int(student_id)),
            )
            return cur.rowcount > 0

    def remove_student(self, *, class_id: int, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM class_students WHERE class_id=%s AND student_id=%s",
                (int(class_id), int(student_id)),
            )
            return cur.rowcount > 0

    def list_for_faculty(self, faculty_id: int) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CLASS_COLUMNS}
                FROM classes
                WHERE faculty_id=%s
                ORDER BY created_at DESC, class_id DESC
                """,
                (int(faculty_id),),
            )
            return _to_classes(cur, fetchall(cur))

    def list_for_student(self, student_id: int) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.class_id, c.class_name, c.class_code, c.faculty_id,
                       c.schedule_day, c.schedule_time, c.created_at
                FROM classes c
                JOIN class_students cs ON cs.class_id = c.class_id
                WHERE cs.student_id=%s
                ORDER BY c.created_at DESC, c.class_id DESC
                """,
                (int(student_id),),
            )
            return _to_classes(cur, fetchall(cur))

    def delete_cascade(self, class_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE class_id=%s", (int(class_id),))
            removed = int(cur.rowcount)
            cur.execute("DELETE FROM class_students WHERE class_id=%s", (int(class_id),))
            cur.execute("DELETE FROM classes WHERE class_id=%s", (int(class_id),))
            return removed
