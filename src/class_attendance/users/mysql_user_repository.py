from __future__ import annotations

from typing import Iterable, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .model import User
from .repository import UserRepository


def _to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        full_name=r["full_name"],
        email=r["email"],
        role=Role(r["role"]),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        ids = sorted({int(i) for i in user_ids})
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT user_id, full_name, email, role FROM users WHERE user_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, full_name, email, role
                FROM users
                WHERE role=%s
                ORDER BY full_name ASC
                """,
                (role.value,),
            )
            return [_to_user(r) for r in fetchall(cur)]
