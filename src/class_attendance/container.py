from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.repository import ClassRepository
from .classes.service import ClassService
from .core.constants import DEFAULT_JWT_ALGORITHM, DEFAULT_TOKEN_TTL_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .stats.service import StatsService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import IdentityService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    classes_repo: ClassRepository
    attendance_repo: AttendanceRepository

    identity_service: IdentityService
    user_service: UserService
    class_service: ClassService
    attendance_service: AttendanceService
    stats_service: StatsService


def assemble(
    *,
    users_repo: UserRepository,
    classes_repo: ClassRepository,
    attendance_repo: AttendanceRepository,
    identity_service: IdentityService,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of the given repositories (MySQL or in-memory)."""

    return Container(
        conn=conn,
        users_repo=users_repo,
        classes_repo=classes_repo,
        attendance_repo=attendance_repo,
        identity_service=identity_service,
        user_service=UserService(users_repo),
        class_service=ClassService(classes_repo, users_repo),
        attendance_service=AttendanceService(attendance_repo, classes_repo),
        stats_service=StatsService(attendance_repo, classes_repo),
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    jwt_algorithm: str = DEFAULT_JWT_ALGORITHM,
    token_ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        classes_repo=MySQLClassRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        identity_service=IdentityService(
            jwt_secret,
            algorithm=jwt_algorithm,
            token_ttl_hours=token_ttl_hours,
        ),
    )
