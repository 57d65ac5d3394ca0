from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

import pytest

from class_attendance.attendance.model import AttendanceDetail, AttendanceRecord
from class_attendance.classes.model import ClassSchedule, SchoolClass
from class_attendance.container import assemble
from class_attendance.core.enums import AttendanceStatus, Role
from class_attendance.core.exceptions import ConflictError
from class_attendance.main import create_app
from class_attendance.users.model import Identity, User
from class_attendance.users.service import IdentityService

JWT_SECRET = "test-jwt-secret"


class InMemoryUsers:
    def __init__(self, users=()):
        self._users: dict[int, User] = {u.user_id: u for u in users}

    def add(self, user: User) -> User:
        self._users[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(int(user_id))

    def list_by_ids(self, user_ids):
        return [self._users[i] for i in sorted({int(i) for i in user_ids}) if i in self._users]

    def list_by_role(self, role: Role):
        return sorted((u for u in self._users.values() if u.role == role), key=lambda u: u.full_name)


class InMemoryAttendance:
    """Keyed by (class_id, student_id, attend_date) like the unique index in schema.sql."""

    def __init__(self, users: Optional[InMemoryUsers] = None):
        self._by_key: dict[tuple[int, int, datetime], AttendanceRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        self.users = users
        self.classes = None
        self.fail_for_students: set[int] = set()

    def all(self) -> list[AttendanceRecord]:
        return list(self._by_key.values())

    def _find_key(self, attendance_id: int):
        for k, v in self._by_key.items():
            if v.attendance_id == int(attendance_id):
                return k
        return None

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        k = self._find_key(attendance_id)
        return self._by_key[k] if k else None

    def upsert(self, *, class_id, student_id, attend_date, status, remarks, marked_by) -> AttendanceRecord:
        if student_id in self.fail_for_students:
            raise RuntimeError("storage unavailable")

        with self._lock:
            key = (int(class_id), int(student_id), attend_date)
            existing = self._by_key.get(key)
            if existing:
                rec = replace(existing, status=status, remarks=remarks, marked_by=marked_by)
            else:
                rec = AttendanceRecord(
                    attendance_id=self._next_id,
                    class_id=int(class_id),
                    student_id=int(student_id),
                    attend_date=attend_date,
                    status=status,
                    marked_by=int(marked_by),
                    remarks=remarks,
                    created_at=datetime(2024, 1, 1, 8, 0),
                )
                self._next_id += 1
            self._by_key[key] = rec
            return rec

    def update(self, *, attendance_id, status, remarks) -> bool:
        k = self._find_key(attendance_id)
        if not k:
            return False
        self._by_key[k] = replace(self._by_key[k], status=status, remarks=remarks)
        return True

    def delete(self, attendance_id) -> bool:
        k = self._find_key(attendance_id)
        if not k:
            return False
        del self._by_key[k]
        return True

    def delete_for_class(self, class_id: int) -> int:
        keys = [k for k in self._by_key if k[0] == int(class_id)]
        for k in keys:
            del self._by_key[k]
        return len(keys)

    def list_details(self, *, class_id=None, student_id=None, start=None, end=None):
        rows = []
        for r in self._by_key.values():
            if class_id is not None and r.class_id != class_id:
                continue
            if student_id is not None and r.student_id != student_id:
                continue
            if start is not None and r.attend_date < start:
                continue
            if end is not None and r.attend_date > end:
                continue
            rows.append(r)
        rows.sort(key=lambda r: (-r.attend_date.timestamp(), r.student_id))
        return [self._detail(r) for r in rows]

    def _detail(self, r: AttendanceRecord) -> AttendanceDetail:
        student = self.users.get_by_id(r.student_id) if self.users else None
        marker = self.users.get_by_id(r.marked_by) if self.users else None
        cls = self.classes.get_by_id(r.class_id) if self.classes else None
        return AttendanceDetail(
            attendance_id=r.attendance_id,
            class_id=r.class_id,
            student_id=r.student_id,
            attend_date=r.attend_date,
            status=r.status,
            marked_by=r.marked_by,
            remarks=r.remarks,
            created_at=r.created_at,
            student_name=student.full_name if student else None,
            student_email=student.email if student else None,
            class_name=cls.name if cls else None,
            class_code=cls.code if cls else None,
            marked_by_name=marker.full_name if marker else None,
        )


class InMemoryClasses:
    def __init__(self, attendance: Optional[InMemoryAttendance] = None):
        self._rows: dict[int, SchoolClass] = {}
        self._next_id = 1
        self.attendance = attendance

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        return self._rows.get(int(class_id))

    def get_by_code(self, code: str) -> Optional[SchoolClass]:
        return next((c for c in self._rows.values() if c.code == code), None)

    def create(self, *, name, code, faculty_id, schedule: ClassSchedule) -> int:
        if self.get_by_code(code):
            raise ConflictError("Class code already exists. Please use a different code.")
        cid = self._next_id
        self._next_id += 1
        self._rows[cid] = SchoolClass(
            class_id=cid,
            name=name,
            code=code,
            faculty_id=int(faculty_id),
            schedule=schedule,
            created_at=datetime(2024, 1, 1) + timedelta(minutes=cid),
        )
        return cid

    def add_student(self, *, class_id, student_id) -> bool:
        cls = self._rows[int(class_id)]
        if cls.has_student(student_id):
            return False
        self._rows[cls.class_id] = replace(cls, student_ids=cls.student_ids + (int(student_id),))
        return True

    def remove_student(self, *, class_id, student_id) -> bool:
        cls = self._rows[int(class_id)]
        if not cls.has_student(student_id):
            return False
        self._rows[cls.class_id] = replace(
            cls, student_ids=tuple(s for s in cls.student_ids if s != int(student_id))
        )
        return True

    def list_for_faculty(self, faculty_id):
        items = [c for c in self._rows.values() if c.faculty_id == int(faculty_id)]
        return sorted(items, key=lambda c: c.created_at, reverse=True)

    def list_for_student(self, student_id):
        items = [c for c in self._rows.values() if c.has_student(student_id)]
        return sorted(items, key=lambda c: c.created_at, reverse=True)

    def delete_cascade(self, class_id) -> int:
        removed = self.attendance.delete_for_class(class_id) if self.attendance else 0
        self._rows.pop(int(class_id), None)
        return removed


class RecordingCursor:
    def __init__(self, factory: "RecordingConnFactory"):
        self._factory = factory
        self._rows: list[dict] = []
        self.lastrowid = None
        self.rowcount = -1

    def execute(self, sql: str, params=()):
        self._factory.statements.append((" ".join(sql.split()), tuple(params)))
        step = self._factory.steps.pop(0) if self._factory.steps else {}
        if "error" in step:
            raise step["error"]
        self._rows = list(step.get("rows", []))
        self.lastrowid = step.get("lastrowid")
        self.rowcount = step.get("rowcount", len(self._rows))

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class RecordingConnection:
    def __init__(self, factory: "RecordingConnFactory"):
        self._factory = factory
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self, dictionary=False):
        return RecordingCursor(self._factory)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


class RecordingConnFactory:
    """Stands in for DatabaseConnection: records SQL and replays scripted results.

    Each entry of ``steps`` answers one execute() call: ``rows``, ``rowcount``,
    ``lastrowid`` or an ``error`` to raise.
    """

    def __init__(self):
        self.steps: list[dict] = []
        self.statements: list[tuple[str, tuple]] = []
        self.connections: list[RecordingConnection] = []

    def connect(self, *, with_database: bool = True):
        conn = RecordingConnection(self)
        self.connections.append(conn)
        return conn


FACULTY = User(user_id=1, full_name="Dr. Ada", email="ada@uni.test", role=Role.FACULTY)
OTHER_FACULTY = User(user_id=2, full_name="Dr. Bob", email="bob@uni.test", role=Role.FACULTY)
ADMIN = User(user_id=3, full_name="Admin", email="admin@uni.test", role=Role.ADMIN)
ALICE = User(user_id=10, full_name="Alice", email="alice@uni.test", role=Role.STUDENT)
BRIAN = User(user_id=11, full_name="Brian", email="brian@uni.test", role=Role.STUDENT)
CARLA = User(user_id=12, full_name="Carla", email="carla@uni.test", role=Role.STUDENT)


def identity_of(user: User) -> Identity:
    return Identity(user_id=user.user_id, role=user.role)


@pytest.fixture
def db():
    return RecordingConnFactory()


@pytest.fixture
def users_repo():
    return InMemoryUsers([FACULTY, OTHER_FACULTY, ADMIN, ALICE, BRIAN, CARLA])


@pytest.fixture
def attendance_repo(users_repo):
    return InMemoryAttendance(users_repo)


@pytest.fixture
def classes_repo(attendance_repo):
    repo = InMemoryClasses(attendance_repo)
    attendance_repo.classes = repo
    return repo


@pytest.fixture
def identity_service():
    return IdentityService(JWT_SECRET)


@pytest.fixture
def container(users_repo, classes_repo, attendance_repo, identity_service):
    return assemble(
        users_repo=users_repo,
        classes_repo=classes_repo,
        attendance_repo=attendance_repo,
        identity_service=identity_service,
    )


@pytest.fixture
def faculty():
    return identity_of(FACULTY)


@pytest.fixture
def other_faculty():
    return identity_of(OTHER_FACULTY)


@pytest.fixture
def admin():
    return identity_of(ADMIN)


@pytest.fixture
def alice():
    return identity_of(ALICE)


@pytest.fixture
def brian():
    return identity_of(BRIAN)


@pytest.fixture
def algebra(container, faculty):
    """A class owned by FACULTY with Alice and Brian enrolled."""

    cls = container.class_service.create_class(actor=faculty, name="Algebra", code="alg101")
    container.class_service.enroll(actor=faculty, class_id=cls.class_id, student_id=ALICE.user_id)
    return container.class_service.enroll(actor=faculty, class_id=cls.class_id, student_id=BRIAN.user_id)


@pytest.fixture
def app(container):
    return create_app(container=container, settings_module="class_attendance.config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header(identity_service):
    def _make(user: User) -> dict:
        return {"Authorization": f"Bearer {identity_service.issue_token(user.user_id, user.role)}"}

    return _make
