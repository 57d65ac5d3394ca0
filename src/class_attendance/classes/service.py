from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..access.policy import can_manage_class, can_view_class_roster, can_view_student_record, ensure
from ..common.validators import require_id, require_max_length, require_min_length, require_non_empty
from ..core.constants import (
    MAX_CLASS_CODE_LENGTH,
    MAX_CLASS_NAME_LENGTH,
    MAX_SCHEDULE_FIELD_LENGTH,
    MIN_CLASS_CODE_LENGTH,
)
from ..core.enums import Role
from ..core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from ..users.model import Identity, User
from ..users.repository import UserRepository
from .model import ClassDetail, ClassSchedule, SchoolClass
from .repository import ClassRepository

logger = logging.getLogger(__name__)


def _require_faculty(actor: Identity) -> None:
    ensure(actor.role == Role.FACULTY)


def _schedule_from(value: Optional[Mapping[str, Any]]) -> ClassSchedule:
    if not value:
        return ClassSchedule()
    if not isinstance(value, Mapping):
        raise ValidationError("Schedule must be an object")

    def _text(key: str) -> Optional[str]:
        v = value.get(key)
        if v is None:
            return None
        v = str(v).strip()
        return require_max_length(v, f"Schedule {key}", MAX_SCHEDULE_FIELD_LENGTH) or None

    return ClassSchedule(day=_text("day"), time=_text("time"))


class ClassService:
    """Use case: create classes and manage their rosters (faculty)."""

    def __init__(self, classes: ClassRepository, users: UserRepository):
        self._classes = classes
        self._users = users

    def _get_or_404(self, class_id: int) -> SchoolClass:
        cls = self._classes.get_by_id(int(class_id))
        if not cls:
            raise NotFoundError("Class not found")
        return cls

    def _get_owned(self, actor: Identity, class_id: int) -> SchoolClass:
        cls = self._get_or_404(class_id)
        ensure(can_manage_class(actor.role, actor.user_id, cls))
        return cls

    def create_class(
        self,
        *,
        actor: Identity,
        name: Any,
        code: Any,
        schedule: Optional[Mapping[str, Any]] = None,
    ) -> SchoolClass:
        _require_faculty(actor)

        if not name or not code:
            raise ValidationError("Name and code are required")
        if not isinstance(name, str) or not isinstance(code, str):
            raise ValidationError("Name and code must be strings")

        name = require_non_empty(name, "Name")
        code = require_non_empty(code, "Code").upper()
        require_min_length(code, "Class code", MIN_CLASS_CODE_LENGTH)
        require_max_length(name, "Name", MAX_CLASS_NAME_LENGTH)
        require_max_length(code, "Class code", MAX_CLASS_CODE_LENGTH)
        class_schedule = _schedule_from(schedule)

        if self._classes.get_by_code(code):
            raise ConflictError("Class code already exists. Please use a different code.")

        class_id = self._classes.create(
            name=name,
            code=code,
            faculty_id=actor.user_id,
            schedule=class_schedule,
        )
        logger.info("Class %s (%s) created by faculty %s", class_id, code, actor.user_id)
        return self._get_or_404(class_id)

    def enroll(self, *, actor: Identity, class_id: int, student_id: Any) -> SchoolClass:
        _require_faculty(actor)
        if student_id is None or student_id == "":
            raise ValidationError("Student ID is required")

        self._get_owned(actor, class_id)
        sid = require_id(student_id, "student ID")

        if self._classes.add_student(class_id=int(class_id), student_id=sid):
            logger.info("Student %s added to class %s", sid, class_id)
        else:
            logger.info("Student %s already in class %s", sid, class_id)

        # Read back so the caller never sees a roster that the store does not hold.
        cls = self._get_or_404(class_id)
        if not cls.has_student(sid):
            logger.error("Student %s missing from class %s after enroll; roster=%s", sid, class_id, cls.student_ids)
            raise InternalError("Failed to add student")
        return cls

    def unenroll(self, *, actor: Identity, class_id: int, student_id: Any) -> None:
        _require_faculty(actor)
        self._get_owned(actor, class_id)
        sid = require_id(student_id, "student ID")

        if not self._classes.remove_student(class_id=int(class_id), student_id=sid):
            logger.info("Student %s was not in class %s", sid, class_id)
            return

        cls = self._get_or_404(class_id)
        if cls.has_student(sid):
            logger.error("Student %s still in class %s after removal", sid, class_id)
            raise InternalError("Failed to remove student")
        logger.info("Student %s removed from class %s", sid, class_id)

    def delete_class(self, *, actor: Identity, class_id: int) -> None:
        _require_faculty(actor)
        self._get_owned(actor, class_id)

        removed = self._classes.delete_cascade(int(class_id))
        logger.info("Class %s deleted with %d attendance records", class_id, removed)

    def list_classes_for_faculty(self, *, actor: Identity) -> Sequence[SchoolClass]:
        _require_faculty(actor)
        return self._classes.list_for_faculty(actor.user_id)

    def list_classes_for_student(self, *, actor: Identity, student_id: Any) -> Sequence[SchoolClass]:
        ensure(can_view_student_record(actor.role, actor.user_id, student_id))
        sid = require_id(student_id, "student ID")
        return self._classes.list_for_student(sid)

    def get_roster(self, *, actor: Identity, class_id: int) -> list[User]:
        cls = self._get_or_404(class_id)
        ensure(can_view_class_roster(actor.role, actor.user_id, cls))
        return self.describe(cls).students

    def describe(self, school_class: SchoolClass) -> ClassDetail:
        """Resolve faculty and roster ids to directory users.

        Ids the directory does not know are kept as placeholders so the roster
        count always matches the stored roster.
        """

        ids = set(school_class.student_ids) | {school_class.faculty_id}
        by_id = {u.user_id: u for u in self._users.list_by_ids(ids)}

        students = [
            by_id.get(sid) or User(user_id=sid, full_name="", email="", role=Role.STUDENT)
            for sid in school_class.student_ids
        ]
        return ClassDetail(
            school_class=school_class,
            faculty=by_id.get(school_class.faculty_id),
            students=students,
        )
