"""Access rules for classes, rosters and attendance records.

Every predicate is pure: callers pass the role and id from the request's
Identity plus the entity being touched. Services call ``ensure`` before any
mutation or sensitive read so a denied check always surfaces as
AuthorizationError instead of an empty result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.enums import Role
from ..core.exceptions import AuthorizationError

if TYPE_CHECKING:
    from ..classes.model import SchoolClass


def _same_id(a: Any, b: Any) -> bool:
    return a is not None and b is not None and str(a).strip() == str(b).strip()


def can_manage_class(role: Role, user_id: int, school_class: "SchoolClass") -> bool:
    return role == Role.FACULTY and _same_id(user_id, school_class.faculty_id)


def can_view_student_record(role: Role, user_id: int, target_student_id: Any) -> bool:
    if role in {Role.FACULTY, Role.ADMIN}:
        return True
    return role == Role.STUDENT and _same_id(user_id, target_student_id)


def can_view_class_roster(role: Role, user_id: int, school_class: "SchoolClass") -> bool:
    if role == Role.FACULTY:
        return _same_id(user_id, school_class.faculty_id)
    if role == Role.STUDENT:
        return school_class.has_student(user_id)
    return False


def can_view_class_summary(role: Role) -> bool:
    return role in {Role.FACULTY, Role.ADMIN}


def ensure(allowed: bool, message: str = "Access denied") -> None:
    if not allowed:
        raise AuthorizationError(message)
