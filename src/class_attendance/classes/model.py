from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..users.model import User


@dataclass(frozen=True)
class ClassSchedule:
    day: Optional[str] = None
    time: Optional[str] = None


@dataclass(frozen=True)
class SchoolClass:
    """Domain entity: a class owned by one faculty member, with its roster."""

    class_id: int
    name: str
    code: str
    faculty_id: int
    student_ids: tuple[int, ...] = ()
    schedule: ClassSchedule = field(default_factory=ClassSchedule)
    created_at: Optional[datetime] = None

    def has_student(self, student_id) -> bool:
        sid = str(student_id).strip()
        return any(str(s) == sid for s in self.student_ids)


@dataclass(frozen=True)
class ClassDetail:
    """Read-model: class with faculty and roster resolved to users."""

    school_class: SchoolClass
    faculty: Optional[User]
    students: list[User]
