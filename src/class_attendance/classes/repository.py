from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClassSchedule, SchoolClass


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[SchoolClass]:
        raise NotImplementedError

    def create(self, *, name: str, code: str, faculty_id: int, schedule: ClassSchedule) -> int:
        """Insert a class and return class_id.

        Raises ConflictError when the code is already taken.
        """

        raise NotImplementedError

    def add_student(self, *, class_id: int, student_id: int) -> bool:
        """Add to the roster if absent. Returns True when a row was inserted."""

        raise NotImplementedError

    def remove_student(self, *, class_id: int, student_id: int) -> bool:
        raise NotImplementedError

    def list_for_faculty(self, faculty_id: int) -> Sequence[SchoolClass]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[SchoolClass]:
        raise NotImplementedError

    def delete_cascade(self, class_id: int) -> int:
        """Delete the class, its roster and its attendance in one transaction.

        Returns the number of attendance records removed.
        """

        raise NotImplementedError
