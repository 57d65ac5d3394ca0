from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role carried by the identity token."""

    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"


class AttendanceStatus(str, Enum):
    """Attendance status as stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
