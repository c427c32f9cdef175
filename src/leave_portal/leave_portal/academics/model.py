from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AcademicYear:
    academic_year_id: int
    year: str
    is_active: bool = False


@dataclass(frozen=True)
class SchoolClass:
    class_id: int
    class_name: str
    homeroom_teacher_id: Optional[int] = None


@dataclass(frozen=True)
class ClassMembership:
    """A student's seat in a class for one academic year."""

    student_user_id: int
    academic_year_id: int
    school_class: SchoolClass

    @property
    def class_id(self) -> int:
        return self.school_class.class_id
