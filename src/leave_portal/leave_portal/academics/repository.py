from __future__ import annotations

from typing import Optional, Protocol, Set

from .model import AcademicYear, ClassMembership, SchoolClass


class AcademicRepository(Protocol):
    """Read-only view of the academic structure (years, classes, members)."""

    def get_active_academic_year(self) -> Optional[AcademicYear]:
        raise NotImplementedError

    def get_class_membership(self, *, student_user_id: int, academic_year_id: int) -> Optional[ClassMembership]:
        raise NotImplementedError

    def list_classmate_ids(self, *, class_id: int, academic_year_id: int) -> Set[int]:
        """All student ids seated in the class for the year (requester included)."""

        raise NotImplementedError

    def get_class(self, class_id: int) -> Optional[SchoolClass]:
        raise NotImplementedError
