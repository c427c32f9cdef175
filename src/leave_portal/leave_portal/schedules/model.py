from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from ..core.enums import DayOfWeek


@dataclass(frozen=True)
class TeachingAssignment:
    assignment_id: int
    teacher_user_id: int
    class_id: int
    subject_id: int
    subject_name: str = ""


@dataclass(frozen=True)
class LessonSchedule:
    """A recurring weekly lesson period (read-only input)."""

    schedule_id: int
    academic_year_id: int
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    assignment: TeachingAssignment

    def covers(self, at: time) -> bool:
        return self.start_time <= at <= self.end_time
