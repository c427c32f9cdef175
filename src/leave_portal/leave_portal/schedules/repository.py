from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from ..core.enums import DayOfWeek
from .model import LessonSchedule


class ScheduleRepository(Protocol):
    def find_for_class_at(
        self,
        *,
        class_id: int,
        academic_year_id: int,
        day_of_week: DayOfWeek,
        at: time,
    ) -> Sequence[LessonSchedule]:
        """Periods of the class whose [start_time, end_time] contains ``at``.

        Ordered by start_time, then schedule_id.
        """

        raise NotImplementedError

    def get_by_id(self, schedule_id: int) -> Optional[LessonSchedule]:
        raise NotImplementedError
