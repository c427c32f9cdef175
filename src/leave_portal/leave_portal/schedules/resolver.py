from __future__ import annotations

import logging
from datetime import datetime

from ..common.datetime_utils import to_school_local
from ..core.constants import SCHOOL_UTC_OFFSET_HOURS
from ..core.enums import DayOfWeek
from ..core.exceptions import HolidayError, NoScheduleMatch
from .model import LessonSchedule
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleResolver:
    """Find the lesson period a class is in at a given instant."""

    def __init__(self, schedules: ScheduleRepository, *, utc_offset_hours: int = SCHOOL_UTC_OFFSET_HOURS):
        self._schedules = schedules
        self._utc_offset_hours = int(utc_offset_hours)

    def resolve(self, request_time: datetime, class_id: int, academic_year_id: int) -> LessonSchedule:
        local = to_school_local(request_time, offset_hours=self._utc_offset_hours)
        weekday = local.weekday()
        if weekday >= 5:
            raise HolidayError("Izin tidak dapat diajukan di hari libur (Sabtu/Minggu).")

        at = local.time().replace(second=0, microsecond=0)
        matches = list(
            self._schedules.find_for_class_at(
                class_id=int(class_id),
                academic_year_id=int(academic_year_id),
                day_of_week=DayOfWeek.from_weekday(weekday),
                at=at,
            )
        )
        if not matches:
            raise NoScheduleMatch(
                "Tidak ditemukan jadwal pelajaran pada jam tersebut. "
                "Mungkin jam pelajaran kosong atau di luar jam sekolah."
            )

        if len(matches) > 1:
            logger.warning(
                "overlapping schedules for class=%s year=%s at %s %s: %s; using schedule %s",
                class_id,
                academic_year_id,
                DayOfWeek.from_weekday(weekday).value,
                at.strftime("%H:%M"),
                [m.schedule_id for m in matches],
                matches[0].schedule_id,
            )
        return matches[0]
