from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..core.enums import DayOfWeek
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import LessonSchedule, TeachingAssignment
from .repository import ScheduleRepository

_SELECT = """
    SELECT sc.schedule_id, sc.academic_year_id, sc.day_of_week, sc.start_time, sc.end_time,
           ta.assignment_id, ta.teacher_user_id, ta.class_id, ta.subject_id,
           s.subject_name
    FROM schedules sc
    JOIN teacher_assignments ta ON ta.assignment_id = sc.assignment_id
    JOIN subjects s ON s.subject_id = ta.subject_id
"""


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> LessonSchedule:
        return LessonSchedule(
            schedule_id=int(r["schedule_id"]),
            academic_year_id=int(r["academic_year_id"]),
            day_of_week=DayOfWeek(r["day_of_week"]),
            start_time=normalize_mysql_time(r["start_time"]),
            end_time=normalize_mysql_time(r["end_time"]),
            assignment=TeachingAssignment(
                assignment_id=int(r["assignment_id"]),
                teacher_user_id=int(r["teacher_user_id"]),
                class_id=int(r["class_id"]),
                subject_id=int(r["subject_id"]),
                subject_name=r.get("subject_name") or "",
            ),
        )

    def find_for_class_at(
        self,
        *,
        class_id: int,
        academic_year_id: int,
        day_of_week: DayOfWeek,
        at: time,
    ) -> Sequence[LessonSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE ta.class_id=%s
                  AND sc.academic_year_id=%s
                  AND sc.day_of_week=%s
                  AND sc.start_time <= %s
                  AND sc.end_time >= %s
                ORDER BY sc.start_time ASC, sc.schedule_id ASC
                """,
                (int(class_id), int(academic_year_id), day_of_week.value, at, at),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def get_by_id(self, schedule_id: int) -> Optional[LessonSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE sc.schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return self._to_model(r) if r else None
