from __future__ import annotations

from typing import Optional, Set

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AcademicYear, ClassMembership, SchoolClass
from .repository import AcademicRepository


class MySQLAcademicRepository(AcademicRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active_academic_year(self) -> Optional[AcademicYear]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT academic_year_id, year, is_active
                FROM academic_years
                WHERE is_active=1
                ORDER BY academic_year_id DESC
                LIMIT 1
                """
            )
            r = fetchone(cur)
            if not r:
                return None
            return AcademicYear(
                academic_year_id=int(r["academic_year_id"]),
                year=r["year"],
                is_active=bool(r["is_active"]),
            )

    def get_class_membership(self, *, student_user_id: int, academic_year_id: int) -> Optional[ClassMembership]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT cm.student_user_id, cm.academic_year_id,
                       c.class_id, c.class_name, c.homeroom_teacher_id
                FROM class_members cm
                JOIN classes c ON c.class_id = cm.class_id
                WHERE cm.student_user_id=%s AND cm.academic_year_id=%s
                LIMIT 1
                """,
                (int(student_user_id), int(academic_year_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ClassMembership(
                student_user_id=int(r["student_user_id"]),
                academic_year_id=int(r["academic_year_id"]),
                school_class=SchoolClass(
                    class_id=int(r["class_id"]),
                    class_name=r["class_name"],
                    homeroom_teacher_id=(int(r["homeroom_teacher_id"]) if r.get("homeroom_teacher_id") else None),
                ),
            )

    def list_classmate_ids(self, *, class_id: int, academic_year_id: int) -> Set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_user_id
                FROM class_members
                WHERE class_id=%s AND academic_year_id=%s
                """,
                (int(class_id), int(academic_year_id)),
            )
            return {int(r["student_user_id"]) for r in fetchall(cur)}

    def get_class(self, class_id: int) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT class_id, class_name, homeroom_teacher_id FROM classes WHERE class_id=%s",
                (int(class_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return SchoolClass(
                class_id=int(r["class_id"]),
                class_name=r["class_name"],
                homeroom_teacher_id=(int(r["homeroom_teacher_id"]) if r.get("homeroom_teacher_id") else None),
            )
