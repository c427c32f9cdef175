from __future__ import annotations

import logging
from typing import List

from ..academics.repository import AcademicRepository
from ..core.enums import ApproverRole, Role
from ..core.exceptions import NoAffairsHeadUser, NoHomeroomTeacher
from ..schedules.model import LessonSchedule
from ..users.repository import UserRepository
from .model import ApproverSlot

logger = logging.getLogger(__name__)


def dedupe_approvers(candidates: List[ApproverSlot]) -> List[ApproverSlot]:
    """Keep the first slot per user id.

    Candidates arrive in priority order, so a person filling two slots keeps
    the higher-priority role label.
    """

    seen: set[int] = set()
    out: List[ApproverSlot] = []
    for slot in candidates:
        if slot.user_id in seen:
            continue
        seen.add(slot.user_id)
        out.append(slot)
    return out


class ApproverSetResolver:
    """Work out who has to approve a permit for a given lesson period."""

    def __init__(self, academics: AcademicRepository, users: UserRepository):
        self._academics = academics
        self._users = users

    def resolve(self, class_id: int, schedule: LessonSchedule, academic_year_id: int) -> List[ApproverSlot]:
        school_class = self._academics.get_class(int(class_id))
        homeroom_id = school_class.homeroom_teacher_id if school_class else None
        if not homeroom_id:
            raise NoHomeroomTeacher("Kelas Anda belum memiliki wali kelas.")

        affairs_heads = list(self._users.list_by_role(Role.AFFAIRS_HEAD))
        if not affairs_heads:
            raise NoAffairsHeadUser("User dengan role 'Waka' tidak ditemukan.")
        if len(affairs_heads) > 1:
            logger.warning(
                "multiple %s holders %s (year=%s); using user %s",
                Role.AFFAIRS_HEAD.value,
                [u.user_id for u in affairs_heads],
                academic_year_id,
                affairs_heads[0].user_id,
            )

        return dedupe_approvers(
            [
                ApproverSlot(user_id=int(homeroom_id), role=ApproverRole.HOMEROOM_TEACHER),
                ApproverSlot(user_id=int(schedule.assignment.teacher_user_id), role=ApproverRole.SUBJECT_TEACHER),
                ApproverSlot(user_id=int(affairs_heads[0].user_id), role=ApproverRole.HEAD_OF_STUDENT_AFFAIRS),
            ]
        )
