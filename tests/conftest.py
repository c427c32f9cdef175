from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, time, timezone
from types import SimpleNamespace
from typing import Optional

import pytest

from src.leave_portal.leave_portal.academics.model import AcademicYear, ClassMembership, SchoolClass
from src.leave_portal.leave_portal.container import assemble_container
from src.leave_portal.leave_portal.core.enums import ApprovalStatus, DayOfWeek, LeavePermitStatus, Role
from src.leave_portal.leave_portal.leave.model import LeaveApproval, LeavePermit
from src.leave_portal.leave_portal.schedules.model import LessonSchedule, TeachingAssignment
from src.leave_portal.leave_portal.users.model import User

CREATED_AT = datetime(2025, 10, 28, 2, 10, tzinfo=timezone.utc)


@dataclass
class InMemoryUsers:
    users_by_id: dict[int, User]

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)

    def list_by_role(self, role: Role):
        return [u for _, u in sorted(self.users_by_id.items()) if u.is_active and u.has_role(role)]

    def get_many(self, user_ids):
        return [self.users_by_id[i] for i in dict.fromkeys(user_ids) if i in self.users_by_id]


@dataclass
class InMemoryAcademics:
    active_year: Optional[AcademicYear]
    classes: dict[int, SchoolClass]
    # student id -> class id, for the active year
    seats: dict[int, int] = field(default_factory=dict)

    def get_active_academic_year(self) -> Optional[AcademicYear]:
        return self.active_year

    def get_class_membership(self, *, student_user_id: int, academic_year_id: int) -> Optional[ClassMembership]:
        class_id = self.seats.get(student_user_id)
        if class_id is None or not self.active_year or academic_year_id != self.active_year.academic_year_id:
            return None
        return ClassMembership(
            student_user_id=student_user_id,
            academic_year_id=academic_year_id,
            school_class=self.classes[class_id],
        )

    def list_classmate_ids(self, *, class_id: int, academic_year_id: int):
        return {sid for sid, cid in self.seats.items() if cid == class_id}

    def get_class(self, class_id: int) -> Optional[SchoolClass]:
        return self.classes.get(class_id)


@dataclass
class InMemorySchedules:
    schedules: list[LessonSchedule]

    def find_for_class_at(self, *, class_id: int, academic_year_id: int, day_of_week: DayOfWeek, at: time):
        found = [
            s
            for s in self.schedules
            if s.assignment.class_id == class_id
            and s.academic_year_id == academic_year_id
            and s.day_of_week == day_of_week
            and s.covers(at)
        ]
        return sorted(found, key=lambda s: (s.start_time, s.schedule_id))

    def get_by_id(self, schedule_id: int) -> Optional[LessonSchedule]:
        return next((s for s in self.schedules if s.schedule_id == schedule_id), None)


class InMemoryLeaveTransaction:
    def __init__(self, store: "InMemoryLeavePermits"):
        self._store = store

    def lock_permit(self, permit_id: int) -> Optional[LeavePermit]:
        return self._store.permits.get(permit_id)

    def insert_permit(
        self,
        *,
        requester_user_id,
        leave_type,
        reason,
        start_time,
        estimated_return,
        group_member_ids,
        related_schedule_id,
        status,
    ) -> int:
        pid = self._store.next_id
        self._store.next_id += 1
        self._store.permits[pid] = LeavePermit(
            permit_id=pid,
            requester_user_id=requester_user_id,
            leave_type=leave_type,
            reason=reason,
            start_time=start_time,
            related_schedule_id=related_schedule_id,
            status=status,
            estimated_return=estimated_return,
            group_member_ids=tuple(group_member_ids),
            created_at=CREATED_AT,
            updated_at=CREATED_AT,
        )
        self._store.approvals[pid] = []
        return pid

    def insert_approval(self, *, permit_id, approver_user_id, approver_role) -> None:
        if self._store.fail_approval_writes:
            raise RuntimeError("connection lost")
        rows = self._store.approvals[permit_id]
        if any(a.approver_user_id == approver_user_id for a in rows):
            raise AssertionError("duplicate approver for permit")
        rows.append(
            LeaveApproval(leave_permit_id=permit_id, approver_user_id=approver_user_id, approver_role=approver_role)
        )

    def list_approvals(self, permit_id: int):
        return list(self._store.approvals.get(permit_id, []))

    def update_approval(self, *, permit_id, approver_user_id, status, notes, decided_at) -> bool:
        rows = self._store.approvals.get(permit_id, [])
        for i, row in enumerate(rows):
            if row.approver_user_id == approver_user_id and row.status == ApprovalStatus.PENDING:
                rows[i] = replace(row, status=status, notes=notes, decided_at=decided_at)
                return True
        return False

    def update_permit_status(self, *, permit_id, status) -> bool:
        permit = self._store.permits.get(permit_id)
        if not permit:
            return False
        self._store.permits[permit_id] = replace(permit, status=status)
        return True

    def finalize_permit(self, *, permit_id, status, printed_by_id, completion_notes) -> bool:
        permit = self._store.permits.get(permit_id)
        if not permit:
            return False
        self._store.permits[permit_id] = replace(
            permit, status=status, printed_by_id=printed_by_id, completion_notes=completion_notes
        )
        return True


class InMemoryLeavePermits:
    """Single lock for every transaction; state is rolled back when the block raises."""

    def __init__(self, users: InMemoryUsers):
        self._users = users
        self._lock = threading.Lock()
        self.next_id = 1
        self.permits: dict[int, LeavePermit] = {}
        self.approvals: dict[int, list[LeaveApproval]] = {}
        self.fail_approval_writes = False

    @contextmanager
    def transaction(self):
        with self._lock:
            snapshot = (self.next_id, copy.deepcopy(self.permits), copy.deepcopy(self.approvals))
            try:
                yield InMemoryLeaveTransaction(self)
            except Exception:
                self.next_id, self.permits, self.approvals = snapshot
                raise

    def get_permit(self, permit_id: int) -> Optional[LeavePermit]:
        permit = self.permits.get(permit_id)
        if not permit:
            return None
        return replace(permit, approvals=tuple(self.approvals.get(permit_id, [])))

    def _summary(self, permit: LeavePermit) -> dict:
        requester = self._users.get_by_id(permit.requester_user_id)
        return {
            "id": permit.permit_id,
            "requester_id": permit.requester_user_id,
            "requester_name": requester.full_name if requester else None,
            "leave_type": permit.leave_type.value,
            "reason": permit.reason,
            "start_time": permit.start_time.isoformat(),
            "estimated_return": None,
            "status": permit.status.value,
            "created_at": CREATED_AT.isoformat(),
        }

    def list_permits(self, *, statuses=None, q=None, offset=0, limit=10):
        items = sorted(self.permits.values(), key=lambda p: p.permit_id, reverse=True)
        if statuses:
            items = [p for p in items if p.status in statuses]
        if q:
            items = [p for p in items if q.lower() in self._summary(p)["requester_name"].lower()]
        return [self._summary(p) for p in items[offset : offset + limit]], len(items)

    def list_for_requester(self, *, requester_user_id: int):
        items = sorted(self.permits.values(), key=lambda p: p.permit_id, reverse=True)
        return [self._summary(p) for p in items if p.requester_user_id == requester_user_id]

    def list_pending_for_approver(self, *, approver_user_id: int):
        out = []
        for pid in sorted(self.approvals):
            permit = self.permits[pid]
            if permit.status != LeavePermitStatus.WAITING_FOR_APPROVAL:
                continue
            for a in self.approvals[pid]:
                if a.approver_user_id == approver_user_id and a.status == ApprovalStatus.PENDING:
                    out.append(
                        {
                            "leave_permit_id": pid,
                            "approver_user_id": a.approver_user_id,
                            "approver_role": a.approver_role.value,
                            "status": a.status.value,
                            "notes": a.notes,
                            "leave_permit": self._summary(permit),
                        }
                    )
        return out


def _user(uid: int, name: str, *roles: Role, identity_number: Optional[str] = None, is_active: bool = True) -> User:
    return User(
        user_id=uid,
        full_name=name,
        identity_number=identity_number,
        roles=frozenset(roles),
        is_active=is_active,
    )


def _period(schedule_id: int, day: DayOfWeek, start: time, end: time, *, teacher: int, class_id: int, subject: str):
    return LessonSchedule(
        schedule_id=schedule_id,
        academic_year_id=1,
        day_of_week=day,
        start_time=start,
        end_time=end,
        assignment=TeachingAssignment(
            assignment_id=schedule_id,
            teacher_user_id=teacher,
            class_id=class_id,
            subject_id=schedule_id,
            subject_name=subject,
        ),
    )


@pytest.fixture
def school():
    """A small school.

    Class 1 (homeroom 2): students 6, 7, 12. Class 2 (homeroom 4, who is also
    the affairs head): student 8. Student 11 has no class this year.
    """

    users = InMemoryUsers(
        users_by_id={
            1: _user(1, "Admin Sekolah", Role.ADMIN),
            2: _user(2, "Budi Santoso", Role.TEACHER, Role.HOMEROOM_TEACHER, identity_number="198001"),
            3: _user(3, "Siti Aminah", Role.TEACHER, identity_number="198002"),
            4: _user(4, "Ahmad Fauzi", Role.TEACHER, Role.AFFAIRS_HEAD, identity_number="198003"),
            5: _user(5, "Dewi Lestari", Role.TEACHER, Role.PIKET, identity_number="198004"),
            6: _user(6, "Rizky Pratama", Role.STUDENT, identity_number="2023001"),
            7: _user(7, "Nabila Putri", Role.STUDENT, identity_number="2023002"),
            8: _user(8, "Fajar Nugroho", Role.STUDENT, identity_number="2023003"),
            9: _user(9, "Hartono", Role.PRINCIPAL),
            10: _user(10, "Yusuf Lama", Role.STUDENT, identity_number="2020001", is_active=False),
            11: _user(11, "Intan Baru", Role.STUDENT, identity_number="2025001"),
            12: _user(12, "Galih Saputra", Role.STUDENT, identity_number="2023004"),
        }
    )
    academics = InMemoryAcademics(
        active_year=AcademicYear(academic_year_id=1, year="2025/2026", is_active=True),
        classes={
            1: SchoolClass(class_id=1, class_name="XI TKJ 1", homeroom_teacher_id=2),
            2: SchoolClass(class_id=2, class_name="XI TKJ 2", homeroom_teacher_id=4),
        },
        seats={6: 1, 7: 1, 12: 1, 8: 2},
    )
    schedules = InMemorySchedules(
        schedules=[
            _period(1, DayOfWeek.TUESDAY, time(7, 0), time(8, 30), teacher=2, class_id=1, subject="Bahasa Indonesia"),
            _period(3, DayOfWeek.TUESDAY, time(9, 0), time(9, 45), teacher=3, class_id=1, subject="Matematika"),
            _period(10, DayOfWeek.TUESDAY, time(9, 0), time(9, 45), teacher=3, class_id=2, subject="Matematika"),
        ]
    )
    permits = InMemoryLeavePermits(users)
    return SimpleNamespace(users=users, academics=academics, schedules=schedules, permits=permits)


@pytest.fixture
def container(school):
    return assemble_container(
        users_repo=school.users,
        academics_repo=school.academics,
        schedules_repo=school.schedules,
        leave_repo=school.permits,
    )


@pytest.fixture
def leave_service(container):
    return container.leave_service
