from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Callable, Optional, Sequence, Tuple

from ..academics.repository import AcademicRepository
from ..common.datetime_utils import as_utc, now_utc, parse_iso_datetime
from ..common.validators import require_int_list, require_min_length
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, MIN_REASON_LENGTH
from ..core.enums import ApprovalStatus, LeavePermitStatus, LeaveType
from ..core.exceptions import (
    AlreadyDecided,
    ApprovalNotFound,
    AuthorizationError,
    InvalidGroupMembers,
    NoActiveAcademicYear,
    NoClassMembership,
    PermitNotFound,
    ValidationError,
)
from ..schedules.repository import ScheduleRepository
from ..schedules.resolver import ScheduleResolver
from ..users.identity import CurrentUser
from ..users.repository import UserRepository
from .approvers import ApproverSetResolver
from .model import LeavePermit
from .repository import LeavePermitRepository
from .state_machine import (
    aggregate_status,
    ensure_can_decide,
    ensure_can_finalize,
    ensure_can_start_approval,
    parse_decision,
)

logger = logging.getLogger(__name__)


def _coerce_datetime(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    return parse_iso_datetime(value, field_name)


def _parse_leave_type(value: Any) -> LeaveType:
    try:
        return LeaveType(value)
    except ValueError:
        raise ValidationError("Jenis izin harus 'Individual' atau 'Group'")


_FINISHED = (LeavePermitStatus.COMPLETED, LeavePermitStatus.PRINTED)


def _parse_status_filter(value: Any) -> Optional[Tuple[LeavePermitStatus, ...]]:
    """Statuses matched by a list filter; Printed and Completed are one state."""

    if value in (None, ""):
        return None
    try:
        status = LeavePermitStatus(value)
    except ValueError:
        raise ValidationError("Filter status tidak valid")
    if status in _FINISHED:
        return _FINISHED
    return (status,)


def _profile(user) -> Optional[dict]:
    if user is None:
        return None
    return {"id": user.user_id, "full_name": user.full_name, "identity_number": user.identity_number}


class LeavePermitService:
    """Student leave permits: creation, verification, decisions, finalization."""

    def __init__(
        self,
        permits: LeavePermitRepository,
        academics: AcademicRepository,
        schedules: ScheduleRepository,
        users: UserRepository,
        *,
        schedule_resolver: ScheduleResolver,
        approver_resolver: ApproverSetResolver,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._permits = permits
        self._academics = academics
        self._schedules = schedules
        self._users = users
        self._schedule_resolver = schedule_resolver
        self._approver_resolver = approver_resolver
        self._clock = clock

    # -------- Creation --------
    def create_permit(
        self,
        *,
        requester_user_id: int,
        leave_type: Any,
        reason: Optional[str],
        start_time: Any,
        estimated_return: Any = None,
        group_member_ids: Optional[Sequence[Any]] = None,
    ) -> LeavePermit:
        requester_user_id = int(requester_user_id)
        leave_type = _parse_leave_type(leave_type)
        reason = require_min_length(reason, "Alasan", MIN_REASON_LENGTH)
        start = _coerce_datetime(start_time, "waktu mulai")
        estimated = _coerce_datetime(estimated_return, "waktu kembali") if estimated_return else None
        if estimated is not None and estimated < start:
            raise ValidationError("Perkiraan waktu kembali tidak boleh sebelum waktu mulai")

        members: list[int] = []
        if leave_type == LeaveType.GROUP:
            for member_id in require_int_list(group_member_ids, "Anggota grup"):
                if member_id not in members:
                    members.append(member_id)
            if requester_user_id in members:
                raise InvalidGroupMembers("Pemohon tidak perlu dicantumkan sebagai anggota grup.")

        year = self._academics.get_active_academic_year()
        if not year:
            raise NoActiveAcademicYear("Tidak ada tahun ajaran aktif yang ditemukan.")

        membership = self._academics.get_class_membership(
            student_user_id=requester_user_id,
            academic_year_id=year.academic_year_id,
        )
        if not membership:
            raise NoClassMembership("Data kelas untuk siswa tidak ditemukan pada tahun ajaran aktif.")

        if members:
            classmates = self._academics.list_classmate_ids(
                class_id=membership.class_id,
                academic_year_id=year.academic_year_id,
            )
            if not set(members).issubset(classmates):
                raise InvalidGroupMembers("Satu atau lebih siswa yang Anda pilih bukan teman sekelas Anda.")

        schedule = self._schedule_resolver.resolve(start, membership.class_id, year.academic_year_id)
        approvers = self._approver_resolver.resolve(membership.class_id, schedule, year.academic_year_id)

        with self._permits.transaction() as tx:
            permit_id = tx.insert_permit(
                requester_user_id=requester_user_id,
                leave_type=leave_type,
                reason=reason,
                start_time=start,
                estimated_return=estimated,
                group_member_ids=members,
                related_schedule_id=schedule.schedule_id,
                status=LeavePermitStatus.WAITING_FOR_PIKET,
            )
            for slot in approvers:
                tx.insert_approval(permit_id=permit_id, approver_user_id=slot.user_id, approver_role=slot.role)

        logger.info(
            "leave permit %s created by user %s (schedule=%s, approvers=%s)",
            permit_id,
            requester_user_id,
            schedule.schedule_id,
            [(s.user_id, s.role.value) for s in approvers],
        )
        return self.get_permit(permit_id)

    # -------- Lifecycle --------
    def start_approval(self, permit_id: int, *, verified_by: int) -> LeavePermit:
        with self._permits.transaction() as tx:
            permit = tx.lock_permit(int(permit_id))
            if not permit:
                raise PermitNotFound("Data izin tidak ditemukan")
            ensure_can_start_approval(permit.status)
            tx.update_permit_status(permit_id=permit.permit_id, status=LeavePermitStatus.WAITING_FOR_APPROVAL)

        logger.info("leave permit %s verified by user %s", permit_id, verified_by)
        return self.get_permit(permit_id)

    def give_approval(
        self,
        permit_id: int,
        *,
        approver_user_id: int,
        status: Any,
        notes: Optional[str] = None,
    ) -> LeavePermit:
        decision = parse_decision(status)
        notes = (notes.strip() if isinstance(notes, str) else "") or None
        if decision == ApprovalStatus.REJECTED and not notes:
            raise ValidationError("Catatan wajib diisi saat menolak izin")

        approver_user_id = int(approver_user_id)
        with self._permits.transaction() as tx:
            permit = tx.lock_permit(int(permit_id))
            if not permit:
                raise PermitNotFound("Data izin tidak ditemukan")

            mine = next(
                (a for a in tx.list_approvals(permit.permit_id) if a.approver_user_id == approver_user_id),
                None,
            )
            if mine is None:
                raise ApprovalNotFound("Anda bukan pemberi persetujuan untuk izin ini")
            if mine.status != ApprovalStatus.PENDING:
                raise AlreadyDecided("Anda sudah memberikan keputusan untuk izin ini")
            ensure_can_decide(permit.status)

            if not tx.update_approval(
                permit_id=permit.permit_id,
                approver_user_id=approver_user_id,
                status=decision,
                notes=notes,
                decided_at=self._clock(),
            ):
                raise AlreadyDecided("Anda sudah memberikan keputusan untuk izin ini")

            new_status = aggregate_status(a.status for a in tx.list_approvals(permit.permit_id))
            if new_status != permit.status:
                tx.update_permit_status(permit_id=permit.permit_id, status=new_status)

        logger.info(
            "leave permit %s: user %s decided %s (permit status %s -> %s)",
            permit_id,
            approver_user_id,
            decision.value,
            permit.status.value,
            new_status.value,
        )
        return self.get_permit(permit_id)

    def finalize_permit(self, permit_id: int, *, printed_by_id: int, notes: Optional[str] = None) -> LeavePermit:
        notes = (notes.strip() if isinstance(notes, str) else "") or None
        if not notes:
            raise ValidationError("Catatan penyelesaian wajib diisi")

        with self._permits.transaction() as tx:
            permit = tx.lock_permit(int(permit_id))
            if not permit:
                raise PermitNotFound("Data izin tidak ditemukan")
            ensure_can_finalize(permit.status)
            tx.finalize_permit(
                permit_id=permit.permit_id,
                status=LeavePermitStatus.COMPLETED,
                printed_by_id=int(printed_by_id),
                completion_notes=notes,
            )

        logger.info("leave permit %s finalized by user %s", permit_id, printed_by_id)
        return self.get_permit(permit_id)

    # -------- Queries --------
    def get_permit(self, permit_id: int) -> LeavePermit:
        permit = self._permits.get_permit(int(permit_id))
        if not permit:
            raise PermitNotFound("Data izin tidak ditemukan")
        return permit

    def get_permit_detail(self, permit_id: int, *, viewer: CurrentUser) -> dict:
        permit = self.get_permit(permit_id)
        if viewer.is_student_only and permit.requester_user_id != viewer.user_id:
            raise AuthorizationError("Anda hanya dapat melihat izin milik Anda sendiri")

        people = {
            u.user_id: u
            for u in self._users.get_many(
                [permit.requester_user_id]
                + [a.approver_user_id for a in permit.approvals]
                + ([permit.printed_by_id] if permit.printed_by_id else [])
                + list(permit.group_member_ids)
            )
        }

        schedule_info = None
        schedule = self._schedules.get_by_id(permit.related_schedule_id)
        if schedule:
            school_class = self._academics.get_class(schedule.assignment.class_id)
            teacher = people.get(schedule.assignment.teacher_user_id)
            if teacher is None:
                found = self._users.get_many([schedule.assignment.teacher_user_id])
                teacher = found[0] if found else None
            schedule_info = {
                "id": schedule.schedule_id,
                "day_of_week": schedule.day_of_week.value,
                "start_time": schedule.start_time.strftime("%H:%M"),
                "end_time": schedule.end_time.strftime("%H:%M"),
                "subject": schedule.assignment.subject_name,
                "class_name": school_class.class_name if school_class else None,
                "teacher": _profile(teacher),
            }

        data = permit.to_dict()
        data["requester"] = _profile(people.get(permit.requester_user_id))
        for item in data["approvals"]:
            item["approver"] = _profile(people.get(item["approver_user_id"]))
        data["printed_by"] = _profile(people.get(permit.printed_by_id)) if permit.printed_by_id else None
        data["related_schedule"] = schedule_info
        if permit.leave_type == LeaveType.GROUP:
            data["group_members"] = [_profile(people[i]) for i in permit.group_member_ids if i in people]
        else:
            data["group_members"] = []
        return data

    def list_permits(
        self,
        *,
        status: Any = None,
        q: Optional[str] = None,
        page: Any = 1,
        limit: Any = DEFAULT_PAGE_SIZE,
    ) -> dict:
        status_filter = _parse_status_filter(status)
        try:
            page = max(int(page or 1), 1)
            limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
        except (TypeError, ValueError):
            raise ValidationError("Parameter halaman tidak valid")

        rows, total = self._permits.list_permits(
            statuses=status_filter,
            q=(q or "").strip() or None,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return {
            "data": list(rows),
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        }

    def list_my_permits(self, *, requester_user_id: int) -> list[dict]:
        return list(self._permits.list_for_requester(requester_user_id=int(requester_user_id)))

    def list_my_approvals(self, *, approver_user_id: int) -> list[dict]:
        return list(self._permits.list_pending_for_approver(approver_user_id=int(approver_user_id)))
