"""Permit lifecycle rules.

WaitingForPiket -> WaitingForApproval -> Approved | Rejected; Approved -> Completed.
Rejected, Completed and Printed are terminal.
"""
from __future__ import annotations

from typing import Any, Iterable

from ..core.enums import ApprovalStatus, LeavePermitStatus
from ..core.exceptions import AlreadyDecided, InvalidStatusTransition, ValidationError

DECIDED_STATUSES = frozenset(
    {
        LeavePermitStatus.APPROVED,
        LeavePermitStatus.REJECTED,
        LeavePermitStatus.COMPLETED,
        LeavePermitStatus.PRINTED,
    }
)


def aggregate_status(approval_statuses: Iterable[ApprovalStatus]) -> LeavePermitStatus:
    """Permit status implied by its approvals.

    One rejection rejects the permit; every approval must be Approved for
    the permit to be Approved; anything else keeps it waiting.
    """

    statuses = list(approval_statuses)
    if not statuses:
        raise ValueError("a permit always has at least one approval")
    if any(s == ApprovalStatus.REJECTED for s in statuses):
        return LeavePermitStatus.REJECTED
    if all(s == ApprovalStatus.APPROVED for s in statuses):
        return LeavePermitStatus.APPROVED
    return LeavePermitStatus.WAITING_FOR_APPROVAL


def parse_decision(value: Any) -> ApprovalStatus:
    try:
        decision = ApprovalStatus(value)
    except ValueError:
        raise ValidationError("Status keputusan harus 'Approved' atau 'Rejected'")
    if decision == ApprovalStatus.PENDING:
        raise ValidationError("Status keputusan harus 'Approved' atau 'Rejected'")
    return decision


def ensure_can_start_approval(current: LeavePermitStatus) -> None:
    if current != LeavePermitStatus.WAITING_FOR_PIKET:
        raise InvalidStatusTransition(
            f"Proses persetujuan hanya dapat dimulai dari status WaitingForPiket (status saat ini: {current.value})"
        )


def ensure_can_decide(current: LeavePermitStatus) -> None:
    if current == LeavePermitStatus.WAITING_FOR_APPROVAL:
        return
    if current in DECIDED_STATUSES:
        raise AlreadyDecided(f"Izin sudah diputuskan (status: {current.value}) dan tidak menerima keputusan baru")
    raise InvalidStatusTransition(
        f"Izin belum diverifikasi guru piket (status saat ini: {current.value})"
    )


def ensure_can_finalize(current: LeavePermitStatus) -> None:
    if current != LeavePermitStatus.APPROVED:
        raise InvalidStatusTransition(
            f"Izin hanya dapat difinalisasi jika berstatus Approved (status saat ini: {current.value})"
        )
