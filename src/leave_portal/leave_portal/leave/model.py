from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..common.datetime_utils import format_iso
from ..core.enums import ApprovalStatus, ApproverRole, LeavePermitStatus, LeaveType


@dataclass(frozen=True)
class ApproverSlot:
    """One person who must decide on a permit, with the role they decide as."""

    user_id: int
    role: ApproverRole


@dataclass(frozen=True)
class LeaveApproval:
    leave_permit_id: int
    approver_user_id: int
    approver_role: ApproverRole
    status: ApprovalStatus = ApprovalStatus.PENDING
    notes: Optional[str] = None
    decided_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "leave_permit_id": self.leave_permit_id,
            "approver_user_id": self.approver_user_id,
            "approver_role": self.approver_role.value,
            "status": self.status.value,
            "notes": self.notes,
            "decided_at": format_iso(self.decided_at),
        }


@dataclass(frozen=True)
class LeavePermit:
    """Aggregate root: the permit plus its per-approver decisions."""

    permit_id: int
    requester_user_id: int
    leave_type: LeaveType
    reason: str
    start_time: datetime
    related_schedule_id: int
    status: LeavePermitStatus
    estimated_return: Optional[datetime] = None
    group_member_ids: Tuple[int, ...] = ()
    printed_by_id: Optional[int] = None
    completion_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    approvals: Tuple[LeaveApproval, ...] = field(default_factory=tuple)

    def approval_for(self, approver_user_id: int) -> Optional[LeaveApproval]:
        for approval in self.approvals:
            if approval.approver_user_id == int(approver_user_id):
                return approval
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.permit_id,
            "requester_id": self.requester_user_id,
            "leave_type": self.leave_type.value,
            "reason": self.reason,
            "start_time": format_iso(self.start_time),
            "estimated_return": format_iso(self.estimated_return),
            "group_member_ids": list(self.group_member_ids),
            "related_schedule_id": self.related_schedule_id,
            "status": self.status.value,
            "printed_by_id": self.printed_by_id,
            "completion_notes": self.completion_notes,
            "created_at": format_iso(self.created_at),
            "updated_at": format_iso(self.updated_at),
            "approvals": [a.to_dict() for a in self.approvals],
        }
