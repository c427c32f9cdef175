from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Optional, Protocol, Sequence, Tuple

from ..core.enums import ApprovalStatus, ApproverRole, LeavePermitStatus, LeaveType
from .model import LeaveApproval, LeavePermit


class LeaveTransaction(Protocol):
    """Unit of work over one permit; everything commits or nothing does."""

    def lock_permit(self, permit_id: int) -> Optional[LeavePermit]:
        """Load the permit (without approvals), holding its row lock until commit."""

        raise NotImplementedError

    def insert_permit(
        self,
        *,
        requester_user_id: int,
        leave_type: LeaveType,
        reason: str,
        start_time: datetime,
        estimated_return: Optional[datetime],
        group_member_ids: Sequence[int],
        related_schedule_id: int,
        status: LeavePermitStatus,
    ) -> int:
        raise NotImplementedError

    def insert_approval(self, *, permit_id: int, approver_user_id: int, approver_role: ApproverRole) -> None:
        raise NotImplementedError

    def list_approvals(self, permit_id: int) -> Sequence[LeaveApproval]:
        raise NotImplementedError

    def update_approval(
        self,
        *,
        permit_id: int,
        approver_user_id: int,
        status: ApprovalStatus,
        notes: Optional[str],
        decided_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def update_permit_status(self, *, permit_id: int, status: LeavePermitStatus) -> bool:
        raise NotImplementedError

    def finalize_permit(
        self,
        *,
        permit_id: int,
        status: LeavePermitStatus,
        printed_by_id: int,
        completion_notes: Optional[str],
    ) -> bool:
        raise NotImplementedError


class LeavePermitRepository(Protocol):
    def transaction(self) -> ContextManager[LeaveTransaction]:
        raise NotImplementedError

    def get_permit(self, permit_id: int) -> Optional[LeavePermit]:
        """Permit with its approvals."""

        raise NotImplementedError

    def list_permits(
        self,
        *,
        statuses: Optional[Sequence[LeavePermitStatus]] = None,
        q: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[dict], int]:
        """Return (rows joined with requester/approver names, total count)."""

        raise NotImplementedError

    def list_for_requester(self, *, requester_user_id: int) -> Sequence[dict]:
        raise NotImplementedError

    def list_pending_for_approver(self, *, approver_user_id: int) -> Sequence[dict]:
        """Pending approval tasks whose permit is WaitingForApproval, oldest first."""

        raise NotImplementedError
