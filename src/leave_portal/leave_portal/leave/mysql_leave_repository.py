from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Sequence, Tuple

from ..common.datetime_utils import format_iso, to_db_datetime
from ..core.enums import ApprovalStatus, ApproverRole, LeavePermitStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    dump_id_list,
    escape_like,
    fetchall,
    fetchone,
    load_id_list,
    placeholders,
)
from .model import LeaveApproval, LeavePermit
from .repository import LeavePermitRepository, LeaveTransaction

_PERMIT_COLUMNS = """
    p.permit_id, p.requester_user_id, p.leave_type, p.reason,
    p.start_time, p.estimated_return, p.group_members, p.related_schedule_id,
    p.status, p.printed_by_id, p.completion_notes, p.created_at, p.updated_at
"""


def _to_permit(r: dict, approvals: Sequence[LeaveApproval] = ()) -> LeavePermit:
    return LeavePermit(
        permit_id=int(r["permit_id"]),
        requester_user_id=int(r["requester_user_id"]),
        leave_type=LeaveType(r["leave_type"]),
        reason=r["reason"],
        start_time=r["start_time"],
        estimated_return=r.get("estimated_return"),
        group_member_ids=tuple(load_id_list(r.get("group_members"))),
        related_schedule_id=int(r["related_schedule_id"]),
        status=LeavePermitStatus(r["status"]),
        printed_by_id=(int(r["printed_by_id"]) if r.get("printed_by_id") else None),
        completion_notes=r.get("completion_notes"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        approvals=tuple(approvals),
    )


def _to_approval(r: dict) -> LeaveApproval:
    return LeaveApproval(
        leave_permit_id=int(r["leave_permit_id"]),
        approver_user_id=int(r["approver_user_id"]),
        approver_role=ApproverRole(r["approver_role"]),
        status=ApprovalStatus(r["status"]),
        notes=r.get("notes"),
        decided_at=r.get("decided_at"),
    )


def _summary(r: dict) -> dict:
    return {
        "id": int(r["permit_id"]),
        "requester_id": int(r["requester_user_id"]),
        "requester_name": r.get("requester_name") or "",
        "leave_type": r["leave_type"],
        "reason": r["reason"],
        "start_time": format_iso(r["start_time"]),
        "estimated_return": format_iso(r.get("estimated_return")),
        "status": r["status"],
        "created_at": format_iso(r.get("created_at")),
    }


class MySQLLeaveTransaction(LeaveTransaction):
    def __init__(self, cur):
        self._cur = cur

    def lock_permit(self, permit_id: int) -> Optional[LeavePermit]:
        self._cur.execute(
            f"SELECT {_PERMIT_COLUMNS} FROM leave_permits p WHERE p.permit_id=%s FOR UPDATE",
            (int(permit_id),),
        )
        r = fetchone(self._cur)
        return _to_permit(r) if r else None

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
        self._cur.execute(
            """
            INSERT INTO leave_permits(
                requester_user_id, leave_type, reason, start_time, estimated_return,
                group_members, related_schedule_id, status
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(requester_user_id),
                leave_type.value,
                reason,
                to_db_datetime(start_time),
                to_db_datetime(estimated_return),
                dump_id_list(list(group_member_ids)),
                int(related_schedule_id),
                status.value,
            ),
        )
        return int(self._cur.lastrowid)

    def insert_approval(self, *, permit_id: int, approver_user_id: int, approver_role: ApproverRole) -> None:
        self._cur.execute(
            """
            INSERT INTO leave_approvals(leave_permit_id, approver_user_id, approver_role, status)
            VALUES(%s,%s,%s,%s)
            """,
            (int(permit_id), int(approver_user_id), approver_role.value, ApprovalStatus.PENDING.value),
        )

    def list_approvals(self, permit_id: int) -> Sequence[LeaveApproval]:
        # Locking read: sees rows committed by a decision that held the permit lock before us.
        self._cur.execute(
            """
            SELECT leave_permit_id, approver_user_id, approver_role, status, notes, decided_at
            FROM leave_approvals
            WHERE leave_permit_id=%s
            ORDER BY approval_id ASC
            FOR UPDATE
            """,
            (int(permit_id),),
        )
        return [_to_approval(r) for r in fetchall(self._cur)]

    def update_approval(
        self,
        *,
        permit_id: int,
        approver_user_id: int,
        status: ApprovalStatus,
        notes: Optional[str],
        decided_at: datetime,
    ) -> bool:
        self._cur.execute(
            """
            UPDATE leave_approvals
            SET status=%s, notes=%s, decided_at=%s
            WHERE leave_permit_id=%s AND approver_user_id=%s AND status=%s
            """,
            (
                status.value,
                notes,
                to_db_datetime(decided_at),
                int(permit_id),
                int(approver_user_id),
                ApprovalStatus.PENDING.value,
            ),
        )
        return self._cur.rowcount > 0

    def update_permit_status(self, *, permit_id: int, status: LeavePermitStatus) -> bool:
        self._cur.execute(
            "UPDATE leave_permits SET status=%s WHERE permit_id=%s",
            (status.value, int(permit_id)),
        )
        return self._cur.rowcount > 0

    def finalize_permit(
        self,
        *,
        permit_id: int,
        status: LeavePermitStatus,
        printed_by_id: int,
        completion_notes: Optional[str],
    ) -> bool:
        self._cur.execute(
            """
            UPDATE leave_permits
            SET status=%s, printed_by_id=%s, completion_notes=%s
            WHERE permit_id=%s
            """,
            (status.value, int(printed_by_id), completion_notes, int(permit_id)),
        )
        return self._cur.rowcount > 0


class MySQLLeavePermitRepository(LeavePermitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def transaction(self) -> Iterator[MySQLLeaveTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            yield MySQLLeaveTransaction(cur)

    def get_permit(self, permit_id: int) -> Optional[LeavePermit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PERMIT_COLUMNS} FROM leave_permits p WHERE p.permit_id=%s",
                (int(permit_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                """
                SELECT leave_permit_id, approver_user_id, approver_role, status, notes, decided_at
                FROM leave_approvals
                WHERE leave_permit_id=%s
                ORDER BY approval_id ASC
                """,
                (int(permit_id),),
            )
            approvals = [_to_approval(a) for a in fetchall(cur)]
            return _to_permit(r, approvals)

    def list_permits(
        self,
        *,
        statuses: Optional[Sequence[LeavePermitStatus]] = None,
        q: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[Sequence[dict], int]:
        clauses = ["1=1"]
        params: list[object] = []

        if statuses:
            clauses.append(f"p.status IN ({placeholders(len(statuses))})")
            params.extend(s.value for s in statuses)
        if q:
            clauses.append("LOWER(u.full_name) LIKE %s ESCAPE '!'")
            params.append(f"%{escape_like(q.lower())}%")

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM leave_permits p
                JOIN users u ON u.user_id = p.requester_user_id
                WHERE {where}
                """,
                tuple(params),
            )
            total = int((fetchone(cur) or {}).get("total") or 0)

            cur.execute(
                f"""
                SELECT {_PERMIT_COLUMNS}, u.full_name AS requester_name, pb.full_name AS printed_by_name
                FROM leave_permits p
                JOIN users u ON u.user_id = p.requester_user_id
                LEFT JOIN users pb ON pb.user_id = p.printed_by_id
                WHERE {where}
                ORDER BY p.created_at DESC, p.permit_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            rows = fetchall(cur)

            approvals_by_permit: dict[int, list[dict]] = {}
            ids = [int(r["permit_id"]) for r in rows]
            if ids:
                cur.execute(
                    f"""
                    SELECT a.leave_permit_id, a.approver_user_id, a.approver_role, a.status, a.notes,
                           u.full_name AS approver_name
                    FROM leave_approvals a
                    JOIN users u ON u.user_id = a.approver_user_id
                    WHERE a.leave_permit_id IN ({placeholders(len(ids))})
                    ORDER BY a.approval_id ASC
                    """,
                    tuple(ids),
                )
                for a in fetchall(cur):
                    approvals_by_permit.setdefault(int(a["leave_permit_id"]), []).append(
                        {
                            "approver_user_id": int(a["approver_user_id"]),
                            "approver_name": a["approver_name"],
                            "approver_role": a["approver_role"],
                            "status": a["status"],
                            "notes": a.get("notes"),
                        }
                    )

            out: list[dict] = []
            for r in rows:
                item = _summary(r)
                item["printed_by_id"] = int(r["printed_by_id"]) if r.get("printed_by_id") else None
                item["printed_by_name"] = r.get("printed_by_name")
                item["approvals"] = approvals_by_permit.get(int(r["permit_id"]), [])
                out.append(item)
            return out, total

    def list_for_requester(self, *, requester_user_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PERMIT_COLUMNS}, u.full_name AS requester_name
                FROM leave_permits p
                JOIN users u ON u.user_id = p.requester_user_id
                WHERE p.requester_user_id=%s
                ORDER BY p.created_at DESC, p.permit_id DESC
                """,
                (int(requester_user_id),),
            )
            return [_summary(r) for r in fetchall(cur)]

    def list_pending_for_approver(self, *, approver_user_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PERMIT_COLUMNS}, u.full_name AS requester_name,
                       a.approver_role, a.status AS approval_status, a.notes
                FROM leave_approvals a
                JOIN leave_permits p ON p.permit_id = a.leave_permit_id
                JOIN users u ON u.user_id = p.requester_user_id
                WHERE a.approver_user_id=%s
                  AND a.status=%s
                  AND p.status=%s
                ORDER BY p.created_at ASC, p.permit_id ASC
                """,
                (
                    int(approver_user_id),
                    ApprovalStatus.PENDING.value,
                    LeavePermitStatus.WAITING_FOR_APPROVAL.value,
                ),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                out.append(
                    {
                        "leave_permit_id": int(r["permit_id"]),
                        "approver_user_id": int(approver_user_id),
                        "approver_role": r["approver_role"],
                        "status": r["approval_status"],
                        "notes": r.get("notes"),
                        "leave_permit": _summary(r),
                    }
                )
            return out
