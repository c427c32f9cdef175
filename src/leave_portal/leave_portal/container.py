from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .academics.mysql_academic_repository import MySQLAcademicRepository
from .academics.repository import AcademicRepository
from .core.constants import SCHOOL_UTC_OFFSET_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .leave.approvers import ApproverSetResolver
from .leave.mysql_leave_repository import MySQLLeavePermitRepository
from .leave.repository import LeavePermitRepository
from .leave.service import LeavePermitService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.resolver import ScheduleResolver
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import IdentityService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    academics_repo: AcademicRepository
    schedules_repo: ScheduleRepository
    leave_repo: LeavePermitRepository

    identity_service: IdentityService
    schedule_resolver: ScheduleResolver
    approver_resolver: ApproverSetResolver
    leave_service: LeavePermitService


def assemble_container(
    *,
    users_repo: UserRepository,
    academics_repo: AcademicRepository,
    schedules_repo: ScheduleRepository,
    leave_repo: LeavePermitRepository,
    conn: Optional[DatabaseConnection] = None,
    utc_offset_hours: int = SCHOOL_UTC_OFFSET_HOURS,
) -> Container:
    """Wire services on top of any repository implementations."""

    identity_service = IdentityService(users_repo)
    schedule_resolver = ScheduleResolver(schedules_repo, utc_offset_hours=utc_offset_hours)
    approver_resolver = ApproverSetResolver(academics_repo, users_repo)
    leave_service = LeavePermitService(
        leave_repo,
        academics_repo,
        schedules_repo,
        users_repo,
        schedule_resolver=schedule_resolver,
        approver_resolver=approver_resolver,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        academics_repo=academics_repo,
        schedules_repo=schedules_repo,
        leave_repo=leave_repo,
        identity_service=identity_service,
        schedule_resolver=schedule_resolver,
        approver_resolver=approver_resolver,
        leave_service=leave_service,
    )


def build_container(*, db_config: dict, utc_offset_hours: int = SCHOOL_UTC_OFFSET_HOURS) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return assemble_container(
        users_repo=MySQLUserRepository(conn),
        academics_repo=MySQLAcademicRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        leave_repo=MySQLLeavePermitRepository(conn),
        conn=conn,
        utc_offset_hours=utc_offset_hours,
    )
