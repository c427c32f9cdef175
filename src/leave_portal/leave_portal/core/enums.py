from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Closed set of role identifiers held by portal users."""

    ADMIN = "Admin"
    STUDENT = "Student"
    TEACHER = "Teacher"
    HOMEROOM_TEACHER = "WaliKelas"
    AFFAIRS_HEAD = "Waka"
    PIKET = "Piket"
    PRINCIPAL = "KepalaSekolah"
    STAFF = "Staff"


class Capability(str, Enum):
    """Actions guarded on the leave-permit routes."""

    SUBMIT_PERMIT = "submit_permit"
    VIEW_ALL_PERMITS = "view_all_permits"
    VIEW_PERMIT = "view_permit"
    VERIFY_PERMIT = "verify_permit"
    DECIDE_APPROVAL = "decide_approval"
    VIEW_APPROVAL_TASKS = "view_approval_tasks"
    FINALIZE_PERMIT = "finalize_permit"


class LeaveType(str, Enum):
    INDIVIDUAL = "Individual"
    GROUP = "Group"


class LeavePermitStatus(str, Enum):
    """Lifecycle of a leave permit."""

    WAITING_FOR_PIKET = "WaitingForPiket"
    WAITING_FOR_APPROVAL = "WaitingForApproval"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    PRINTED = "Printed"
    COMPLETED = "Completed"


class ApprovalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ApproverRole(str, Enum):
    """Label stored on an approval row; declaration order is priority order."""

    HOMEROOM_TEACHER = "HomeroomTeacher"
    SUBJECT_TEACHER = "SubjectTeacher"
    HEAD_OF_STUDENT_AFFAIRS = "HeadOfStudentAffairs"


class DayOfWeek(str, Enum):
    """School days as stored in the schedules table."""

    MONDAY = "Senin"
    TUESDAY = "Selasa"
    WEDNESDAY = "Rabu"
    THURSDAY = "Kamis"
    FRIDAY = "Jumat"

    @classmethod
    def from_weekday(cls, weekday: int) -> "DayOfWeek":
        """Map ``datetime.weekday()`` (Monday=0) to a school day."""

        return _WEEKDAYS[weekday]


_WEEKDAYS = {
    0: DayOfWeek.MONDAY,
    1: DayOfWeek.TUESDAY,
    2: DayOfWeek.WEDNESDAY,
    3: DayOfWeek.THURSDAY,
    4: DayOfWeek.FRIDAY,
}
