from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet

from ..core.enums import Capability, Role
from ..core.exceptions import AuthorizationError
from .model import User

ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.STUDENT: frozenset({Capability.SUBMIT_PERMIT, Capability.VIEW_PERMIT}),
    Role.PIKET: frozenset(
        {
            Capability.VIEW_ALL_PERMITS,
            Capability.VIEW_PERMIT,
            Capability.VERIFY_PERMIT,
            Capability.FINALIZE_PERMIT,
        }
    ),
    Role.HOMEROOM_TEACHER: frozenset(
        {
            Capability.VIEW_ALL_PERMITS,
            Capability.VIEW_PERMIT,
            Capability.DECIDE_APPROVAL,
            Capability.VIEW_APPROVAL_TASKS,
        }
    ),
    Role.TEACHER: frozenset({Capability.DECIDE_APPROVAL, Capability.VIEW_APPROVAL_TASKS}),
    Role.AFFAIRS_HEAD: frozenset(
        {
            Capability.VIEW_ALL_PERMITS,
            Capability.VIEW_PERMIT,
            Capability.DECIDE_APPROVAL,
            Capability.VIEW_APPROVAL_TASKS,
        }
    ),
    Role.PRINCIPAL: frozenset(
        {Capability.VIEW_ALL_PERMITS, Capability.VIEW_PERMIT, Capability.VIEW_APPROVAL_TASKS}
    ),
    Role.ADMIN: frozenset(
        {
            Capability.VIEW_ALL_PERMITS,
            Capability.VIEW_PERMIT,
            Capability.VERIFY_PERMIT,
            Capability.VIEW_APPROVAL_TASKS,
        }
    ),
    Role.STAFF: frozenset(),
}


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller of a request."""

    user: User

    @property
    def user_id(self) -> int:
        return self.user.user_id

    @property
    def roles(self) -> FrozenSet[Role]:
        return self.user.roles

    def can(self, capability: Capability) -> bool:
        return any(capability in ROLE_CAPABILITIES.get(role, frozenset()) for role in self.roles)

    def require(self, capability: Capability) -> None:
        if not self.can(capability):
            raise AuthorizationError("Anda tidak punya hak akses untuk sumber daya ini")

    @property
    def is_student_only(self) -> bool:
        """True when the caller sees permits only as a requester."""

        return Role.STUDENT in self.roles and not self.can(Capability.VIEW_ALL_PERMITS)
