from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a portal user and the roles they hold.

    Note: Plain data object, no DB access here.
    """

    user_id: int
    full_name: str
    identity_number: Optional[str] = None
    roles: FrozenSet[Role] = field(default_factory=frozenset)
    is_active: bool = True

    def has_role(self, role: Role) -> bool:
        return role in self.roles
