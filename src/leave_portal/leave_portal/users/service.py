from __future__ import annotations

from typing import Any

from ..core.exceptions import AuthenticationError
from .identity import CurrentUser
from .repository import UserRepository


class IdentityService:
    """Use case: turn the session's user id into a ``CurrentUser``."""

    def __init__(self, users: UserRepository):
        self._users = users

    def resolve(self, user_id: Any) -> CurrentUser:
        if user_id is None:
            raise AuthenticationError("Akses ditolak, silakan login terlebih dahulu")
        try:
            uid = int(user_id)
        except (TypeError, ValueError):
            raise AuthenticationError("Sesi tidak valid")

        user = self._users.get_by_id(uid)
        if not user or not user.is_active:
            raise AuthenticationError("Sesi tidak valid atau pengguna tidak aktif")
        return CurrentUser(user=user)
