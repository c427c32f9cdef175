from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, placeholders
from .model import User
from .repository import UserRepository


def _parse_roles(value: Optional[str]) -> frozenset:
    roles = set()
    for name in (value or "").split(","):
        name = name.strip()
        if not name:
            continue
        try:
            roles.add(Role(name))
        except ValueError:
            # roles owned by other modules (TU, Guardian, ...) are irrelevant here
            continue
    return frozenset(roles)


class MySQLUserRepository(UserRepository):
    _SELECT = """
        SELECT u.user_id, u.full_name, u.identity_number, u.is_active,
               GROUP_CONCAT(ur.role_name) AS roles
        FROM users u
        LEFT JOIN user_roles ur ON ur.user_id = u.user_id
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> User:
        return User(
            user_id=int(r["user_id"]),
            full_name=r["full_name"],
            identity_number=r.get("identity_number"),
            roles=_parse_roles(r.get("roles")),
            is_active=bool(r.get("is_active", True)),
        )

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                self._SELECT + " WHERE u.user_id=%s GROUP BY u.user_id",
                (int(user_id),),
            )
            rows = fetchall(cur)
            return self._to_model(rows[0]) if rows else None

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                self._SELECT
                + """
                WHERE u.is_active=1
                  AND u.user_id IN (SELECT user_id FROM user_roles WHERE role_name=%s)
                GROUP BY u.user_id
                ORDER BY u.user_id ASC
                """,
                (role.value,),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def get_many(self, user_ids: Iterable[int]) -> Sequence[User]:
        ids = sorted({int(i) for i in user_ids})
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                self._SELECT + f" WHERE u.user_id IN ({placeholders(len(ids))}) GROUP BY u.user_id ORDER BY u.user_id",
                tuple(ids),
            )
            return [self._to_model(r) for r in fetchall(cur)]
