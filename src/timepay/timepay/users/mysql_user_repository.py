from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, email, password_hash, role, employee_id, is_active, last_login,
    reset_token_hash, reset_token_expires, created_at
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        employee_id=row.get("employee_id"),
        is_active=bool(row.get("is_active", True)),
        last_login=row.get("last_login"),
        reset_token_hash=row.get("reset_token_hash"),
        reset_token_expires=row.get("reset_token_expires"),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where}", params)
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id=%s", (user_id,))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email=%s", (email.lower(),))

    def get_by_employee_id(self, employee_id: int) -> Optional[User]:
        return self._get_one("employee_id=%s", (employee_id,))

    def get_by_reset_token(self, token_hash: str) -> Optional[User]:
        return self._get_one("reset_token_hash=%s", (token_hash,))

    def list(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY created_at DESC")
            return [_to_user(r) for r in fetchall(cur)]

    def list_by_roles(self, roles: Iterable[Role], *, active_only: bool = True) -> Sequence[User]:
        values = [Role(r).value for r in roles]
        if not values:
            return []
        sql = f"SELECT {_COLUMNS} FROM users WHERE role IN ({in_clause(values)})"
        if active_only:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(values))
            return [_to_user(r) for r in fetchall(cur)]

    def create_user(self, *, email: str, password_hash: str, role: Role, employee_id: Optional[int]) -> int:
        with db_cursor(self._conn_factory, duplicate_message="Email already registered") as (_, cur):
            cur.execute(
                """
                INSERT INTO users(email, password_hash, role, employee_id)
                VALUES(%s,%s,%s,%s)
                """,
                (email.lower(), password_hash, role.value, employee_id),
            )
            return int(cur.lastrowid)

    def update_role(self, *, user_id: int, role: Role) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET role=%s WHERE user_id=%s", (role.value, user_id))
            return cur.rowcount > 0

    def set_active(self, *, user_id: int, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, user_id))
            return cur.rowcount > 0

    def update_password(self, *, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET password_hash=%s, reset_token_hash=NULL, reset_token_expires=NULL
                WHERE user_id=%s
                """,
                (password_hash, user_id),
            )
            return cur.rowcount > 0

    def set_reset_token(self, *, user_id: int, token_hash: str, expires_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET reset_token_hash=%s, reset_token_expires=%s WHERE user_id=%s",
                (token_hash, expires_at, user_id),
            )
            return cur.rowcount > 0

    def touch_last_login(self, *, user_id: int, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login=%s WHERE user_id=%s", (at, user_id))

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (user_id,))
            return cur.rowcount > 0
