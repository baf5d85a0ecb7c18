from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_employee_id(self, employee_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_reset_token(self, token_hash: str) -> Optional[User]:
        raise NotImplementedError

    def list(self) -> Sequence[User]:
        raise NotImplementedError

    def list_by_roles(self, roles: Iterable[Role], *, active_only: bool = True) -> Sequence[User]:
        raise NotImplementedError

    def create_user(self, *, email: str, password_hash: str, role: Role, employee_id: Optional[int]) -> int:
        raise NotImplementedError

    def update_role(self, *, user_id: int, role: Role) -> bool:
        raise NotImplementedError

    def set_active(self, *, user_id: int, is_active: bool) -> bool:
        raise NotImplementedError

    def update_password(self, *, user_id: int, password_hash: str) -> bool:
        """Also clears any pending reset token."""

        raise NotImplementedError

    def set_reset_token(self, *, user_id: int, token_hash: str, expires_at: datetime) -> bool:
        raise NotImplementedError

    def touch_last_login(self, *, user_id: int, at: datetime) -> None:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError
