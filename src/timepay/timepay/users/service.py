from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH, PASSWORD_RESET_MINUTES
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, DuplicateError, NotFoundError, ValidationError
from ..employees.model import Compensation, Employee, EmploymentInfo, PersonalInfo
from ..employees.service import EmployeeService
from .model import SessionUser, User
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


def _session(user: User) -> SessionUser:
    return SessionUser(user_id=user.user_id, email=user.email, role=user.role, employee_id=user.employee_id)


def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Account:
    user: User
    employee: Optional[Employee]


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: SessionUser


class UserService:
    """Use case: manage accounts and roles (admin)."""

    def __init__(self, users: UserRepository, employees: EmployeeService):
        self._users = users
        self._employees = employees

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_accounts(self) -> list[Account]:
        accounts = []
        for user in self._users.list():
            employee = None
            if user.employee_id is not None:
                try:
                    employee = self._employees.get_employee(user.employee_id)
                except NotFoundError:
                    employee = None
            accounts.append(Account(user=user, employee=employee))
        return accounts

    def create_account(
        self,
        *,
        email: str,
        password: str,
        role: Role,
        personal: PersonalInfo,
        employment: EmploymentInfo,
        compensation: Compensation,
    ) -> Account:
        email = require_non_empty(email, "Email").lower()
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        if self._users.get_by_email(email):
            raise DuplicateError("Email already registered")

        employee = self._employees.create_employee(
            personal=replace(personal, email=personal.email or email),
            employment=employment,
            compensation=compensation,
        )
        try:
            user_id = self._users.create_user(
                email=email,
                password_hash=generate_password_hash(password),
                role=Role(role),
                employee_id=employee.employee_id,
            )
        except DuplicateError:
            self._employees.delete_employee(employee.employee_id)
            raise
        self._employees.link_user(employee.employee_id, user_id)
        logger.info("account %s created with role %s", email, Role(role).value)
        return Account(user=self.get_user(user_id), employee=self._employees.get_employee(employee.employee_id))

    def update_role(self, *, actor: SessionUser, user_id: int, role: Role) -> User:
        user = self.get_user(user_id)
        if user.user_id == actor.user_id and role != user.role:
            raise ValidationError("You cannot change your own role")
        self._users.update_role(user_id=user_id, role=Role(role))
        logger.info("user %s role %s -> %s", user.email, user.role.value, Role(role).value)
        return self.get_user(user_id)

    def set_active(self, *, actor: SessionUser, user_id: int, is_active: bool) -> User:
        user = self.get_user(user_id)
        if user.user_id == actor.user_id and not is_active:
            raise ValidationError("You cannot deactivate your own account")
        self._users.set_active(user_id=user_id, is_active=is_active)
        return self.get_user(user_id)

    def delete_account(self, *, actor: SessionUser, user_id: int) -> None:
        user = self.get_user(user_id)
        if user.user_id == actor.user_id:
            raise ValidationError("You cannot delete your own account")
        if user.employee_id is not None:
            self._employees.link_user(user.employee_id, None)
        self._users.delete_by_id(user_id)
        logger.info("account %s deleted", user.email)

    def delete_for_employee(self, employee_id: int) -> None:
        user = self._users.get_by_employee_id(employee_id)
        if user:
            self._users.delete_by_id(user.user_id)


class AuthService:
    """Use case: login, self registration, password management."""

    def __init__(self, users: UserRepository, accounts: UserService, tokens: TokenService):
        self._users = users
        self._accounts = accounts
        self._tokens = tokens

    def _issue(self, user: User, now: datetime | None) -> LoginResult:
        return LoginResult(token=self._tokens.issue(user_id=user.user_id, role=user.role, now=now), user=_session(user))

    def login(self, email: str, password: str, *, now: datetime | None = None) -> LoginResult:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hash
            ok = False
        if not ok:
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        self._users.touch_last_login(user_id=user.user_id, at=now or datetime.now())
        return self._issue(user, now)

    def register(
        self,
        *,
        email: str,
        password: str,
        personal: PersonalInfo,
        employment: EmploymentInfo,
        compensation: Compensation,
        now: datetime | None = None,
    ) -> LoginResult:
        account = self._accounts.create_account(
            email=email,
            password=password,
            role=Role.EMPLOYEE,
            personal=personal,
            employment=employment,
            compensation=compensation,
        )
        return self._issue(account.user, now)

    def authenticate_token(self, token: str) -> SessionUser:
        claims = self._tokens.decode(token)
        user = self._users.get_by_id(claims.user_id)
        if not user:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return _session(user)

    def change_password(self, *, user_id: int, current_password: str, new_password: str) -> None:
        user = self._accounts.get_user(user_id)
        if not check_password_hash(user.password_hash, current_password or ""):
            raise AuthenticationError("Current password is incorrect")
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        self._users.update_password(user_id=user_id, password_hash=generate_password_hash(new_password))

    def request_password_reset(self, email: str, *, now: datetime | None = None) -> Optional[str]:
        """Create a reset token; returns None for unknown e-mails so callers cannot probe accounts."""

        now = now or datetime.now()
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            logger.info("password reset requested for unknown email")
            return None

        token = secrets.token_urlsafe(32)
        self._users.set_reset_token(
            user_id=user.user_id,
            token_hash=_hash_reset_token(token),
            expires_at=now + timedelta(minutes=PASSWORD_RESET_MINUTES),
        )
        logger.info("password reset token issued for user %s", user.user_id)
        return token

    def reset_password(self, token: str, new_password: str, *, now: datetime | None = None) -> None:
        now = now or datetime.now()
        user = self._users.get_by_reset_token(_hash_reset_token(token or ""))
        if not user or not user.reset_token_expires or user.reset_token_expires < now:
            raise ValidationError("Invalid or expired token")
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        self._users.update_password(user_id=user.user_id, password_hash=generate_password_hash(new_password))
