from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import g, request

from ..core.exceptions import AuthenticationError, ValidationError
from ..core.policy import ensure_allowed
from ..users.model import SessionUser
from ..users.service import AuthService


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Not authorized, no token")
    return token.strip()


def current_user() -> SessionUser:
    user = g.get("current_user")
    if user is None:
        raise AuthenticationError("Not authorized, no token")
    return user


def current_employee_id() -> int:
    user = current_user()
    if user.employee_id is None:
        raise ValidationError("No employee profile is linked to this account")
    return int(user.employee_id)


def build_guard(auth: AuthService) -> Callable[..., Callable]:
    """``guard()`` only authenticates; ``guard("payroll.approve")`` also checks the capability table."""

    def guard(action: str | None = None):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                g.current_user = auth.authenticate_token(bearer_token())
                if action is not None:
                    ensure_allowed(g.current_user.role, action)
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return guard
