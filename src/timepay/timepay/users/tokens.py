from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from ..core.constants import DEFAULT_TOKEN_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError

_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: Role


class TokenService:
    """Issues and verifies bearer tokens (HS256 JWT carrying user id and role)."""

    def __init__(self, secret: str, *, expires_days: int = DEFAULT_TOKEN_DAYS):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._expires = timedelta(days=int(expires_days))

    def issue(self, *, user_id: int, role: Role, now: datetime | None = None) -> str:
        issued = now or datetime.now(timezone.utc)
        if issued.tzinfo is None:
            issued = issued.replace(tzinfo=timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": Role(role).value,
            "iat": issued,
            "exp": issued + self._expires,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def decode(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired") from None
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token") from None

        try:
            return TokenClaims(user_id=int(payload["sub"]), role=Role(payload["role"]))
        except (KeyError, ValueError):
            raise AuthenticationError("Invalid token") from None
