"""JSON envelope, error mapping and request parsing shared by every controller."""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any, Optional, TypeVar

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_enum
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from .serializers import to_json

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (DuplicateError, 400),
    (ValidationError, 400),
)


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200, **extra: Any):
    body = {"success": True, "data": to_json(data)}
    if message:
        body["message"] = message
    body.update({k: to_json(v) for k, v in extra.items()})
    return jsonify(body), status


def fail(error: str, status: int = 400):
    return jsonify({"success": False, "error": error}), status


def status_for(exc: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return fail(str(exc), status_for(exc))

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return fail(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return fail(str(exc) or "Internal server error", 500)


def body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object expected")
    return data


def arg_int(name: str, *, source: Optional[dict] = None) -> Optional[int]:
    raw = (source if source is not None else request.args).get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer") from None


def arg_date(name: str, *, source: Optional[dict] = None) -> Optional[date]:
    raw = (source if source is not None else request.args).get(name)
    if raw in (None, ""):
        return None
    try:
        return parse_iso_date(str(raw))
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)") from None


def arg_enum(enum_cls: type[E], name: str, *, source: Optional[dict] = None) -> Optional[E]:
    raw = (source if source is not None else request.args).get(name)
    if raw in (None, ""):
        return None
    return require_enum(enum_cls, raw, name)


def arg_bool(name: str, *, source: Optional[dict] = None) -> Optional[bool]:
    raw = (source if source is not None else request.args).get(name)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        return raw
    return str(raw).lower() in {"1", "true", "yes", "on"}


def attachment(content: bytes, *, filename: str, mimetype: str) -> Response:
    return Response(
        content,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
