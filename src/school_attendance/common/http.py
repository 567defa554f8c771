from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import g, jsonify, request

from ..core.enums import UserType
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def status_for(exc: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 400


def json_error(message: str, status: int):
    return jsonify({"error": message}), status


def read_json() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def json_endpoint(failure_message: str):
    """Map domain errors to ``{"error": ...}`` responses; log anything else as 500."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except DomainError as e:
                return json_error(str(e), status_for(e))
            except Exception:
                logger.exception("%s %s failed", request.method, request.path)
                return json_error(failure_message, 500)

        return wrapper

    return decorator


def make_auth_guard(tokens):
    """Build ``auth_required(user_type)`` bound to a token service.

    Verified claims land in ``g.user_id`` / ``g.user_type`` for the view.
    """

    def auth_required(user_type: Optional[UserType] = None):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                header = request.headers.get("Authorization", "")
                if not header:
                    return json_error("Authorization header required", 401)

                token = header.replace("Bearer ", "", 1).strip()
                try:
                    claims = tokens.verify(token)
                except AuthenticationError as e:
                    return json_error(str(e), 401)

                if user_type is not None and claims.user_type != user_type:
                    return json_error("Insufficient permissions", 403)

                g.user_id = claims.user_id
                g.user_type = claims.user_type
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return auth_required
