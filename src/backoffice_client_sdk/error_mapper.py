from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

_DEFAULT_MESSAGES = {
    401: "Authentication required",
    403: "Permission denied",
    404: "Resource not found",
}


def _first_text(body: Mapping[str, object], *keys: str) -> str | None:
    for key in keys:
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def map_error(status_code: int, payload: object | None) -> ApiError:
    """Build the ApiError subclass for ``status_code``.

    ``payload`` is the decoded response body. The backend answers with DRF
    style objects most of the time, but lists and bare text also occur, so
    the body is kept verbatim in ``raw_payload`` for callers that need to
    dig a specific message out of it.
    """
    body: Mapping[str, object] = payload if isinstance(payload, Mapping) else {}
    code = str(body.get("code") or "HTTP_ERROR")
    message = (
        _first_text(body, "detail", "error", "message")
        or (payload.strip() if isinstance(payload, str) and payload.strip() else None)
        or _DEFAULT_MESSAGES.get(status_code)
        or "Request failed"
    )
    mapped: type[ApiError]
    if status_code == 401:
        mapped = AuthError
    elif status_code == 403:
        mapped = PermissionError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = ValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code == 429:
        mapped = RateLimitError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = ApiError
    return mapped(
        code=code,
        message=message,
        details=body.get("details"),
        status_code=status_code,
        raw_payload=dict(payload) if isinstance(payload, Mapping) else payload,
    )
