from __future__ import annotations

import json
from typing import Callable, Mapping, Optional, Sequence

from .exceptions import ApiError
from .payload_validation import ClientValidationError

DEFAULT_SUBMIT_ERROR = "Could not create the bulk transfer. Please try again."

ErrorExtractor = Callable[[object], Optional[str]]


def _plain_text(body: object) -> str | None:
    if isinstance(body, str) and body.strip():
        return body.strip()
    return None


def _string_field(key: str) -> ErrorExtractor:
    def extract(body: object) -> str | None:
        if not isinstance(body, Mapping):
            return None
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
        return None

    extract.__name__ = f"_{key}_field"
    return extract


def _non_field_errors(body: object) -> str | None:
    if not isinstance(body, Mapping):
        return None
    value = body.get("non_field_errors")
    if isinstance(value, list) and value:
        return ", ".join(str(entry) for entry in value)
    return None


def _items_errors(body: object) -> str | None:
    if not isinstance(body, Mapping) or "items" not in body:
        return None
    dumped = json.dumps(body["items"], separators=(",", ":"), ensure_ascii=False, default=str)
    return f"Item errors: {dumped}"


# Tried in order; the first extractor returning text wins.
ERROR_EXTRACTORS: tuple[ErrorExtractor, ...] = (
    _plain_text,
    _string_field("detail"),
    _string_field("error"),
    _non_field_errors,
    _items_errors,
)


def extract_error_message(
    body: object,
    extractors: Sequence[ErrorExtractor] = ERROR_EXTRACTORS,
    default: str = DEFAULT_SUBMIT_ERROR,
) -> str:
    for extractor in extractors:
        message = extractor(body)
        if message:
            return message
    return default


def submit_error_message(exc: Exception) -> str:
    if isinstance(exc, ApiError):
        return extract_error_message(exc.raw_payload)
    if isinstance(exc, ClientValidationError):
        return str(exc)
    return DEFAULT_SUBMIT_ERROR
