from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, TypeVar

from pydantic import ValidationError as PydanticValidationError

from .models import BulkTransferCreateRequest, BulkTransferItemPayload

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationIssue:
    row_index: int | None
    field: str
    reason: str


class ClientValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        location = f"row {issue.row_index}" if issue.row_index is not None else "payload"
        return f"{location} {issue.field}: {issue.reason}"


def validate_bulk_transfer_payload(
    payload: BulkTransferCreateRequest | Mapping[str, Any],
) -> BulkTransferCreateRequest:
    """Last structural check before a bulk transfer body leaves the process."""
    data = _coerce_model(payload, BulkTransferCreateRequest, None)
    if data.from_branch == data.to_branch:
        _raise_issue(None, "to_branch", "from_branch and to_branch must differ")
    if not data.items:
        _raise_issue(None, "items", "items must not be empty")
    seen: set[str] = set()
    for idx, item in enumerate(data.items):
        _validate_item(item, idx)
        if item.product in seen:
            _raise_issue(idx, "product", "product appears more than once")
        seen.add(item.product)
    notes = data.notes.strip() if data.notes else None
    return data.model_copy(update={"notes": notes or None})


def _validate_item(item: BulkTransferItemPayload, row_index: int) -> None:
    if not item.product:
        _raise_issue(row_index, "product", "product is required")
    if item.quantity < 1:
        _raise_issue(row_index, "quantity", "quantity must be at least 1")
    if item.unit_price <= 0:
        _raise_issue(row_index, "unit_price", "unit_price must be greater than 0")


def _coerce_model(value: T | Mapping[str, Any], model_type: type[T], row_index: int | None) -> T:
    if isinstance(value, model_type):
        return value
    try:
        return model_type.model_validate(value)
    except PydanticValidationError as exc:
        issue = exc.errors()[0] if exc.errors() else {"loc": ("payload",), "msg": "Invalid payload"}
        field = ".".join(str(part) for part in issue.get("loc", ("payload",)))
        _raise_issue(row_index, field, issue.get("msg", "Invalid payload"))
        raise


def _raise_issue(row_index: int | None, field: str, reason: str) -> None:
    raise ClientValidationError([ValidationIssue(row_index=row_index, field=field, reason=reason)])
