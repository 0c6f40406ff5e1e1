from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..exceptions import ApiError, ConflictError, TransferStockError, ValidationError
from ..models import BulkTransferCreateRequest, TransferConfirmation
from ..payload_validation import validate_bulk_transfer_payload
from .base import BaseClient

BULK_TRANSFERS_PATH = "/api/bulk-stock-transfers/"


@dataclass
class TransfersClient(BaseClient):
    def create_bulk_transfer(self, payload: BulkTransferCreateRequest | Mapping[str, Any]) -> TransferConfirmation:
        normalized = validate_bulk_transfer_payload(payload)
        try:
            data = self._request(
                "POST",
                BULK_TRANSFERS_PATH,
                json_body=normalized.model_dump(mode="json", exclude_none=True),
                module="transfers",
                operation="create_bulk",
            )
        except ApiError as exc:
            _raise_transfer_error(exc)
        if data is None:
            return TransferConfirmation()
        if not isinstance(data, dict):
            raise ValueError("Expected bulk transfer response to be a JSON object")
        return TransferConfirmation.model_validate(data)


def _raise_transfer_error(exc: ApiError) -> None:
    if isinstance(exc, (ValidationError, ConflictError)) and "stock" in _body_text(exc):
        raise TransferStockError(**exc.__dict__) from exc
    raise exc


def _body_text(exc: ApiError) -> str:
    if exc.raw_payload is None:
        return exc.message.lower()
    return f"{exc.message} {exc.raw_payload}".lower()
