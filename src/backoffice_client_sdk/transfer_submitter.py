from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol

from .exceptions import ApiError
from .models import BulkTransferCreateRequest, BulkTransferItemPayload, TransferConfirmation
from .notifications import NotificationCenter
from .transfer_draft import TransferDraft
from .transfer_errors import submit_error_message
from .transfer_validation import validate_draft

logger = logging.getLogger(__name__)

SUCCESS_TITLE = "Transfer created"
FAILURE_TITLE = "Error creating transfer"
DEFAULT_CLOSE_DELAY_SECONDS = 2.0

Scheduler = Callable[[float, Callable[[], None]], Any]


class TransferSink(Protocol):
    def create_bulk_transfer(
        self, payload: BulkTransferCreateRequest | Mapping[str, Any]
    ) -> TransferConfirmation: ...


def thread_timer_scheduler(delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


@dataclass(frozen=True)
class SubmitRequest:
    """A payload frozen from the draft, waiting to be sent."""

    payload: BulkTransferCreateRequest

    @property
    def line_count(self) -> int:
        return len(self.payload.items)

    @property
    def total_units(self) -> int:
        return sum(item.quantity for item in self.payload.items)


@dataclass(frozen=True)
class SubmitResult:
    ok: bool
    line_count: int
    total_units: int
    confirmation: TransferConfirmation | None = None
    error: str | None = None
    close_handle: Any = field(default=None, compare=False, repr=False)

    def render(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "ok": self.ok,
            "line_count": self.line_count,
            "total_units": self.total_units,
        }
        if self.error:
            payload["error"] = self.error
        return payload


def build_transfer_payload(draft: TransferDraft) -> BulkTransferCreateRequest:
    """Serialize the draft, leaving out lines still at quantity 0."""
    if draft.source_branch_id is None or draft.destination_branch_id is None:
        raise ValueError("Both branches must be selected to build a transfer payload")
    notes = draft.notes.strip() if draft.notes else ""
    return BulkTransferCreateRequest(
        from_branch=draft.source_branch_id,
        to_branch=draft.destination_branch_id,
        notes=notes or None,
        items=[
            BulkTransferItemPayload(product=line.product_id, quantity=line.quantity)
            for line in draft.lines.submittable_lines()
        ],
    )


def success_message(line_count: int, total_units: int) -> str:
    return f"Bulk transfer created with {line_count} products. Total units: {total_units:,}"


class TransferSubmitter:
    """Sends a bulk transfer and reports the outcome.

    ``submit`` runs the whole exchange in one call. Shells that keep the
    POST off their event loop call ``prepare`` on the loop, ``send`` on a
    worker and ``complete`` back on the loop. The scheduler should post the
    delayed close onto that same loop; the default timer runs it on its own
    thread.
    """

    def __init__(
        self,
        client: TransferSink,
        notifications: NotificationCenter,
        *,
        scheduler: Scheduler | None = None,
        close_delay_seconds: float = DEFAULT_CLOSE_DELAY_SECONDS,
    ) -> None:
        self.client = client
        self.notifications = notifications
        self.scheduler = scheduler or thread_timer_scheduler
        self.close_delay_seconds = close_delay_seconds

    def prepare(self, draft: TransferDraft) -> SubmitRequest:
        outcome = validate_draft(draft)
        if not outcome.is_valid:
            raise ValueError(f"Draft is not submittable: {outcome.message}")
        request = SubmitRequest(payload=build_transfer_payload(draft))
        logger.info(
            "bulk_transfer_submit_attempt",
            extra={
                "from_branch": request.payload.from_branch,
                "to_branch": request.payload.to_branch,
                "line_count": request.line_count,
                "total_units": request.total_units,
            },
        )
        return request

    def send(self, request: SubmitRequest) -> TransferConfirmation:
        return self.client.create_bulk_transfer(request.payload)

    def complete(
        self,
        request: SubmitRequest,
        draft: TransferDraft | None,
        *,
        confirmation: TransferConfirmation | None = None,
        error: Exception | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> SubmitResult:
        """Notify the outcome. On success reset ``draft`` and schedule ``on_complete``.

        Passing ``draft=None`` reports the outcome without touching any draft.
        """
        if error is not None:
            message = submit_error_message(error)
            logger.warning(
                "bulk_transfer_submit_failure",
                extra={"status": getattr(error, "status_code", None), "error": message},
            )
            self.notifications.error(FAILURE_TITLE, message)
            return SubmitResult(
                ok=False, line_count=request.line_count, total_units=request.total_units, error=message
            )

        confirmation = confirmation or TransferConfirmation()
        logger.info("bulk_transfer_submit_success", extra={"transfer_id": confirmation.id})
        self.notifications.success(SUCCESS_TITLE, success_message(request.line_count, request.total_units))
        if draft is not None:
            draft.reset()
        handle = None
        if on_complete is not None:
            handle = self.scheduler(self.close_delay_seconds, on_complete)
        return SubmitResult(
            ok=True,
            line_count=request.line_count,
            total_units=request.total_units,
            confirmation=confirmation,
            close_handle=handle,
        )

    def submit(self, draft: TransferDraft, on_complete: Callable[[], None] | None = None) -> SubmitResult:
        request = self.prepare(draft)
        try:
            confirmation = self.send(request)
        except (ApiError, ValueError) as exc:
            return self.complete(request, draft, error=exc)
        return self.complete(request, draft, confirmation=confirmation, on_complete=on_complete)
