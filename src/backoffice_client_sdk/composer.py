from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable

from .branch_catalog import BranchCatalog
from .exceptions import ApiError
from .inventory_snapshot import InventorySnapshotLoader, SnapshotRequest, SnapshotResult
from .models import InventoryItem, TransferConfirmation
from .notifications import NotificationCenter
from .search_filter import filter_snapshot
from .session import ApiSession
from .telemetry import TelemetryRecorder
from .transfer_draft import TransferDraft
from .transfer_lines import AddOutcome, TransferLine
from .transfer_submitter import Scheduler, SubmitRequest, TransferSubmitter
from .transfer_validation import VALIDATION_TITLE, validate_draft

logger = logging.getLogger(__name__)

DUPLICATE_TITLE = "Product already added"
DUPLICATE_MESSAGE = "This product is already in the transfer list."
SUBMIT_IN_PROGRESS = "Transfer submission already in progress"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _editable(method):
    @functools.wraps(method)
    def wrapper(self: "BulkTransferComposer", *args: Any, **kwargs: Any) -> dict[str, Any]:
        if self.is_submitting:
            return {"ok": False, "error": SUBMIT_IN_PROGRESS}
        return method(self, *args, **kwargs)

    return wrapper


class BulkTransferComposer:
    """State holder behind the bulk stock transfer modal.

    Every user action maps to one method returning a result dict with an
    ``ok`` flag, the same shape the other console views return. Failures
    scoped to the composer (load errors, validation errors, duplicate
    adds, rejected submissions) never raise; they surface through
    ``notifications`` and the ``error`` key.

    Between ``begin_submit`` and ``finish_submit`` the draft is locked and
    every editing action answers with ``SUBMIT_IN_PROGRESS``.
    """

    def __init__(
        self,
        catalog: BranchCatalog,
        loader: InventorySnapshotLoader,
        submitter: TransferSubmitter,
        notifications: NotificationCenter,
        *,
        telemetry: TelemetryRecorder | None = None,
        on_success: Callable[[], None] | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.catalog = catalog
        self.loader = loader
        self.submitter = submitter
        self.notifications = notifications
        self.telemetry = telemetry or TelemetryRecorder()
        self.on_success = on_success
        self.on_close = on_close
        self.draft = TransferDraft()
        self.search_term = ""
        self.is_open = False
        self.is_submitting = False
        self._session = 0
        self._pending: SubmitRequest | None = None
        self._submit_started = 0.0
        self._close_handle: Any = None

    @classmethod
    def from_session(
        cls,
        session: ApiSession,
        *,
        notifications: NotificationCenter | None = None,
        scheduler: Scheduler | None = None,
        telemetry: TelemetryRecorder | None = None,
        on_success: Callable[[], None] | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> "BulkTransferComposer":
        config = session.config
        notifications = notifications or NotificationCenter(timeout_seconds=config.notification_timeout_seconds)
        return cls(
            catalog=BranchCatalog(session.branches_client(), notifications),
            loader=InventorySnapshotLoader(session.inventory_client(), notifications),
            submitter=TransferSubmitter(
                session.transfers_client(),
                notifications,
                scheduler=scheduler,
                close_delay_seconds=config.submit_close_delay_seconds,
            ),
            notifications=notifications,
            telemetry=telemetry or TelemetryRecorder.from_env(),
            on_success=on_success,
            on_close=on_close,
        )

    def open(self) -> dict[str, Any]:
        self._new_session()
        self.is_open = True
        started = time.monotonic()
        branches = self.catalog.load()
        ok = self.catalog.last_error is None
        self.telemetry.record(
            category="api_call_result",
            name="branches_load",
            action="open",
            duration_ms=_elapsed_ms(started),
            success=ok,
            context={"count": len(branches)},
        )
        if not ok:
            return {"ok": False, "error": self.catalog.last_error, "branches": []}
        return {"ok": True, "branches": [branch.model_dump() for branch in branches]}

    def dismiss(self) -> None:
        """Close the modal and throw the draft away.

        In-flight loads and submissions become stale and a pending delayed
        close is cancelled.
        """
        self._new_session()
        self.is_open = False
        self.is_submitting = False
        self._pending = None
        self.draft.reset()
        self.loader.invalidate()
        self.search_term = ""
        self.notifications.dismiss()
        logger.info("bulk_transfer_composer_dismissed")
        if self.on_close is not None:
            self.on_close()

    def change_source(self, branch_id: int | None) -> SnapshotRequest | None:
        """First half of a source switch: drop lines and open a snapshot request.

        Returns None when nothing needs loading (same branch, cleared, or a
        submission in flight).
        """
        if self.is_submitting or branch_id == self.draft.source_branch_id:
            return None
        dropped = self.draft.set_source(branch_id)
        if dropped:
            logger.info("transfer_lines_discarded", extra={"branch_id": branch_id})
        if branch_id is None:
            self.loader.invalidate()
            return None
        return self.loader.begin(branch_id)

    def receive_snapshot(
        self,
        request: SnapshotRequest,
        items: list[InventoryItem] | None = None,
        error: Exception | None = None,
        duration_ms: int | None = None,
    ) -> dict[str, Any]:
        """Second half of a source switch, run back on the UI thread."""
        if error is not None:
            result = self.loader.apply_failure(request, error)
        else:
            result = self.loader.apply(request, items or [])
        if not result.stale:
            self.telemetry.record(
                category="api_call_result",
                name="inventory_snapshot_load",
                action="select_source",
                duration_ms=duration_ms,
                success=result.ok,
                context={"branch_id": request.branch_id, "in_stock": len(result.items)},
            )
        return self._snapshot_response(result)

    @_editable
    def select_source(self, branch_id: int | None) -> dict[str, Any]:
        request = self.change_source(branch_id)
        if request is None:
            return {"ok": True, "branch_id": branch_id, "items": len(self.loader.snapshot), "changed": False}
        return self._load(request)

    @_editable
    def reload_source(self) -> dict[str, Any]:
        """Fetch the current source branch again, e.g. after a failed load."""
        branch_id = self.draft.source_branch_id
        if branch_id is None:
            return {"ok": False, "error": "No source branch selected"}
        self.draft.lines.clear()
        return self._load(self.loader.begin(branch_id))

    def _load(self, request: SnapshotRequest) -> dict[str, Any]:
        started = time.monotonic()
        try:
            items = self.loader.fetch(request)
        except (ApiError, ValueError) as exc:
            return self.receive_snapshot(request, error=exc, duration_ms=_elapsed_ms(started))
        return self.receive_snapshot(request, items=items, duration_ms=_elapsed_ms(started))

    @_editable
    def select_destination(self, branch_id: int | None) -> dict[str, Any]:
        self.draft.set_destination(branch_id)
        return {"ok": True, "branch_id": branch_id}

    def destination_options(self) -> list[dict[str, Any]]:
        return [branch.model_dump() for branch in self.catalog.destination_options(self.draft.source_branch_id)]

    @_editable
    def set_notes(self, notes: str | None) -> dict[str, Any]:
        self.draft.set_notes(notes)
        return {"ok": True}

    def search(self, term: str | None) -> list[InventoryItem]:
        self.search_term = term or ""
        return self.visible_items()

    def visible_items(self) -> list[InventoryItem]:
        return filter_snapshot(self.loader.snapshot, self.search_term)

    @_editable
    def add_product(self, product_id: str) -> dict[str, Any]:
        item = next((row for row in self.loader.snapshot if row.product_id == product_id), None)
        if item is None or self.draft.source_branch_id is None:
            return {"ok": False, "error": "Product is not available in the selected source branch"}
        outcome = self.draft.add_item(item)
        if outcome is AddOutcome.DUPLICATE:
            self.notifications.warning(DUPLICATE_TITLE, DUPLICATE_MESSAGE)
            return {"ok": False, "duplicate": True, "error": DUPLICATE_MESSAGE, "summary": self.summary()}
        return {"ok": True, "line": self.draft.lines.get(product_id).render(), "summary": self.summary()}

    @_editable
    def remove_product(self, product_id: str) -> dict[str, Any]:
        removed = self.draft.lines.remove(product_id)
        return {"ok": removed, "summary": self.summary()}

    @_editable
    def set_quantity(self, product_id: str, raw_value: object) -> dict[str, Any]:
        return self._line_response(self.draft.lines.set_quantity(product_id, raw_value))

    @_editable
    def commit_quantity(self, product_id: str, raw_value: object = None) -> dict[str, Any]:
        return self._line_response(self.draft.lines.commit_quantity(product_id, raw_value))

    @_editable
    def increment(self, product_id: str) -> dict[str, Any]:
        return self._line_response(self.draft.lines.increment(product_id))

    @_editable
    def decrement(self, product_id: str) -> dict[str, Any]:
        return self._line_response(self.draft.lines.decrement(product_id))

    @_editable
    def set_max(self, product_id: str) -> dict[str, Any]:
        return self._line_response(self.draft.lines.set_max(product_id))

    @_editable
    def clear_lines(self) -> dict[str, Any]:
        self.draft.lines.clear()
        return {"ok": True, "summary": self.summary()}

    def summary(self) -> dict[str, int]:
        return {"line_count": self.draft.lines.line_count, "total_units": self.draft.lines.total_units}

    def begin_submit(self) -> dict[str, Any]:
        """Validate and freeze the payload, then lock the draft.

        On success the result carries ``request``; send it with
        ``submitter.send`` and hand the outcome to ``finish_submit``.
        """
        if self.is_submitting:
            return {"ok": False, "error": SUBMIT_IN_PROGRESS}
        outcome = validate_draft(self.draft)
        if not outcome.is_valid:
            self.notifications.error(VALIDATION_TITLE, outcome.message or "")
            self.telemetry.record(
                category="validation",
                name="bulk_transfer_rejected",
                action="submit",
                success=False,
                error_code=outcome.reason.value if outcome.reason else None,
            )
            return {"ok": False, "error": outcome.message, "validation": outcome.render()}

        request = self.submitter.prepare(self.draft)
        self.is_submitting = True
        self._pending = request
        self._submit_started = time.monotonic()
        return {
            "ok": True,
            "request": request,
            "line_count": request.line_count,
            "total_units": request.total_units,
        }

    def finish_submit(
        self,
        request: SubmitRequest,
        confirmation: TransferConfirmation | None = None,
        error: Exception | None = None,
    ) -> dict[str, Any]:
        """Apply the outcome of ``request``.

        A request left behind by ``dismiss`` still reports its outcome but
        leaves the current draft alone.
        """
        current = request is self._pending
        if current:
            self.is_submitting = False
            self._pending = None
        result = self.submitter.complete(
            request,
            self.draft if current else None,
            confirmation=confirmation,
            error=error,
            on_complete=self._close_callback() if current else None,
        )
        self.telemetry.record(
            category="api_call_result" if result.ok else "error",
            name="bulk_transfer_create",
            action="submit",
            duration_ms=_elapsed_ms(self._submit_started),
            success=result.ok,
            context={"line_count": result.line_count, "total_units": result.total_units},
        )
        response = result.render()
        if result.confirmation is not None:
            response["transfer_id"] = result.confirmation.id
        if not current:
            response["stale"] = True
            return response
        if result.ok:
            self._close_handle = result.close_handle
            self.loader.invalidate()
            self.search_term = ""
        return response

    def submit(self) -> dict[str, Any]:
        started = self.begin_submit()
        if not started["ok"]:
            return started
        request = started["request"]
        try:
            confirmation = self.submitter.send(request)
        except (ApiError, ValueError) as exc:
            return self.finish_submit(request, error=exc)
        except Exception:
            if request is self._pending:
                self.is_submitting = False
                self._pending = None
            raise
        return self.finish_submit(request, confirmation=confirmation)

    def _new_session(self) -> None:
        self._session += 1
        handle, self._close_handle = self._close_handle, None
        cancel = getattr(handle, "cancel", None)
        if callable(cancel):
            cancel()

    def _close_callback(self) -> Callable[[], None]:
        session = self._session

        def close() -> None:
            if session != self._session:
                logger.info("bulk_transfer_close_skipped", extra={"session": session, "current": self._session})
                return
            self._complete()

        return close

    def _complete(self) -> None:
        if self.on_success is not None:
            self.on_success()
        self.dismiss()

    def render(self) -> dict[str, Any]:
        return {
            "open": self.is_open,
            "submitting": self.is_submitting,
            "source_branch_id": self.draft.source_branch_id,
            "source_branch_name": self.catalog.name_of(self.draft.source_branch_id),
            "destination_branch_id": self.draft.destination_branch_id,
            "destination_branch_name": self.catalog.name_of(self.draft.destination_branch_id),
            "notes": self.draft.notes,
            "search_term": self.search_term,
            "visible_items": [item.model_dump() for item in self.visible_items()],
            "cart": self.draft.lines.render(),
            "notification": self.notifications.render(),
        }

    def _snapshot_response(self, result: SnapshotResult) -> dict[str, Any]:
        response: dict[str, Any] = {
            "ok": result.ok,
            "branch_id": result.branch_id,
            "items": len(result.items),
            "changed": True,
        }
        if result.stale:
            response["stale"] = True
        if result.error:
            response["error"] = result.error
        return response

    def _line_response(self, line: TransferLine | None) -> dict[str, Any]:
        if line is None:
            return {"ok": False, "error": "Product is not in the transfer list"}
        return {"ok": True, "line": line.render(), "summary": self.summary()}
