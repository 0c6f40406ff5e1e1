from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .exceptions import ApiError
from .models import InventoryItem
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)

LOAD_FAILURE_TITLE = "Error"
INVENTORY_LOAD_FAILURE = "Could not load the products for this branch."


class InventorySource(Protocol):
    def list_branch_inventory(self, branch_id: int) -> list[InventoryItem]: ...


@dataclass(frozen=True)
class SnapshotRequest:
    branch_id: int
    generation: int


@dataclass(frozen=True)
class SnapshotResult:
    branch_id: int
    items: tuple[InventoryItem, ...] = ()
    applied: bool = True
    stale: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.applied and self.error is None


class InventorySnapshotLoader:
    """Holds the in-stock snapshot for the selected source branch.

    Loads are split into ``begin``, ``fetch`` and ``apply`` so that a UI
    shell can run ``fetch`` off its event loop. Every ``begin`` bumps a
    generation counter and a result is only applied if its request is
    still the newest one, so when the user switches branches twice before
    the first load returns, the older response is dropped no matter which
    one arrives last.
    """

    def __init__(self, client: InventorySource, notifications: NotificationCenter) -> None:
        self.client = client
        self.notifications = notifications
        self.snapshot: tuple[InventoryItem, ...] = ()
        self.branch_id: int | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self, branch_id: int) -> SnapshotRequest:
        self._generation += 1
        self.branch_id = branch_id
        self.snapshot = ()
        return SnapshotRequest(branch_id=branch_id, generation=self._generation)

    def fetch(self, request: SnapshotRequest) -> list[InventoryItem]:
        return self.client.list_branch_inventory(request.branch_id)

    def is_current(self, request: SnapshotRequest) -> bool:
        return request.generation == self._generation

    def apply(self, request: SnapshotRequest, items: list[InventoryItem]) -> SnapshotResult:
        if not self.is_current(request):
            logger.info(
                "inventory_snapshot_stale",
                extra={"branch_id": request.branch_id, "generation": request.generation, "current": self._generation},
            )
            return SnapshotResult(branch_id=request.branch_id, applied=False, stale=True)
        in_stock = tuple(item for item in items if item.available_quantity > 0)
        self.snapshot = in_stock
        logger.info(
            "inventory_snapshot_loaded",
            extra={"branch_id": request.branch_id, "received": len(items), "in_stock": len(in_stock)},
        )
        return SnapshotResult(branch_id=request.branch_id, items=in_stock)

    def apply_failure(self, request: SnapshotRequest, exc: Exception) -> SnapshotResult:
        if not self.is_current(request):
            logger.info("inventory_snapshot_stale_failure", extra={"branch_id": request.branch_id})
            return SnapshotResult(branch_id=request.branch_id, applied=False, stale=True)
        logger.warning("inventory_snapshot_failure", extra={"branch_id": request.branch_id, "error": str(exc)})
        self.snapshot = ()
        self.notifications.error(LOAD_FAILURE_TITLE, INVENTORY_LOAD_FAILURE)
        return SnapshotResult(branch_id=request.branch_id, error=INVENTORY_LOAD_FAILURE)

    def load(self, branch_id: int) -> SnapshotResult:
        request = self.begin(branch_id)
        try:
            items = self.fetch(request)
        except (ApiError, ValueError) as exc:
            return self.apply_failure(request, exc)
        return self.apply(request, items)

    def invalidate(self) -> None:
        self._generation += 1
        self.branch_id = None
        self.snapshot = ()
