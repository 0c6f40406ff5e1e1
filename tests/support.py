from __future__ import annotations

from dataclasses import dataclass, field

from backoffice_client_sdk.config import ClientConfig
from backoffice_client_sdk.exceptions import ApiError
from backoffice_client_sdk.models import Branch, BulkTransferCreateRequest, InventoryItem, TransferConfirmation

BASE_URL = "https://api.example.com"


def make_config(**overrides) -> ClientConfig:
    values = {
        "env_name": "test",
        "api_base_url": BASE_URL,
        "api_token": "token",
        "retries": 2,
        "retry_backoff_seconds": 0.0,
    }
    values.update(overrides)
    return ClientConfig(**values)


def item(product_id: str, name: str, stock: int, barcode: str | None = None) -> InventoryItem:
    return InventoryItem(product_id=product_id, name=name, barcode=barcode, available_quantity=stock)


@dataclass
class FakeClock:
    now: float = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeBranchesClient:
    branches: list[Branch] = field(default_factory=list)
    fail: Exception | None = None

    def list_branches(self) -> list[Branch]:
        if self.fail:
            raise self.fail
        return list(self.branches)


@dataclass
class FakeInventoryClient:
    by_branch: dict[int, list[InventoryItem]] = field(default_factory=dict)
    fail: Exception | None = None
    calls: list[int] = field(default_factory=list)

    def list_branch_inventory(self, branch_id: int) -> list[InventoryItem]:
        self.calls.append(branch_id)
        if self.fail:
            raise self.fail
        return list(self.by_branch.get(branch_id, []))


@dataclass
class FakeTransfersClient:
    confirmation: TransferConfirmation = field(
        default_factory=lambda: TransferConfirmation(id=77, status="PENDING")
    )
    fail: Exception | None = None
    payloads: list[BulkTransferCreateRequest] = field(default_factory=list)

    def create_bulk_transfer(self, payload: BulkTransferCreateRequest) -> TransferConfirmation:
        self.payloads.append(payload)
        if self.fail:
            raise self.fail
        return self.confirmation


@dataclass
class ScheduledCall:
    delay_seconds: float
    callback: object
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class RecordingScheduler:
    calls: list[ScheduledCall] = field(default_factory=list)

    def __call__(self, delay_seconds: float, callback) -> ScheduledCall:
        call = ScheduledCall(delay_seconds, callback)
        self.calls.append(call)
        return call

    @property
    def scheduled(self) -> list[tuple[float, object]]:
        return [(call.delay_seconds, call.callback) for call in self.calls]

    def run_all(self) -> None:
        """Fire every call that was not cancelled, as an expiring timer would."""
        pending, self.calls = self.calls, []
        for call in pending:
            if not call.cancelled:
                call.callback()


def api_error(status_code: int, raw_payload: object, cls: type[ApiError] = ApiError) -> ApiError:
    return cls(
        code="HTTP_ERROR",
        message="Request failed",
        details=None,
        status_code=status_code,
        raw_payload=raw_payload,
    )
