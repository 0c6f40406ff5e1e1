from .branch_catalog import BranchCatalog
from .composer import BulkTransferComposer
from .config import ClientConfig, ConfigError, load_config
from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    ServerError,
    TransferStockError,
    TransportError,
    ValidationError,
)
from .http_client import HttpClient
from .inventory_snapshot import InventorySnapshotLoader, SnapshotRequest, SnapshotResult
from .models import (
    Branch,
    BulkTransferCreateRequest,
    BulkTransferItemPayload,
    InventoryItem,
    InventoryPage,
    TransferConfirmation,
)
from .notifications import Notification, NotificationCenter, NotificationKind
from .payload_validation import ClientValidationError, ValidationIssue, validate_bulk_transfer_payload
from .search_filter import filter_snapshot
from .session import ApiSession
from .telemetry import TelemetryEvent, TelemetryRecorder, build_event
from .transfer_draft import TransferDraft
from .transfer_errors import extract_error_message
from .transfer_lines import AddOutcome, QuantityState, TransferLine, TransferLineSet
from .transfer_submitter import SubmitRequest, SubmitResult, TransferSubmitter, build_transfer_payload
from .transfer_validation import ValidationOutcome, ValidationReason, validate_draft

__all__ = [
    "AddOutcome",
    "ApiError",
    "ApiSession",
    "AuthError",
    "Branch",
    "BranchCatalog",
    "BulkTransferComposer",
    "BulkTransferCreateRequest",
    "BulkTransferItemPayload",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "ConflictError",
    "HttpClient",
    "InventoryItem",
    "InventoryPage",
    "InventorySnapshotLoader",
    "NotFoundError",
    "Notification",
    "NotificationCenter",
    "NotificationKind",
    "PermissionError",
    "QuantityState",
    "ServerError",
    "SnapshotRequest",
    "SnapshotResult",
    "SubmitRequest",
    "SubmitResult",
    "TelemetryEvent",
    "TelemetryRecorder",
    "TransferConfirmation",
    "TransferDraft",
    "TransferLine",
    "TransferLineSet",
    "TransferStockError",
    "TransferSubmitter",
    "TransportError",
    "ValidationError",
    "ValidationIssue",
    "ValidationOutcome",
    "ValidationReason",
    "build_event",
    "build_transfer_payload",
    "extract_error_message",
    "filter_snapshot",
    "load_config",
    "validate_bulk_transfer_payload",
    "validate_draft",
]
