from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

TELEMETRY_CATEGORIES = {"api_call_result", "error", "validation", "navigation"}
_FORBIDDEN_CONTEXT_KEYS = {"token", "authorization", "password", "email", "phone", "notes"}


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    action: str
    timestamp_utc: str
    duration_ms: int | None = None
    success: bool | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def build_event(
    *,
    category: str,
    name: str,
    action: str,
    duration_ms: int | None = None,
    success: bool | None = None,
    error_code: str | None = None,
    context: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    if category not in TELEMETRY_CATEGORIES:
        raise ValueError(f"Unsupported telemetry category: {category}")
    if context:
        illegal = sorted(key for key in context if key.lower() in _FORBIDDEN_CONTEXT_KEYS)
        if illegal:
            raise ValueError(f"Sensitive keys are forbidden in telemetry context: {illegal}")
    return TelemetryEvent(
        category=category,
        name=name,
        action=action,
        timestamp_utc=(now or datetime.now(timezone.utc)).isoformat(),
        duration_ms=duration_ms,
        success=success,
        error_code=error_code,
        context=context,
    )


@dataclass
class TelemetryRecorder:
    """Keeps the events of one composer session and optionally appends them to a JSONL file.

    Disabled recorders drop everything, so callers never need to check.
    """

    app_name: str = "bulk_transfer_composer"
    enabled: bool = False
    log_file: Path | None = None
    events: list[TelemetryEvent] = field(default_factory=list)

    @classmethod
    def from_env(cls, app_name: str = "bulk_transfer_composer") -> "TelemetryRecorder":
        flag = os.getenv("BACKOFFICE_TELEMETRY_ENABLED", "0").strip().lower()
        return cls(
            app_name=app_name,
            enabled=flag in {"1", "true", "yes", "on"},
            log_file=Path("artifacts") / "telemetry" / f"{app_name}.jsonl",
        )

    def record(self, **kwargs: Any) -> TelemetryEvent | None:
        if not self.enabled:
            return None
        event = build_event(**kwargs)
        self.events.append(event)
        if self.log_file is not None:
            payload = {**event.to_dict(), "app_name": self.app_name}
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open("a", encoding="utf-8") as fp:
                fp.write(json.dumps(payload, sort_keys=True) + "\n")
        return event
