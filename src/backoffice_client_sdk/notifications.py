from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

DEFAULT_TIMEOUT_SECONDS = 5.0


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    title: str
    message: str
    expires_at: float

    def render(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "title": self.title, "message": self.message}


@dataclass
class NotificationCenter:
    """Single-slot status banner.

    A new notification replaces the visible one instead of queueing behind
    it, and every notification disappears on its own after
    ``timeout_seconds``. Expiry is evaluated lazily against ``clock`` so the
    banner needs no timer thread.
    """

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    clock: Callable[[], float] = time.monotonic
    _current: Notification | None = None

    def show(self, kind: NotificationKind | str, title: str, message: str) -> Notification:
        notification = Notification(
            kind=NotificationKind(kind),
            title=title,
            message=message,
            expires_at=self.clock() + self.timeout_seconds,
        )
        self._current = notification
        return notification

    def success(self, title: str, message: str) -> Notification:
        return self.show(NotificationKind.SUCCESS, title, message)

    def error(self, title: str, message: str) -> Notification:
        return self.show(NotificationKind.ERROR, title, message)

    def warning(self, title: str, message: str) -> Notification:
        return self.show(NotificationKind.WARNING, title, message)

    @property
    def current(self) -> Notification | None:
        if self._current is not None and self.clock() >= self._current.expires_at:
            self._current = None
        return self._current

    def dismiss(self) -> None:
        self._current = None

    def render(self) -> dict[str, Any]:
        current = self.current
        return {"visible": current is not None, "notification": current.render() if current else None}
