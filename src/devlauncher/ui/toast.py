"""Non-blocking user notifications."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, Protocol

logger = py_logging.getLogger(__name__)

ToastLevel = Literal["info", "success", "error"]
DEFAULT_DURATION_MS = 3000
TOAST_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class Toast:
    level: ToastLevel
    message: str
    duration_ms: int = DEFAULT_DURATION_MS


class Notifier(Protocol):
    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ToastCenter:
    """Records recent toasts, oldest dropped first, and forwards each to the GUI sink."""

    def __init__(
        self,
        sink: Callable[[Toast], None] | None = None,
        *,
        history_limit: int = TOAST_HISTORY_LIMIT,
    ) -> None:
        self.toasts: list[Toast] = []
        self.sink = sink
        self.history_limit = max(1, history_limit)

    def show(self, message: str, level: ToastLevel = "info", duration_ms: int = DEFAULT_DURATION_MS) -> Toast:
        toast = Toast(level=level, message=message, duration_ms=duration_ms)
        self.toasts.append(toast)
        overflow = len(self.toasts) - self.history_limit
        if overflow > 0:
            del self.toasts[:overflow]
        logger.debug("toast level=%s message=%s", level, message)
        if self.sink:
            self.sink(toast)
        return toast

    def info(self, message: str) -> None:
        self.show(message, "info")

    def success(self, message: str) -> None:
        self.show(message, "success")

    def error(self, message: str) -> None:
        self.show(message, "error")
