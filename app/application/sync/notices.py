"""User-facing notices raised by the notification sync controller."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Sink for transient messages shown to the user (toasts, banners...)."""

    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Default notifier that only writes the notices to the log."""

    def info(self, message: str) -> None:
        logger.info("Notice: %s", message)

    def error(self, message: str) -> None:
        logger.warning("Error notice: %s", message)


__all__ = ["Notifier", "LoggingNotifier"]
