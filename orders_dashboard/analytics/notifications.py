# orders_dashboard/analytics/notifications.py
"""
User-facing notification sink.

Raised on: invalid date range, disallowed month selection, aggregate manual
refresh failure, per-series fetch failure.
"""

import logging
from typing import List, Protocol, Tuple

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def warning(self, message: str) -> None: ...

    def error(self, title: str, message: str) -> None: ...


class LoggingNotifier:
    """Default sink when no UI is attached: writes to the log."""

    def warning(self, message: str):
        logger.warning(f"⚠️ {message}")

    def error(self, title: str, message: str):
        logger.error(f"❌ {title}: {message}")


class RecordingNotifier:
    """Keeps every notification in memory (headless runs, tests)."""

    def __init__(self):
        self.warnings: List[str] = []
        self.errors: List[Tuple[str, str]] = []

    def warning(self, message: str):
        self.warnings.append(message)

    def error(self, title: str, message: str):
        self.errors.append((title, message))

    def clear(self):
        self.warnings.clear()
        self.errors.clear()
