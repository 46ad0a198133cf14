"""
Run event observers.

Ingestion and ranking report progress through a RunObserver instead of
logging directly. Observers are called through ``notify`` so that a failing
observer can never change the outcome of a run.
"""

from __future__ import annotations

import logging
from typing import Any

from .utils.logging import log_event

logger = logging.getLogger(__name__)


class RunObserver:
    """Receives run events. The default implementation ignores everything.

    ``kind`` names the run type ("fetch" or "trending"); the keyword fields
    carry event details such as feed ids, counts and durations.
    """

    def on_start(self, kind: str, **fields: Any) -> None:
        pass

    def on_item(self, kind: str, **fields: Any) -> None:
        pass

    def on_complete(self, kind: str, **fields: Any) -> None:
        pass

    def on_error(self, kind: str, message: str, **fields: Any) -> None:
        pass


class LoggingObserver(RunObserver):
    """Forwards run events to a logger as structured records."""

    def __init__(self, target: logging.Logger | None = None):
        self.logger = target or logging.getLogger("trendwire.runs")

    def on_start(self, kind: str, **fields: Any) -> None:
        log_event(self.logger, f"{kind} run start", event=f"{kind}_start", **fields)

    def on_item(self, kind: str, **fields: Any) -> None:
        log_event(self.logger, f"{kind} item", level=logging.DEBUG, event=f"{kind}_item", **fields)

    def on_complete(self, kind: str, **fields: Any) -> None:
        log_event(self.logger, f"{kind} run complete", event=f"{kind}_complete", **fields)

    def on_error(self, kind: str, message: str, **fields: Any) -> None:
        log_event(
            self.logger,
            f"{kind} error: {message}",
            level=logging.ERROR,
            event=f"{kind}_error",
            error=message,
            **fields,
        )


def notify(observer: RunObserver | None, method: str, *args: Any, **fields: Any) -> None:
    """Invoke ``observer.<method>`` and contain any exception it raises."""
    if observer is None:
        return
    try:
        getattr(observer, method)(*args, **fields)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Run observer %s.%s failed: %s", type(observer).__name__, method, exc)
