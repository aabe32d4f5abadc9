"""
Progress reporting for embedding runs.

The pipeline emits :class:`ProgressEvent` values to an optional
:class:`ProgressObserver`; it never keeps progress in module state. Two
observers ship with the package: a ``tqdm`` bar for interactive terminals and a
logging observer for redirected or JSON-logged runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from tqdm import tqdm

from .logging import get_logger, log_event

__all__ = [
    "LoggingProgressObserver",
    "ProgressEvent",
    "ProgressObserver",
    "TqdmProgressObserver",
    "format_duration",
    "format_rate_status",
]


@dataclass(slots=True, frozen=True)
class ProgressEvent:
    """Snapshot of run progress."""

    processed: int
    total: int
    message: str = ""


class ProgressObserver(Protocol):
    """Sink for progress events."""

    def update(self, event: ProgressEvent) -> None: ...


def format_duration(seconds: float) -> str:
    """Render ``seconds`` as ``45s``, ``2m 5s`` or ``1h 3m``.

    Examples:
        >>> format_duration(125)
        '2m 5s'
    """

    total = max(0, int(seconds))
    if total < 60:
        return f"{total}s"
    if total < 3600:
        return f"{total // 60}m {total % 60}s"
    return f"{total // 3600}h {(total % 3600) // 60}m"


def format_rate_status(processed: int, total: int, newly_embedded: int, elapsed: float) -> str:
    """Return the periodic rate/ETA status line."""

    rate = newly_embedded / elapsed if elapsed > 0 else 0.0
    remaining = (total - processed) / rate if rate > 0 else 0.0
    return (
        f"Progress: {processed}/{total} "
        f"({rate:.1f}/sec, ~{format_duration(remaining)} remaining)"
    )


class TqdmProgressObserver:
    """Render progress as a ``tqdm`` bar with the status message as postfix."""

    def __init__(self, *, desc: str = "Embedding", total: int = 0, disable: bool = False) -> None:
        self._bar = tqdm(total=total, desc=desc, unit="item", disable=disable, leave=True)

    def update(self, event: ProgressEvent) -> None:
        if event.total and self._bar.total != event.total:
            self._bar.total = event.total
        delta = event.processed - self._bar.n
        if delta > 0:
            self._bar.update(delta)
        if event.message:
            self._bar.set_postfix_str(event.message, refresh=False)
        self._bar.refresh()

    def close(self) -> None:
        self._bar.close()

    def __enter__(self) -> "TqdmProgressObserver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class LoggingProgressObserver:
    """Log every ``every``-th event, plus any event carrying a message."""

    def __init__(self, *, every: int = 10, logger_name: str = "progress") -> None:
        self._every = max(1, every)
        self._count = 0
        self._logger = get_logger(logger_name, base_fields={"stage": "embed"})
        self.last_event: Optional[ProgressEvent] = None

    def update(self, event: ProgressEvent) -> None:
        self._count += 1
        self.last_event = event
        if event.message or self._count % self._every == 0:
            log_event(
                self._logger,
                "info",
                event.message or "Progress",
                processed=event.processed,
                total=event.total,
            )
