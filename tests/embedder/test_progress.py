from __future__ import annotations

import logging

import pytest

from DocsToVec.Embedder.progress import (
    LoggingProgressObserver,
    ProgressEvent,
    TqdmProgressObserver,
    format_duration,
    format_rate_status,
)


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "0s"), (45.9, "45s"), (125, "2m 5s"), (3780, "1h 3m"), (-3, "0s")],
)
def test_format_duration(seconds: float, expected: str) -> None:
    assert format_duration(seconds) == expected


def test_format_rate_status() -> None:
    assert format_rate_status(20, 120, 20, 10.0) == "Progress: 20/120 (2.0/sec, ~50s remaining)"
    assert format_rate_status(5, 10, 0, 0.0) == "Progress: 5/10 (0.0/sec, ~0s remaining)"


def test_logging_observer_throttles(caplog: pytest.LogCaptureFixture) -> None:
    logging.getLogger("DocsToVec").propagate = True
    observer = LoggingProgressObserver(every=3)

    with caplog.at_level(logging.INFO, logger="DocsToVec"):
        for processed in range(1, 7):
            observer.update(ProgressEvent(processed=processed, total=6))
        observer.update(ProgressEvent(processed=6, total=6, message="Checkpoint saved at 6/6"))

    messages = [record.getMessage() for record in caplog.records]
    assert messages == ["Progress", "Progress", "Checkpoint saved at 6/6"]
    assert observer.last_event == ProgressEvent(6, 6, "Checkpoint saved at 6/6")


def test_tqdm_observer_tracks_totals() -> None:
    with TqdmProgressObserver() as observer:
        observer.update(ProgressEvent(processed=3, total=10))
        observer.update(ProgressEvent(processed=5, total=12, message="File 1/2"))
        assert observer._bar.n == 5
        assert observer._bar.total == 12
