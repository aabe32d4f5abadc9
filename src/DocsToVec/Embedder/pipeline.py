# === NAVMAP v1 ===
# {
#   "module": "DocsToVec.Embedder.pipeline",
#   "purpose": "Drive one input set through an embedding provider with resume and checkpoints.",
#   "sections": [
#     {
#       "id": "pipelinestate",
#       "name": "PipelineState",
#       "anchor": "class-pipelinestate",
#       "kind": "class"
#     },
#     {
#       "id": "embedsuccess",
#       "name": "EmbedSuccess",
#       "anchor": "class-embedsuccess",
#       "kind": "class"
#     },
#     {
#       "id": "embedfailure",
#       "name": "EmbedFailure",
#       "anchor": "class-embedfailure",
#       "kind": "class"
#     },
#     {
#       "id": "embed-item",
#       "name": "embed_item",
#       "anchor": "function-embed-item",
#       "kind": "function"
#     },
#     {
#       "id": "pipelineresult",
#       "name": "PipelineResult",
#       "anchor": "class-pipelineresult",
#       "kind": "class"
#     },
#     {
#       "id": "embeddingpipeline",
#       "name": "EmbeddingPipeline",
#       "anchor": "class-embeddingpipeline",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Drive one input set through an embedding provider with resume and checkpoints.

The pipeline walks items strictly in input order, one provider call at a time:

* items whose identifier already has a saved embedding are taken from the
  existing output and never re-embedded;
* items without text in the configured field pass through unchanged;
* provider calls go through :func:`embed_item`, which turns every failure into
  an :class:`EmbedFailure` value so one bad item cannot abort the run.

Every ``batch_size`` new embeddings the full item array (finished items plus
the untouched remainder) is checkpointed, and a final save always happens.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from numbers import Real
from pathlib import Path
from typing import Callable, List, Optional, Union

from . import checkpoint
from .checkpoint import EmbedderInfo
from .errors import RecordTypeError
from .loaders import InputSet
from .logging import get_logger, log_event
from .progress import ProgressEvent, ProgressObserver, format_rate_status
from .providers.base import EmbeddingProvider, ProviderError
from .records import Record, item_identifier

__all__ = [
    "EmbedFailure",
    "EmbedOutcome",
    "EmbedSuccess",
    "EmbeddingPipeline",
    "PipelineResult",
    "PipelineState",
    "embed_item",
]

STATUS_EVERY = 10

_LOGGER = get_logger(__name__, base_fields={"stage": "embed"})


class PipelineState(str, Enum):
    """Lifecycle of a single pipeline run."""

    PENDING = "pending"
    LOADING = "loading"
    RESUMING = "resuming"
    EMBEDDING = "embedding"
    SAVING = "saving"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class EmbedSuccess:
    vector: List[float]


@dataclass(slots=True, frozen=True)
class EmbedFailure:
    reason: str
    error_code: str = "PROVIDER_FAILED"


EmbedOutcome = Union[EmbedSuccess, EmbedFailure]


def embed_item(provider: EmbeddingProvider, text: str) -> EmbedOutcome:
    """Call ``provider.embed`` and return the outcome as a value.

    Provider exceptions and malformed vectors (empty, or holding non-numbers)
    become :class:`EmbedFailure`; nothing is raised.
    """

    try:
        raw = provider.embed(text)
    except ProviderError as exc:
        return EmbedFailure(reason=str(exc), error_code="PROVIDER_ERROR")
    except Exception as exc:
        return EmbedFailure(reason=f"{type(exc).__name__}: {exc}")
    try:
        values = list(raw)
    except TypeError:
        return EmbedFailure(reason="provider returned a non-sequence", error_code="INVALID_VECTOR")
    if not values:
        return EmbedFailure(reason="provider returned an empty vector", error_code="INVALID_VECTOR")
    if any(isinstance(value, bool) or not isinstance(value, Real) for value in values):
        return EmbedFailure(reason="provider returned non-numeric values", error_code="INVALID_VECTOR")
    return EmbedSuccess(vector=[float(value) for value in values])


@dataclass(slots=True)
class PipelineResult:
    """Counters describing one completed pipeline run."""

    output_path: Path
    total_items: int = 0
    resumed: int = 0
    newly_embedded: int = 0
    failed: int = 0
    skipped_without_text: int = 0
    embedded_count: int = 0
    checkpoints: int = 0
    elapsed_seconds: float = 0.0
    state: PipelineState = PipelineState.PENDING

    @property
    def complete(self) -> bool:
        return self.total_items > 0 and self.embedded_count == self.total_items


class EmbeddingPipeline:
    """Embed the items of one :class:`InputSet` into one output document."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        info: EmbedderInfo,
        batch_size: int = 100,
        resume: bool = True,
        observer: Optional[ProgressObserver] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.provider = provider
        self.info = info
        self.batch_size = batch_size
        self.resume = resume
        self.observer = observer
        self._clock = clock
        self.state = PipelineState.PENDING

    def _emit(self, processed: int, total: int, message: str = "") -> None:
        if self.observer is not None:
            self.observer.update(ProgressEvent(processed=processed, total=total, message=message))

    def run(
        self,
        source: Union[InputSet, Callable[[], InputSet]],
        output_path: Path,
    ) -> PipelineResult:
        """Embed ``source`` into ``output_path`` and return the run counters.

        ``source`` may be an :class:`InputSet` or a zero-argument loader; load
        errors propagate after the state moves to ``FAILED``. The output file
        keeps whatever the last checkpoint wrote when the run fails.
        """

        started = self._clock()
        result = PipelineResult(output_path=output_path)
        try:
            self.state = PipelineState.LOADING
            input_set = source() if callable(source) else source
            self._execute(input_set, output_path, result, started)
        except BaseException:
            self.state = PipelineState.FAILED
            result.state = self.state
            result.elapsed_seconds = self._clock() - started
            raise
        return result

    def _execute(
        self, input_set: InputSet, output_path: Path, result: PipelineResult, started: float
    ) -> None:
        items = input_set.items
        total = len(items)
        result.total_items = total
        text_field = self.info.text_field

        self.state = PipelineState.RESUMING
        existing = checkpoint.load_existing(output_path, input_set.items_key) if self.resume else {}
        identifiers = [item_identifier(item, index) for index, item in enumerate(items)]
        output: List[Record] = [
            existing.get(identifier, Record.coerce(item))
            for identifier, item in zip(identifiers, items)
        ]
        result.resumed = sum(1 for identifier in identifiers if identifier in existing)
        processed = result.resumed
        if result.resumed:
            message = f"Resuming from {processed}/{total}"
            log_event(_LOGGER, "info", message, output=str(output_path), resumed=result.resumed)
            self._emit(processed, total, message)

        self.state = PipelineState.EMBEDDING
        for index, item in enumerate(items):
            identifier = identifiers[index]
            if identifier in existing:
                continue
            record = output[index]
            try:
                text = record.get_text(text_field)
            except RecordTypeError as exc:
                result.failed += 1
                log_event(
                    _LOGGER,
                    "warning",
                    "Item text field is not text; leaving unembedded",
                    item_id=identifier,
                    field=text_field,
                    error=str(exc),
                    error_code=exc.error_code,
                )
                continue
            if not text:
                result.skipped_without_text += 1
                log_event(_LOGGER, "debug", "Item has no text; passing through", item_id=identifier)
                continue

            outcome = embed_item(self.provider, text)
            if isinstance(outcome, EmbedFailure):
                result.failed += 1
                log_event(
                    _LOGGER,
                    "warning",
                    "Error embedding item; leaving unembedded",
                    item_id=identifier,
                    error=outcome.reason,
                    error_code=outcome.error_code,
                )
                continue

            output[index] = record.with_embeddings(outcome.vector)
            result.newly_embedded += 1
            processed += 1
            message = ""
            if processed % STATUS_EVERY == 0:
                message = format_rate_status(
                    processed, total, result.newly_embedded, self._clock() - started
                )
            self._emit(processed, total, message)

            if result.newly_embedded % self.batch_size == 0:
                checkpoint.save(output_path, input_set.metadata, input_set.items_key, output, self.info)
                result.checkpoints += 1
                message = f"Checkpoint saved at {processed}/{total}"
                log_event(_LOGGER, "info", message, output=str(output_path))
                self._emit(processed, total, message)

        self.state = PipelineState.SAVING
        saved = checkpoint.save(output_path, input_set.metadata, input_set.items_key, output, self.info)
        result.embedded_count = int(saved["embedded_count"])
        result.elapsed_seconds = self._clock() - started
        self.state = PipelineState.DONE
        result.state = self.state
        log_event(
            _LOGGER,
            "info",
            "Saved output",
            output=str(output_path),
            total_items=total,
            embedded_count=result.embedded_count,
            newly_embedded=result.newly_embedded,
            failed=result.failed,
        )
