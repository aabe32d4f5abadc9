# === NAVMAP v1 ===
# {
#   "module": "DocsToVec.Embedder.batch",
#   "purpose": "Embed every record file in a directory into its own resumable output.",
#   "sections": [
#     {
#       "id": "batch-output-path",
#       "name": "batch_output_path",
#       "anchor": "function-batch-output-path",
#       "kind": "function"
#     },
#     {
#       "id": "batchplan",
#       "name": "BatchPlan",
#       "anchor": "class-batchplan",
#       "kind": "class"
#     },
#     {
#       "id": "plan-batch",
#       "name": "plan_batch",
#       "anchor": "function-plan-batch",
#       "kind": "function"
#     },
#     {
#       "id": "batchresult",
#       "name": "BatchResult",
#       "anchor": "class-batchresult",
#       "kind": "class"
#     },
#     {
#       "id": "batchorchestrator",
#       "name": "BatchOrchestrator",
#       "anchor": "class-batchorchestrator",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Embed every record file in a directory into its own resumable output.

Each ``name.json`` in the input directory maps to
``<output_dir>/name_with_embeddings.json``. Files whose output is already
complete are partitioned out before any model work starts, so re-running a
finished batch is a cheap directory scan that never loads the model. The
provider is opened once and reused across all remaining files, which are
processed in the same name order used for discovery.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from . import checkpoint
from .checkpoint import EmbedderInfo
from .loaders import discover_record_files, load_records
from .logging import get_logger, log_event
from .pipeline import EmbeddingPipeline, PipelineResult
from .progress import ProgressEvent, ProgressObserver
from .providers.factory import ProviderSession

__all__ = [
    "ESTIMATED_ITEMS_PER_FILE",
    "OUTPUT_SUFFIX",
    "BatchOrchestrator",
    "BatchPlan",
    "BatchResult",
    "batch_output_path",
    "plan_batch",
]

OUTPUT_SUFFIX = "_with_embeddings.json"
# Display-only guess used for the overall progress total.
ESTIMATED_ITEMS_PER_FILE = 500

_LOGGER = get_logger(__name__, base_fields={"stage": "batch"})


def batch_output_path(input_file: Path, output_dir: Path) -> Path:
    """Return the output document path for ``input_file``."""

    return output_dir / f"{input_file.stem}{OUTPUT_SUFFIX}"


@dataclass(slots=True)
class BatchPlan:
    """Discovered files partitioned into work to do and work already done."""

    input_dir: Path
    output_dir: Path
    to_process: List[Tuple[Path, Path]] = field(default_factory=list)
    skipped: List[Tuple[Path, Path]] = field(default_factory=list)

    @property
    def files_found(self) -> int:
        return len(self.to_process) + len(self.skipped)


def plan_batch(input_dir: Path, output_dir: Path) -> BatchPlan:
    """Discover record files and split them by output completeness.

    Creates ``output_dir`` when missing. When the output directory is the input
    directory, previously written ``*_with_embeddings.json`` files are not
    treated as inputs.

    Raises:
        InputNotFoundError: If ``input_dir`` does not exist.
    """

    files = discover_record_files(input_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    if output_dir.resolve() == input_dir.resolve():
        files = [path for path in files if not path.name.endswith(OUTPUT_SUFFIX)]

    plan = BatchPlan(input_dir=input_dir, output_dir=output_dir)
    for input_file in files:
        output_path = batch_output_path(input_file, output_dir)
        if checkpoint.is_complete(output_path):
            plan.skipped.append((input_file, output_path))
        else:
            plan.to_process.append((input_file, output_path))
    log_event(
        _LOGGER,
        "info",
        "Planned batch",
        input_dir=str(input_dir),
        files_found=plan.files_found,
        to_process=len(plan.to_process),
        skipped=len(plan.skipped),
    )
    return plan


@dataclass(slots=True)
class BatchResult:
    """Aggregated counters for a batch run; reporting only."""

    output_dir: Path
    files_found: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    total_items: int = 0
    newly_embedded: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0
    provider_opened: bool = False
    results: List[PipelineResult] = field(default_factory=list)

    @property
    def all_skipped(self) -> bool:
        return self.files_found > 0 and self.files_processed == 0 and not self.provider_opened


class _BatchProgress:
    """Translate per-file pipeline events into cumulative batch progress."""

    def __init__(self, observer: ProgressObserver, estimated_total: int) -> None:
        self._observer = observer
        self._estimated_total = estimated_total
        self._baseline = 0
        self._file_label = ""
        self.processed = 0

    def start_file(self, label: str) -> None:
        self._baseline = self.processed
        self._file_label = label

    def update(self, event: ProgressEvent) -> None:
        self.processed = self._baseline + event.processed
        total = max(self._estimated_total, self.processed)
        message = f"{self._file_label} {event.message}".strip() if event.message else self._file_label
        self._observer.update(ProgressEvent(processed=self.processed, total=total, message=message))


class BatchOrchestrator:
    """Run the embedding pipeline over every incomplete record file in a directory."""

    def __init__(
        self,
        session: ProviderSession,
        *,
        model: str,
        text_field: str,
        batch_size: int = 100,
        resume: bool = True,
        observer: Optional[ProgressObserver] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.session = session
        self.info = EmbedderInfo(model=model, text_field=text_field, input_type="json-dir")
        self.batch_size = batch_size
        self.resume = resume
        self.observer = observer
        self._clock = clock

    def run(self, input_dir: Path, output_dir: Path) -> BatchResult:
        """Embed each pending file and return aggregated counters.

        Returns without opening the provider when every discovered file is
        already complete (or none were found).
        """

        started = self._clock()
        plan = plan_batch(input_dir, output_dir)
        result = BatchResult(
            output_dir=output_dir,
            files_found=plan.files_found,
            files_skipped=len(plan.skipped),
        )
        if plan.skipped:
            log_event(_LOGGER, "info", f"Skipping {len(plan.skipped)} completed files")
        if not plan.to_process:
            log_event(_LOGGER, "info", f"All {plan.files_found} files already processed")
            result.elapsed_seconds = self._clock() - started
            return result

        progress: Optional[_BatchProgress] = None
        if self.observer is not None:
            progress = _BatchProgress(
                self.observer, len(plan.to_process) * ESTIMATED_ITEMS_PER_FILE
            )

        with self.session as provider:
            result.provider_opened = True
            pipeline = EmbeddingPipeline(
                provider,
                info=self.info,
                batch_size=self.batch_size,
                resume=self.resume,
                observer=progress,
                clock=self._clock,
            )
            count = len(plan.to_process)
            for position, (input_file, output_path) in enumerate(plan.to_process, start=1):
                label = f"File {position}/{count}"
                log_event(_LOGGER, "info", label, input=str(input_file), output=str(output_path))
                if progress is not None:
                    progress.start_file(label)
                file_result = pipeline.run(partial(load_records, input_file), output_path)
                result.results.append(file_result)
                result.files_processed += 1
                result.total_items += file_result.total_items
                result.newly_embedded += file_result.newly_embedded
                result.failed += file_result.failed
                log_event(
                    _LOGGER,
                    "info",
                    "Completed file",
                    input=str(input_file),
                    newly_embedded=file_result.newly_embedded,
                    embedded_count=file_result.embedded_count,
                    total_items=file_result.total_items,
                )

        result.elapsed_seconds = self._clock() - started
        return result
