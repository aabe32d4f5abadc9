# === NAVMAP v1 ===
# {
#   "module": "DocsToVec.Embedder.checkpoint",
#   "purpose": "Read and write output documents; derive resume maps and completion status.",
#   "sections": [
#     {
#       "id": "embedderinfo",
#       "name": "EmbedderInfo",
#       "anchor": "class-embedderinfo",
#       "kind": "class"
#     },
#     {
#       "id": "read-embedder-metadata",
#       "name": "read_embedder_metadata",
#       "anchor": "function-read-embedder-metadata",
#       "kind": "function"
#     },
#     {
#       "id": "is-complete",
#       "name": "is_complete",
#       "anchor": "function-is-complete",
#       "kind": "function"
#     },
#     {
#       "id": "load-existing",
#       "name": "load_existing",
#       "anchor": "function-load-existing",
#       "kind": "function"
#     },
#     {
#       "id": "save",
#       "name": "save",
#       "anchor": "function-save",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Read and write output documents; derive resume maps and completion status.

The output document is both the deliverable and the checkpoint. It carries the
source metadata, the full item array, and an ``_embedder_metadata`` block whose
``total_items``/``embedded_count`` pair tells batch runs whether a file is
finished. Every save rewrites the whole document atomically, so an interrupted
run leaves the previous checkpoint intact.

Reading is forgiving: a missing, truncated, or foreign file simply
means "no prior progress".
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from DocsToVec import __version__

from .io import write_json_atomic
from .logging import get_logger, log_event
from .records import Record, item_identifier

__all__ = [
    "METADATA_KEY",
    "TOOL_NAME",
    "EmbedderInfo",
    "is_complete",
    "load_existing",
    "read_embedder_metadata",
    "save",
]

METADATA_KEY = "_embedder_metadata"
TOOL_NAME = f"docstovec v{__version__}"

_LOGGER = get_logger(__name__, base_fields={"stage": "checkpoint"})


@dataclass(slots=True, frozen=True)
class EmbedderInfo:
    """Run settings recorded in ``_embedder_metadata``.

    ``chunk_size``/``chunk_overlap`` are only set for PDF sources and are
    omitted from the document otherwise.
    """

    model: str
    text_field: str
    input_type: str
    chunk_size: Optional[int] = None
    chunk_overlap: Optional[int] = None


def _read_document(path: Path) -> Optional[Dict[str, Any]]:
    try:
        if not path.is_file():
            return None
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, UnicodeDecodeError, ValueError, RecursionError) as exc:
        log_event(
            _LOGGER,
            "warning",
            "Existing output unreadable; treating as no prior progress",
            path=str(path),
            error=str(exc),
            error_code="CHECKPOINT_UNREADABLE",
        )
        return None
    if not isinstance(payload, dict):
        log_event(
            _LOGGER,
            "warning",
            "Existing output is not a JSON object; treating as no prior progress",
            path=str(path),
            error_code="CHECKPOINT_UNREADABLE",
        )
        return None
    return payload


def read_embedder_metadata(output_path: Path) -> Optional[Dict[str, Any]]:
    """Return the ``_embedder_metadata`` block of ``output_path`` if readable."""

    document = _read_document(output_path)
    if document is None:
        return None
    metadata = document.get(METADATA_KEY)
    return dict(metadata) if isinstance(metadata, dict) else None


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_complete(output_path: Path) -> bool:
    """Return ``True`` when every item in ``output_path`` carries an embedding.

    Requires ``total_items`` and ``embedded_count`` to be integers with
    ``total_items > 0`` and both equal. Never raises.
    """

    metadata = read_embedder_metadata(output_path)
    if metadata is None:
        return False
    total = metadata.get("total_items")
    embedded = metadata.get("embedded_count")
    if not (_is_count(total) and _is_count(embedded)):
        return False
    return total > 0 and total == embedded


def load_existing(output_path: Path, items_key: str) -> Dict[str, Record]:
    """Return previously embedded items from ``output_path`` keyed by identifier.

    Only items with a non-null ``embeddings`` value are included. A missing or
    malformed document, or one without an ``items_key`` array, yields ``{}``.
    """

    document = _read_document(output_path)
    if document is None:
        return {}
    raw_items = document.get(items_key)
    if not isinstance(raw_items, list):
        log_event(
            _LOGGER,
            "debug",
            "Existing output has no item array",
            path=str(output_path),
            items_key=items_key,
        )
        return {}
    existing: Dict[str, Record] = {}
    for index, entry in enumerate(raw_items):
        if not isinstance(entry, dict):
            continue
        record = Record(entry)
        if record.has_embeddings:
            existing[item_identifier(record, index)] = record
    return existing


def save(
    output_path: Path,
    metadata: Mapping[str, Any],
    items_key: str,
    items: Sequence[Mapping[str, Any]],
    info: EmbedderInfo,
) -> Dict[str, Any]:
    """Atomically write the full output document and return its metadata block."""

    embedded_count = sum(1 for item in items if item.get("embeddings") is not None)
    embedder_metadata: Dict[str, Any] = {
        "model": info.model,
        "text_field": info.text_field,
        "input_type": info.input_type,
        "total_items": len(items),
        "embedded_count": embedded_count,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "tool": TOOL_NAME,
    }
    if info.chunk_size is not None:
        embedder_metadata["chunk_size"] = info.chunk_size
    if info.chunk_overlap is not None:
        embedder_metadata["chunk_overlap"] = info.chunk_overlap

    document: Dict[str, Any] = {items_key: list(items)}
    for key, value in metadata.items():
        if key not in (items_key, METADATA_KEY):
            document[key] = value
    document[METADATA_KEY] = embedder_metadata
    write_json_atomic(output_path, document)
    return embedder_metadata
