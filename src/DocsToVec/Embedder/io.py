# === NAVMAP v1 ===
# {
#   "module": "DocsToVec.Embedder.io",
#   "purpose": "Low-level JSON and filesystem helpers shared across the embedder.",
#   "sections": [
#     {
#       "id": "atomic-write",
#       "name": "atomic_write",
#       "anchor": "function-atomic-write",
#       "kind": "function"
#     },
#     {
#       "id": "read-json-object",
#       "name": "read_json_object",
#       "anchor": "function-read-json-object",
#       "kind": "function"
#     },
#     {
#       "id": "write-json-atomic",
#       "name": "write_json_atomic",
#       "anchor": "function-write-json-atomic",
#       "kind": "function"
#     },
#     {
#       "id": "list-files-with-suffix",
#       "name": "list_files_with_suffix",
#       "anchor": "function-list-files-with-suffix",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Low-level JSON and filesystem helpers shared across the embedder.

Output documents are always rewritten in full, so the only write primitive the
embedder needs is :func:`atomic_write`: content goes to a sibling temporary
file which replaces the destination once flushed to disk. Readers therefore see
either the previous checkpoint or the new one, never a truncated file.
"""

from __future__ import annotations

import contextlib
import json
import os
import uuid
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, TextIO

from .errors import InputFormatError, InputNotFoundError

__all__ = [
    "atomic_write",
    "read_json_object",
    "write_json_atomic",
    "list_files_with_suffix",
]


@contextlib.contextmanager
def atomic_write(path: Path) -> Iterator[TextIO]:
    """Write to a temporary file and atomically replace the destination."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.tmp.{uuid.uuid4().hex}")
    try:
        with tmp.open("w", encoding="utf-8") as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        tmp.replace(path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def read_json_object(path: Path) -> Dict[str, Any]:
    """Load ``path`` and return its top-level JSON object.

    Raises:
        InputNotFoundError: If ``path`` does not exist.
        InputFormatError: If the file is not valid JSON or is not an object.
    """

    if not path.is_file():
        raise InputNotFoundError(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise InputFormatError(f"Invalid JSON at line {exc.lineno}: {exc.msg}", path) from exc
    except UnicodeDecodeError as exc:
        raise InputFormatError("File is not valid UTF-8 text", path) from exc
    if not isinstance(payload, dict):
        raise InputFormatError(
            f"Top-level JSON value must be an object, found {type(payload).__name__}", path
        )
    return payload


def write_json_atomic(path: Path, payload: Mapping[str, Any], *, indent: int = 2) -> None:
    """Serialise ``payload`` to ``path`` through :func:`atomic_write`."""

    with atomic_write(path) as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=indent)
        handle.write("\n")


def list_files_with_suffix(directory: Path, suffix: str) -> List[Path]:
    """Return regular files in ``directory`` ending in ``suffix``, sorted by name.

    Matching is case-insensitive so ``REPORT.PDF`` is picked up alongside
    ``notes.pdf``. Subdirectories are not traversed.
    """

    if not directory.is_dir():
        raise InputNotFoundError(directory, kind="Directory")
    wanted = suffix.lower()
    files = [
        entry
        for entry in directory.iterdir()
        if entry.is_file() and entry.name.lower().endswith(wanted)
    ]
    return sorted(files, key=lambda entry: entry.name)
