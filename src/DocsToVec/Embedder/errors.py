# === NAVMAP v1 ===
# {
#   "module": "DocsToVec.Embedder.errors",
#   "purpose": "Exception hierarchy shared by the embedder loaders, records, and pipeline.",
#   "sections": [
#     {
#       "id": "embeddererror",
#       "name": "EmbedderError",
#       "anchor": "class-embeddererror",
#       "kind": "class"
#     },
#     {
#       "id": "inputnotfounderror",
#       "name": "InputNotFoundError",
#       "anchor": "class-inputnotfounderror",
#       "kind": "class"
#     },
#     {
#       "id": "inputformaterror",
#       "name": "InputFormatError",
#       "anchor": "class-inputformaterror",
#       "kind": "class"
#     },
#     {
#       "id": "documentextractionerror",
#       "name": "DocumentExtractionError",
#       "anchor": "class-documentextractionerror",
#       "kind": "class"
#     },
#     {
#       "id": "recordtypeerror",
#       "name": "RecordTypeError",
#       "anchor": "class-recordtypeerror",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared by the embedder loaders, records, and pipeline.

Every embedder error derives from :class:`EmbedderError` so the CLI can
render a single, consistent failure message. Per-item problems (for example an
item whose text field holds a nested object) are raised as
:class:`RecordTypeError`, which the pipeline converts into an explicit failure
outcome instead of letting it propagate.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

__all__ = [
    "EmbedderError",
    "InputNotFoundError",
    "InputFormatError",
    "DocumentExtractionError",
    "RecordTypeError",
]


class EmbedderError(RuntimeError):
    """Base class for fatal embedder errors."""

    error_code = "EMBEDDER_ERROR"


class InputNotFoundError(EmbedderError, FileNotFoundError):
    """Raised when an input file or directory does not exist."""

    error_code = "INPUT_NOT_FOUND"

    def __init__(self, path: Path | str, kind: str = "Input file") -> None:
        self.path = Path(path)
        self.kind = kind
        super().__init__(f"{kind} not found: {self.path}")


class InputFormatError(EmbedderError, ValueError):
    """Raised when a source document cannot be parsed or lacks an item array."""

    error_code = "INPUT_FORMAT"

    def __init__(self, message: str, path: Optional[Path | str] = None) -> None:
        self.path = Path(path) if path is not None else None
        self.message = message
        super().__init__(f"{message} ({self.path})" if self.path else message)


class DocumentExtractionError(EmbedderError):
    """Raised when a PDF cannot be opened or a page cannot be read."""

    error_code = "EXTRACTION_FAILED"

    def __init__(self, path: Path | str, detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"Failed to extract text from {self.path}: {detail}")


class RecordTypeError(EmbedderError, TypeError):
    """Raised by typed record accessors when a field holds an unexpected type."""

    error_code = "FIELD_TYPE"

    def __init__(self, field: str, expected: str, actual: object) -> None:
        self.field = field
        self.expected = expected
        self.actual_type = type(actual).__name__
        super().__init__(
            f"Field '{field}' expected {expected}, found {self.actual_type}"
        )
