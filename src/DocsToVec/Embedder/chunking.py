# === NAVMAP v1 ===
# {
#   "module": "DocsToVec.Embedder.chunking",
#   "purpose": "Boundary-aware character chunking with overlap.",
#   "sections": [
#     {
#       "id": "normalize-whitespace",
#       "name": "normalize_whitespace",
#       "anchor": "function-normalize-whitespace",
#       "kind": "function"
#     },
#     {
#       "id": "iter-chunk-spans",
#       "name": "iter_chunk_spans",
#       "anchor": "function-iter-chunk-spans",
#       "kind": "function"
#     },
#     {
#       "id": "chunk-text",
#       "name": "chunk_text",
#       "anchor": "function-chunk-text",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Boundary-aware character chunking with overlap.

Page text extracted from PDFs is split into windows of at most ``size``
characters. Each window prefers to end just after a sentence terminator in its
second half, then at a space in its last 30%, and otherwise cuts hard at
``size``. Consecutive windows overlap by ``overlap`` characters, and the start
position always moves forward so chunking terminates on every input.
"""

from __future__ import annotations

import re
from typing import Iterator, List, Tuple

__all__ = ["chunk_text", "iter_chunk_spans", "normalize_whitespace"]

SENTENCE_TERMINATORS: Tuple[str, ...] = (". ", "? ", "! ")
SENTENCE_BREAK_RATIO = 0.5
WORD_BREAK_RATIO = 0.7

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim the ends."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def _validate(size: int, overlap: int) -> None:
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    if overlap < 0 or overlap >= size:
        raise ValueError(f"chunk overlap must be in [0, {size}), got {overlap}")


def _window_end(text: str, start: int, size: int) -> int:
    """Return the exclusive end offset for the window beginning at ``start``."""

    window = text[start : start + size]
    sentence_break = max(window.rfind(terminator) for terminator in SENTENCE_TERMINATORS)
    if sentence_break > size * SENTENCE_BREAK_RATIO:
        # keep the terminator, drop the trailing space
        return start + sentence_break + 1
    word_break = window.rfind(" ")
    if word_break > size * WORD_BREAK_RATIO:
        return start + word_break
    return start + size


def iter_chunk_spans(text: str, size: int, overlap: int) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` offsets of each chunk within the normalised text.

    Offsets refer to ``normalize_whitespace(text)``; slicing that string with a
    span and trimming it gives the corresponding :func:`chunk_text` entry.

    Raises:
        ValueError: If ``size < 1`` or ``overlap`` is outside ``[0, size)``.
    """

    _validate(size, overlap)
    normalized = normalize_whitespace(text)
    length = len(normalized)
    if not normalized:
        return
    start = 0
    while True:
        if start + size >= length:
            yield start, length
            return
        end = _window_end(normalized, start, size)
        yield start, end
        next_start = end - overlap
        if next_start <= start:
            next_start = end
        start = next_start


def chunk_text(text: str, size: int = 500, overlap: int = 50) -> List[str]:
    """Split ``text`` into overlapping chunks of at most ``size`` characters.

    Args:
        text: Raw text; whitespace runs are collapsed before splitting.
        size: Maximum characters per chunk.
        overlap: Characters shared between consecutive chunks.

    Returns:
        Trimmed, non-empty chunk strings in document order. Empty or
        whitespace-only input yields an empty list.

    Raises:
        ValueError: If ``size < 1`` or ``overlap`` is outside ``[0, size)``.

    Examples:
        >>> chunk_text("Short text.", size=500, overlap=50)
        ['Short text.']
    """

    normalized = normalize_whitespace(text)
    chunks: List[str] = []
    for start, end in iter_chunk_spans(normalized, size, overlap):
        piece = normalized[start:end].strip()
        if piece:
            chunks.append(piece)
    return chunks
