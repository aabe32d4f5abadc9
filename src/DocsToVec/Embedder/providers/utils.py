"""Shared helper utilities for embedding providers.

These helpers avoid importing heavy model libraries so they can be used (and
tested) without sentence-transformers installed.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import List, Optional, Sequence


def resolve_device(requested: Optional[str]) -> Optional[str]:
    """Normalise a device hint.

    ``"auto"`` and blank values return ``None`` so the model library picks its
    preferred device; anything else is returned lower-cased.
    """

    if not requested:
        return None
    candidate = str(requested).strip().lower()
    if candidate in {"", "auto"}:
        return None
    return candidate


def resolve_cache_dir(path: Optional[Path]) -> Optional[Path]:
    """Return an absolute path suitable for model cache directories."""

    if path is None:
        return None
    return Path(path).expanduser().resolve()


def normalise_vector(vector: Sequence[float]) -> List[float]:
    """Return ``vector`` scaled to unit L2 norm; zero vectors are returned unchanged."""

    values = [float(value) for value in vector]
    norm = math.sqrt(sum(value * value for value in values))
    if norm == 0:
        return values
    return [value / norm for value in values]


__all__ = ["normalise_vector", "resolve_cache_dir", "resolve_device"]
