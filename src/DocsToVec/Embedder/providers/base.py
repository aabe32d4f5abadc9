"""Base interfaces and supporting types for embedding providers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(slots=True)
class ProviderIdentity:
    """Metadata describing a provider implementation."""

    name: str
    version: str | None = None
    extra: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ProviderContext:
    """Runtime options shared with a provider when it is opened."""

    device: str = "auto"
    normalize_l2: bool = False
    offline: bool = False
    cache_dir: Path | None = None


@dataclass(slots=True)
class ProviderError(RuntimeError):
    """Raised by providers when initialization or inference fails."""

    provider: str
    category: str
    detail: str
    retryable: bool = False
    wrapped: BaseException | None = None

    def __post_init__(self) -> None:  # pragma: no cover - simple wiring
        RuntimeError.__init__(self, self.detail)

    def __str__(self) -> str:  # pragma: no cover - formatting helper
        base = f"[{self.provider}] {self.category}: {self.detail}"
        if self.retryable:
            base += " (retryable)"
        return base


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Interface for providers turning one text into one dense vector."""

    identity: ProviderIdentity

    def open(self, context: ProviderContext) -> None: ...

    def close(self) -> None: ...

    def embed(self, text: str) -> Sequence[float]: ...


__all__ = [
    "EmbeddingProvider",
    "ProviderContext",
    "ProviderError",
    "ProviderIdentity",
]
