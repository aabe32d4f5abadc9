"""Provider factory and the session wrapper that owns a provider's lifetime."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..logging import get_logger, log_event
from ..settings import EmbedderCfg
from .base import EmbeddingProvider, ProviderContext, ProviderIdentity
from .sentence_transformers import SentenceTransformersConfig, SentenceTransformersProvider

_LOGGER = get_logger(__name__, base_fields={"stage": "provider"})


@dataclass
class ProviderSession:
    """Context-managed provider: opened on entry, closed on exit.

    Closing happens on success and when the body raises, so a fatal error in
    the middle of a job still releases the model.
    """

    provider: EmbeddingProvider
    context: ProviderContext

    def __enter__(self) -> EmbeddingProvider:
        self.provider.open(self.context)
        return self.provider

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        try:
            self.provider.close()
        except Exception as exc:  # pragma: no cover - shutdown must not mask the job result
            log_event(
                _LOGGER,
                "warning",
                "Provider close failed",
                provider=self.provider.identity.name,
                error=str(exc),
                error_code="PROVIDER_CLOSE",
            )

    @property
    def identity(self) -> ProviderIdentity:
        return self.provider.identity


def build_context(cfg: EmbedderCfg, *, cache_dir: Optional[Path] = None) -> ProviderContext:
    """Translate run settings into a :class:`ProviderContext`."""

    return ProviderContext(
        device=cfg.device,
        normalize_l2=cfg.normalize_l2,
        offline=cfg.offline,
        cache_dir=cache_dir,
    )


def create_provider(cfg: EmbedderCfg) -> EmbeddingProvider:
    """Construct the sentence-transformers provider for ``cfg.model``."""

    config = SentenceTransformersConfig(
        model_id=cfg.resolved_model,
        trust_remote_code=cfg.effective_trust_remote_code,
    )
    return SentenceTransformersProvider(config)


def provider_session(
    provider: EmbeddingProvider, context: Optional[ProviderContext] = None
) -> ProviderSession:
    """Wrap ``provider`` so ``with`` opens it once and always closes it."""

    return ProviderSession(provider=provider, context=context or ProviderContext())


__all__ = ["ProviderSession", "build_context", "create_provider", "provider_session"]
