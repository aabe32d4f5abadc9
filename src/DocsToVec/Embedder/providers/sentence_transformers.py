"""Dense embedding provider using SentenceTransformer models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..logging import get_logger, log_event
from .base import EmbeddingProvider, ProviderContext, ProviderError, ProviderIdentity
from .utils import normalise_vector, resolve_cache_dir, resolve_device

_LOGGER = get_logger(__name__, base_fields={"stage": "provider"})


@dataclass(slots=True)
class SentenceTransformersConfig:
    model_id: str
    trust_remote_code: bool = False


class SentenceTransformersProvider(EmbeddingProvider):
    """Dense provider backed by sentence-transformers."""

    identity = ProviderIdentity(name="dense.sentence_transformers", version="1.0.0")

    def __init__(self, config: SentenceTransformersConfig) -> None:
        self._cfg = config
        self._ctx: ProviderContext | None = None
        self._model: Optional[Any] = None

    def open(self, context: ProviderContext) -> None:
        self._ctx = context
        try:
            from sentence_transformers import SentenceTransformer  # type: ignore
        except ImportError as exc:  # pragma: no cover - dependency missing at runtime
            raise ProviderError(
                provider=self.identity.name,
                category="init",
                detail="sentence-transformers must be installed to compute embeddings.",
                retryable=False,
                wrapped=exc,
            ) from exc

        kwargs: Dict[str, Any] = {
            "trust_remote_code": bool(self._cfg.trust_remote_code),
            "local_files_only": context.offline,
        }
        device_hint = resolve_device(context.device)
        if device_hint:
            kwargs["device"] = device_hint
        cache_dir = resolve_cache_dir(context.cache_dir)
        if cache_dir is not None:
            kwargs["cache_folder"] = str(cache_dir)

        log_event(
            _LOGGER,
            "info",
            "Loading model (downloading if not cached)",
            model=self._cfg.model_id,
            device=device_hint or "auto",
            offline=context.offline,
        )
        try:
            self._model = SentenceTransformer(self._cfg.model_id, **kwargs)
        except Exception as exc:
            raise ProviderError(
                provider=self.identity.name,
                category="init",
                detail=f"Failed to load model '{self._cfg.model_id}': {exc}",
                retryable=False,
                wrapped=exc,
            ) from exc
        log_event(_LOGGER, "info", "Model ready", model=self._cfg.model_id)

    def close(self) -> None:
        self._model = None
        self._ctx = None

    def embed(self, text: str) -> List[float]:
        if self._model is None:
            raise ProviderError(
                provider=self.identity.name,
                category="runtime",
                detail="Provider has not been opened before use.",
                retryable=False,
            )
        normalize = bool(self._ctx and self._ctx.normalize_l2)
        try:
            vector = self._model.encode(  # type: ignore[call-arg]
                text,
                convert_to_numpy=True,
                normalize_embeddings=False,
                show_progress_bar=False,
            )
        except Exception as exc:
            raise ProviderError(
                provider=self.identity.name,
                category="runtime",
                detail=str(exc),
                retryable=False,
                wrapped=exc,
            ) from exc
        values = [float(x) for x in vector]
        return normalise_vector(values) if normalize else values


__all__ = ["SentenceTransformersConfig", "SentenceTransformersProvider"]
