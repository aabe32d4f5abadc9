"""Embedding providers and the factory that builds them from run settings."""

from .base import EmbeddingProvider, ProviderContext, ProviderError, ProviderIdentity
from .factory import ProviderSession, build_context, create_provider, provider_session

__all__ = [
    "EmbeddingProvider",
    "ProviderContext",
    "ProviderError",
    "ProviderIdentity",
    "ProviderSession",
    "build_context",
    "create_provider",
    "provider_session",
]
