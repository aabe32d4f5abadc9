"""
Pydantic v2 settings for the embedder.

``EmbedderCfg`` is a ``BaseSettings`` model using the ``DOCSTOVEC_`` environment
prefix. Values are layered with the precedence CLI flags > ``--config`` file >
environment > defaults: :meth:`EmbedderCfg.from_sources` merges the config file
and the explicit CLI overrides into init keyword arguments, which
``pydantic-settings`` already ranks above environment variables.

NAVMAP:
- InputType / LogLevel / LogFormat: enumerated option values
- MODEL_ALIASES: short model names accepted on the command line
- EmbedderCfg: validated run configuration
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import ConfigLoadError, load_config_mapping

__all__ = [
    "DEFAULT_MODEL",
    "EmbedderCfg",
    "InputType",
    "LogFormat",
    "LogLevel",
    "MODEL_ALIASES",
    "REMOTE_CODE_MODELS",
    "resolve_model_name",
]


class InputType(str, Enum):
    """Supported input source layouts."""

    JSON = "json"
    JSON_DIR = "json-dir"
    PDF = "pdf"
    PDF_DIR = "pdf-dir"

    @property
    def is_document(self) -> bool:
        """Return ``True`` for PDF sources, which are chunked before embedding."""

        return self in (InputType.PDF, InputType.PDF_DIR)

    @property
    def is_batch(self) -> bool:
        """Return ``True`` when the output path names a directory of outputs."""

        return self is InputType.JSON_DIR


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Supported log output formats."""

    CONSOLE = "console"
    JSON = "json"


DEFAULT_MODEL = "qwen3-0.6-embed"

MODEL_ALIASES: Dict[str, str] = {
    "qwen3-0.6-embed": "Qwen/Qwen3-Embedding-0.6B",
    "nomic-embed-text-v2": "nomic-ai/nomic-embed-text-v2-moe",
}

# Repositories that ship custom modelling code.
REMOTE_CODE_MODELS = frozenset({"nomic-ai/nomic-embed-text-v2-moe"})


def resolve_model_name(model: str) -> str:
    """Map a short alias to its Hugging Face repository id; pass others through."""

    return MODEL_ALIASES.get(model, model)


class EmbedderCfg(BaseSettings):
    """Validated configuration for a single ``docstovec embed`` run."""

    model_config = SettingsConfigDict(
        env_prefix="DOCSTOVEC_",
        case_sensitive=False,
        extra="ignore",
    )

    input_path: Optional[Path] = Field(None, description="Input file or directory")
    output_path: Optional[Path] = Field(
        None, description="Output file (single input) or directory (json-dir)"
    )
    input_type: InputType = Field(InputType.JSON, description="Input layout")
    model: str = Field(DEFAULT_MODEL, description="Model alias or sentence-transformers id")
    text_field: str = Field("question", description="Record field holding the text to embed")
    batch_size: int = Field(100, description="Checkpoint every N new embeddings", ge=1)
    resume: bool = Field(True, description="Reuse embeddings already present in the output")
    chunk_size: int = Field(500, description="PDF chunk size in characters", ge=1)
    chunk_overlap: int = Field(50, description="PDF chunk overlap in characters", ge=0)
    device: str = Field("auto", description="Device hint for the embedding provider")
    normalize_l2: bool = Field(False, description="L2-normalise embeddings")
    trust_remote_code: bool = Field(False, description="Allow custom model code")
    offline: bool = Field(False, description="Only use locally cached model files")
    log_level: LogLevel = Field(LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(LogFormat.CONSOLE, description="Console or JSON log lines")

    @field_validator("input_path", "output_path", mode="before")
    @classmethod
    def expand_paths(cls, v: Any) -> Any:
        """Expand user home directories in path values."""
        if v is None or v == "":
            return None
        return Path(str(v)).expanduser()

    @field_validator("model", "text_field", "device")
    @classmethod
    def require_non_empty(cls, v: str) -> str:
        """Reject blank string options."""
        if not v.strip():
            raise ValueError("value must not be empty")
        return v.strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        """Accept log levels in any case."""
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_chunking(self) -> "EmbedderCfg":
        """Ensure the chunk window always advances for document inputs."""
        if self.input_type.is_document and self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self

    @property
    def resolved_model(self) -> str:
        """Return the sentence-transformers id for :attr:`model`."""

        return resolve_model_name(self.model)

    @property
    def effective_trust_remote_code(self) -> bool:
        """Return ``True`` when requested or required by the resolved model."""

        return self.trust_remote_code or self.resolved_model in REMOTE_CODE_MODELS

    @property
    def effective_text_field(self) -> str:
        """Return the field actually embedded; document chunks always use ``text``."""

        return "text" if self.input_type.is_document else self.text_field

    @classmethod
    def from_sources(
        cls,
        *,
        config_path: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "EmbedderCfg":
        """Build a configuration from an optional file plus explicit CLI overrides.

        ``None`` values in ``overrides`` mean "not supplied" and fall through to
        the file, environment, or default.

        Raises:
            ConfigLoadError: If the file cannot be parsed or names unknown keys.
            pydantic.ValidationError: If the merged values are invalid.
        """

        merged: Dict[str, Any] = {}
        if config_path is not None:
            file_values = {
                str(key).replace("-", "_"): value
                for key, value in load_config_mapping(config_path).items()
            }
            unknown = sorted(set(file_values) - set(cls.model_fields))
            if unknown:
                raise ConfigLoadError(
                    f"Unknown configuration keys in {config_path}: {', '.join(unknown)}"
                )
            merged.update(file_values)
        for key, value in (overrides or {}).items():
            if value is not None:
                merged[key] = value
        return cls(**merged)

    def display_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable view including derived model settings."""

        payload = self.model_dump(mode="json")
        payload["resolved_model"] = self.resolved_model
        payload["effective_trust_remote_code"] = self.effective_trust_remote_code
        payload["effective_text_field"] = self.effective_text_field
        return payload
