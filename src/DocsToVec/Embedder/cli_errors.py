"""Exception types and formatting helpers for the ``docstovec`` CLI.

Option validation failures are raised as :class:`CLIValidationError` so that
the command layer can render them uniformly with :func:`format_cli_error`
before exiting with a non-zero status.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = [
    "CLIValidationError",
    "format_cli_error",
]


@dataclass(slots=True)
class CLIValidationError(ValueError):
    """Exception capturing the offending option and a human-friendly message."""

    option: str
    message: str
    hint: Optional[str] = None
    stage: str = "embed"

    def __post_init__(self) -> None:  # pragma: no cover - simple wiring
        ValueError.__init__(self, self.message)

    def __str__(self) -> str:  # pragma: no cover - formatting handled in helper
        return self.message


def format_cli_error(error: CLIValidationError) -> str:
    """Return a consistent error string for CLI consumption."""

    prefix = f"[{error.stage}]"
    hint = f" Hint: {error.hint}" if error.hint else ""
    return f"{prefix} {error.option}: {error.message}.{hint}".strip()
