"""
Centralised exception hierarchy for ETEvolve.

Configuration and domain problems abort a run with a typed exception that
carries a ``context`` mapping for structured logging.  Remote evaluation
failures are raised by the ETEngine client as :class:`EvaluationError` and
absorbed per gene by the evolution layer.
"""

from __future__ import annotations

from typing import Any


class ETEvolveError(Exception):
    """Base class for all ETEvolve specific exceptions."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class ETEvolveConfigError(ETEvolveError):
    """Raised for configuration or profile related issues."""


class InvalidRangeError(ETEvolveConfigError, ValueError):
    """Raised when an input is registered with ``max <= min`` or ``step <= 0``."""


class UnknownInputError(ETEvolveError, KeyError):
    """Raised when an identifier is not part of the input space."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class EvaluationError(ETEvolveError):
    """Raised when the remote scoring service cannot produce a fitness value."""


class InsufficientValidGenesError(ETEvolveError):
    """Raised when a population cannot supply two valid elites."""


__all__ = [
    "ETEvolveError",
    "ETEvolveConfigError",
    "InvalidRangeError",
    "UnknownInputError",
    "EvaluationError",
    "InsufficientValidGenesError",
]
