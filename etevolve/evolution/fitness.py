"""
Fitness evaluation boundary for ETEvolve.

A fitness evaluator scores a gene's properties against an objective (a query
key on the remote model).  Evaluators report the outcome as an
:class:`EvaluationResult` rather than raising, so the gene layer can map a
failure to the invalid sentinel explicitly.  Evaluators that can serve
independent calls at the same time advertise it through ``concurrent_safe``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of a single fitness evaluation."""

    value: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def success(cls, value: float) -> "EvaluationResult":
        return cls(value=float(value))

    @classmethod
    def failure(cls, reason: str) -> "EvaluationResult":
        return cls(error=reason or "unknown error")


@runtime_checkable
class FitnessEvaluator(Protocol):
    """Scores a property vector for the given objective."""

    concurrent_safe: bool

    def evaluate(self, properties: Mapping[str, float], objective: str) -> EvaluationResult:
        ...


class CallableEvaluator:
    """
    Adapt a plain scoring function to the evaluator protocol.

    The function receives ``(properties, objective)`` and returns a number.
    Any exception it raises becomes a failure result.
    """

    def __init__(self, func: Callable[[Mapping[str, float], str], Any], concurrent_safe: bool = False) -> None:
        self.func = func
        self.concurrent_safe = concurrent_safe
        self.calls = 0

    def evaluate(self, properties: Mapping[str, float], objective: str) -> EvaluationResult:
        self.calls += 1
        try:
            value = self.func(dict(properties), objective)
            return EvaluationResult.success(float(value))
        except Exception as exc:  # noqa: BLE001 - any scoring failure marks the gene invalid
            return EvaluationResult.failure(f"{type(exc).__name__}: {exc}")


__all__ = ["EvaluationResult", "FitnessEvaluator", "CallableEvaluator"]
