"""
ETEngine backed collaborators of the evolution engine.

`ETEngineEvaluator` scores genes by running them through a remote scenario;
`ETEngineInputSource` describes tunable inputs, optionally through the
on-disk input cache.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from etevolve.evolution.fitness import EvaluationResult
from etevolve.exceptions import EvaluationError
from etevolve.utils.input_cache import InputCache

from .client import ETEngineClient


def normalise_fixed(values: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    """Coerce configured constant inputs to floats."""
    return {str(key): float(value) for key, value in (values or {}).items()}


class ETEngineEvaluator:
    """Fitness is the ``future`` value of the objective query."""

    # All calls share one remote scenario.
    concurrent_safe = False

    def __init__(self, client: ETEngineClient, fixed: Optional[Mapping[str, Any]] = None) -> None:
        self.client = client
        self.fixed = normalise_fixed(fixed)

    def evaluate(self, properties: Mapping[str, float], objective: str) -> EvaluationResult:
        try:
            result = self.client.calculate(properties, objective, fixed=self.fixed)
        except EvaluationError as exc:
            return EvaluationResult.failure(str(exc))
        future = result.get("future") if isinstance(result, Mapping) else None
        if future is None:
            return EvaluationResult.failure(f"Query '{objective}' has no future value")
        try:
            return EvaluationResult.success(float(future))
        except (TypeError, ValueError):
            return EvaluationResult.failure(f"Query '{objective}' returned non-numeric value {future!r}")


class ETEngineInputSource:
    """Fetch ``{min, max, step}`` for an input key."""

    def __init__(self, client: ETEngineClient, cache: Optional[InputCache] = None) -> None:
        self.client = client
        self.cache = cache

    def fetch(self, key: str) -> Dict[str, float]:
        data = self.cache.get(key) if self.cache is not None else None
        if data is None:
            data = self.client.fetch_input(key)
            if self.cache is not None:
                self.cache.put(key, data)
        try:
            return {"min": float(data["min"]), "max": float(data["max"]), "step": float(data["step"])}
        except (KeyError, TypeError, ValueError) as exc:
            raise EvaluationError(
                f"Input '{key}' metadata is incomplete: {exc}",
                context={"input": key},
            ) from exc
