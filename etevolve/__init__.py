"""Top-level package exposing ETEvolve SDK entrypoints."""

from .evolution import CallableEvaluator, EvaluationResult, Gene, InputSpace, Optimizer, OptimizerConfig, Population
from .pipelines import ETEvolve, ETEvolveResult

__all__ = [
    "CallableEvaluator",
    "ETEvolve",
    "ETEvolveResult",
    "EvaluationResult",
    "Gene",
    "InputSpace",
    "Optimizer",
    "OptimizerConfig",
    "Population",
]
