"""Evolution module exports."""

from .engine import GenerationSummary, Optimizer, OptimizerConfig, ParallelExecutor
from .fitness import CallableEvaluator, EvaluationResult, FitnessEvaluator
from .genome import INVALID_FITNESS, VALID_FITNESS_THRESHOLD, Gene
from .population import Population
from .scheduler import OptimizationScheduler, SchedulerConfig
from .search_space import InputSpace, InputSpec

__all__ = [
    "CallableEvaluator",
    "EvaluationResult",
    "FitnessEvaluator",
    "Gene",
    "GenerationSummary",
    "INVALID_FITNESS",
    "InputSpace",
    "InputSpec",
    "OptimizationScheduler",
    "Optimizer",
    "OptimizerConfig",
    "ParallelExecutor",
    "Population",
    "SchedulerConfig",
    "VALID_FITNESS_THRESHOLD",
]
