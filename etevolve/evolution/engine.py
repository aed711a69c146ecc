"""
Evolution engine driving the generational loop.

The :class:`Optimizer` seeds the first population, then repeatedly evaluates
the latest population, publishes a :class:`GenerationSummary` to its
listeners and appends the evolved population to its history.  The history is
never truncated so every generation can be inspected after a run.

Gene evaluation within a generation goes through a :class:`ParallelExecutor`
which only fans out to a thread pool for evaluators that declare themselves
safe for concurrent use.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

import numpy as np
from loguru import logger

from etevolve.exceptions import ETEvolveConfigError

from .fitness import FitnessEvaluator
from .genome import Gene
from .population import DEFAULT_MAX_SELECTION_SCANS, RESEED, Population
from .search_space import InputSource, InputSpace

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class OptimizerConfig:
    """Hyperparameters guiding the evolutionary search."""

    population: int = 10
    mutation_rate: float = 0.1
    crossover_rate: float = 0.5
    max_workers: Optional[int] = 1
    max_selection_scans: int = DEFAULT_MAX_SELECTION_SCANS
    insufficient_valid: str = RESEED

    def __post_init__(self) -> None:
        if self.population < 1:
            raise ETEvolveConfigError(
                f"population must be at least 1, got {self.population}",
                context={"population": self.population},
            )
        for name in ("mutation_rate", "crossover_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ETEvolveConfigError(f"{name} must be in [0, 1], got {value}", context={name: value})
        if self.max_selection_scans < 0:
            raise ETEvolveConfigError(
                f"max_selection_scans must not be negative, got {self.max_selection_scans}",
                context={"max_selection_scans": self.max_selection_scans},
            )


@dataclass(frozen=True)
class GenerationSummary:
    """Statistics published after a generation has been evaluated."""

    generation: int
    best_fitness: float
    mean_fitness: float
    valid_genes: int
    population: int
    best_properties: Dict[str, Optional[float]] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


GenerationListener = Callable[[GenerationSummary], None]


class ParallelExecutor:
    """Runs a function over items, using threads only when allowed."""

    def __init__(self, max_workers: Optional[int] = 1) -> None:
        self.max_workers = max_workers
        self.backend = "sequential"

    def map(self, func: Callable[[T], R], items: Sequence[T], concurrent: bool = False) -> List[R]:
        workers = self.max_workers or min(8, max(1, len(items)))
        if not concurrent or workers <= 1 or len(items) <= 1:
            self.backend = "sequential"
            return [func(item) for item in items]
        self.backend = "threads"
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(func, items))

    def snapshot(self, payloads: int, duration: float) -> Dict[str, object]:
        """Backend and timing of the last :meth:`map` call."""
        return {
            "backend": self.backend,
            "payloads": payloads,
            "duration": round(duration, 3),
            "max_workers": self.max_workers,
        }


class Optimizer:
    """Central coordinator of the generational search."""

    def __init__(
        self,
        input_space: InputSpace,
        evaluator: FitnessEvaluator,
        objective: str,
        config: Optional[OptimizerConfig] = None,
        on_generation: Optional[GenerationListener] = None,
    ) -> None:
        """Create an optimizer and seed its first population.

        Parameters
        ----------
        input_space : InputSpace
            Tunable inputs; its generator is the single random source of the run.
        evaluator : FitnessEvaluator
            Scores gene properties against ``objective``.
        objective : str
            Query key whose value is maximised.
        config : OptimizerConfig, optional
            Population size and genetic operator rates.
        on_generation : callable, optional
            Listener receiving a :class:`GenerationSummary` per generation.
        """
        self.input_space = input_space
        self.evaluator = evaluator
        self.objective = objective
        self.config = config or OptimizerConfig()
        self.executor = ParallelExecutor(self.config.max_workers)
        self.listeners: List[GenerationListener] = []
        if on_generation is not None:
            self.listeners.append(on_generation)
        self.summaries: List[GenerationSummary] = []
        self.executor_stats_history: List[Dict[str, object]] = []
        self.populations: List[Population] = [
            Population.seed_initial(
                input_space,
                self.config.population,
                max_selection_scans=self.config.max_selection_scans,
                insufficient_valid=self.config.insufficient_valid,
            )
        ]

    @classmethod
    def from_inputs(
        cls,
        input_keys: Iterable[str],
        source: InputSource,
        evaluator: FitnessEvaluator,
        objective: str,
        config: Optional[OptimizerConfig] = None,
        seed: Optional[int] = None,
        on_generation: Optional[GenerationListener] = None,
    ) -> "Optimizer":
        """Build the input space from ``source`` and a generator seeded with ``seed``."""
        input_space = InputSpace.load(input_keys, source, rng=np.random.default_rng(seed))
        return cls(input_space, evaluator, objective, config=config, on_generation=on_generation)

    @property
    def rng(self) -> np.random.Generator:
        return self.input_space.rng

    @property
    def current(self) -> Population:
        return self.populations[-1]

    def add_listener(self, listener: GenerationListener) -> None:
        self.listeners.append(listener)

    def run(self, iterations: int = 1) -> List[GenerationSummary]:
        """Evaluate and evolve the latest population ``iterations`` times."""

        summaries: List[GenerationSummary] = []
        for _ in range(iterations):
            population = self.populations[-1]
            start_time = time.perf_counter()
            population.evaluate_fitness(self.evaluator, self.objective, self.executor)
            stats = self.executor.snapshot(payloads=len(population), duration=time.perf_counter() - start_time)
            stats["generation"] = population.generation
            self.executor_stats_history.append(stats)

            summary = self.summarise(population)
            summaries.append(summary)
            self.summaries.append(summary)
            logger.info(
                "Generation {} fittest {:.0f} / mean {:.1f} ({} valid)",
                summary.generation,
                summary.best_fitness,
                summary.mean_fitness,
                summary.valid_genes,
            )
            for listener in self.listeners:
                listener(summary)

            self.populations.append(
                population.evolve(self.config.crossover_rate, self.config.mutation_rate)
            )
        return summaries

    @staticmethod
    def summarise(population: Population) -> GenerationSummary:
        """Best and mean fitness over all genes, invalid ones included."""

        values = population.fitness_values()
        best = population.best()
        return GenerationSummary(
            generation=population.generation,
            best_fitness=float(max(values)) if values else float("nan"),
            mean_fitness=float(np.mean(values)) if values else float("nan"),
            valid_genes=sum(1 for gene in population if gene.is_valid()),
            population=len(population),
            best_properties=dict(best.properties) if best is not None else {},
        )

    def best_gene(self) -> Optional[Gene]:
        """Fittest evaluated gene across the whole history."""

        evaluated = [gene for population in self.populations for gene in population if gene.fitness is not None]
        if not evaluated:
            return None
        return max(evaluated, key=lambda gene: gene.fitness)  # type: ignore[arg-type, return-value]

