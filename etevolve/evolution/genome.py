"""
Representation of ETEvolve genes.

A gene holds one value for every tunable input and therefore represents a
single candidate solution (every slider position).  Fitness is computed at
most once per property vector: it is cached after the first evaluation and
cleared whenever mutation may have changed the properties.

Example
-------
>>> space = InputSpace()
>>> space.register("households_insulation", 0, 10, 1)
>>> gene = Gene.seeded(space)
>>> child = gene.breed(other_gene, crossover_rate=0.5, rng=space.rng)
>>> child.mutate(space, mutation_rate=0.1)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping, Optional

import numpy as np
from loguru import logger

from etevolve.exceptions import EvaluationError, UnknownInputError

from .fitness import EvaluationResult, FitnessEvaluator
from .search_space import InputSpace

# Results at or below the threshold are not realistic outcomes of the model.
VALID_FITNESS_THRESHOLD = 100.0
INVALID_FITNESS = -1.0


@dataclass
class Gene:
    """Container representing one candidate parameter vector."""

    properties: Dict[str, Optional[float]]
    fitness: Optional[float] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        self.properties = dict(self.properties)

    @classmethod
    def seeded(cls, input_space: InputSpace) -> "Gene":
        """Create a gene covering every input with random settings."""
        gene = cls(dict.fromkeys(input_space))
        gene.seed(input_space)
        return gene

    def __getitem__(self, key: str) -> Optional[float]:
        try:
            return self.properties[key]
        except KeyError:
            raise UnknownInputError(f"Gene has no input '{key}'", context={"input": key}) from None

    def __setitem__(self, key: str, value: float) -> None:
        if key not in self.properties:
            raise UnknownInputError(f"Gene has no input '{key}'", context={"input": key})
        self.properties[key] = value

    def __iter__(self) -> Iterator[str]:
        return iter(self.properties)

    def keys(self):
        return self.properties.keys()

    def seed(self, input_space: InputSpace) -> None:
        """Assign a random value to every input of a fresh gene."""
        for key in self.properties:
            self[key] = input_space.sample(key)

    def evaluate_fitness(self, evaluator: FitnessEvaluator, objective: str) -> float:
        """
        Return the fitness, asking the evaluator only the first time.

        Failures never propagate: they are logged and stored as the invalid
        sentinel so that a single bad evaluation cannot abort a generation.
        """

        if self.fitness is not None:
            return self.fitness
        try:
            result = evaluator.evaluate(dict(self.properties), objective)
        except EvaluationError as exc:
            result = EvaluationResult.failure(str(exc))
        except Exception as exc:  # noqa: BLE001 - any evaluator failure marks the gene invalid
            result = EvaluationResult.failure(f"{type(exc).__name__}: {exc}")
        if result.ok:
            self.fitness = float(result.value)  # type: ignore[arg-type]
        else:
            logger.warning("Evaluation failed, marking gene invalid: {}", result.error)
            self.fitness = INVALID_FITNESS
        logger.debug("Fitness {:.0f}: {}", self.fitness, ", ".join(str(v) for v in self.properties.values()))
        return self.fitness

    def breed(self, other: "Gene", crossover_rate: float, rng: np.random.Generator) -> "Gene":
        """Create a child from ``self`` taking single alleles from ``other``."""
        child = self.clone()
        child.crossover(other, crossover_rate, rng)
        return child

    def crossover(self, other: Mapping[str, Optional[float]], crossover_rate: float, rng: np.random.Generator) -> None:
        for key in self.properties:
            if rng.random() < crossover_rate:
                self[key] = other[key]
        self.fitness = None

    def mutate(self, input_space: InputSpace, mutation_rate: float) -> None:
        """Randomly resample single alleles; the cached fitness is dropped."""
        for key in self.properties:
            if input_space.rng.random() < mutation_rate:
                self[key] = input_space.sample(key)
        self.fitness = None

    def is_valid(self) -> bool:
        """Check that the evaluator returned a realistic fitness."""
        return self.fitness is not None and self.fitness > VALID_FITNESS_THRESHOLD

    def clone(self) -> "Gene":
        """Copy the properties; fitness is never carried over."""
        return Gene(properties=dict(self.properties))

    def __str__(self) -> str:
        return f"Fitness: {self.fitness}, {list(self.properties.values())}"
