"""
Population management utilities for ETEvolve evolution cycles.

A population contains a fixed number of genes.  Evolving a population creates
a new one: the two fittest valid genes are carried over, the gene pool is
filled to 40% with a fitness-biased pick of valid genes, the rest is
cross-bred from the elites and random members of the old population, and
finally every gene of the new pool is mutated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence

import numpy as np
from loguru import logger

from etevolve.exceptions import ETEvolveConfigError, InsufficientValidGenesError

from .fitness import FitnessEvaluator
from .genome import Gene
from .search_space import InputSpace

if TYPE_CHECKING:
    from .engine import ParallelExecutor

ELITE_COUNT = 2
SELECTION_FRACTION = 0.4
SELECTION_PROBABILITY = 0.4
DEFAULT_MAX_SELECTION_SCANS = 100

RESEED = "reseed"
RAISE = "raise"
INSUFFICIENT_VALID_POLICIES = (RESEED, RAISE)


def _ranking_key(gene: Gene) -> tuple:
    # unset fitness sorts last
    if gene.fitness is None:
        return (1, 0.0)
    return (0, -gene.fitness)


@dataclass
class Population:
    """Fixed-size collection of genes forming one generation."""

    input_space: InputSpace
    count: int
    genes: List[Gene] = field(default_factory=list)
    generation: int = 0
    max_selection_scans: int = DEFAULT_MAX_SELECTION_SCANS
    insufficient_valid: str = RESEED

    def __post_init__(self) -> None:
        if self.insufficient_valid not in INSUFFICIENT_VALID_POLICIES:
            raise ETEvolveConfigError(
                f"Unknown insufficient_valid policy '{self.insufficient_valid}'",
                context={"options": list(INSUFFICIENT_VALID_POLICIES)},
            )

    @classmethod
    def seed_initial(cls, input_space: InputSpace, count: int, **options) -> "Population":
        """Create ``count`` independently seeded genes."""
        genes = [Gene.seeded(input_space) for _ in range(count)]
        return cls(input_space=input_space, count=count, genes=genes, **options)

    @property
    def rng(self) -> np.random.Generator:
        return self.input_space.rng

    def __len__(self) -> int:
        return len(self.genes)

    def __iter__(self) -> Iterator[Gene]:
        return iter(self.genes)

    def evaluate_fitness(
        self,
        evaluator: FitnessEvaluator,
        objective: str,
        executor: Optional["ParallelExecutor"] = None,
    ) -> None:
        """Evaluate every gene that has no fitness yet."""

        pending = [gene for gene in self.genes if gene.fitness is None]
        if executor is None:
            for gene in pending:
                gene.evaluate_fitness(evaluator, objective)
            return
        executor.map(
            lambda gene: gene.evaluate_fitness(evaluator, objective),
            pending,
            concurrent=getattr(evaluator, "concurrent_safe", False),
        )

    def ranked_by_fitness(self) -> List[Gene]:
        """Fittest genes first; ties keep their original order."""
        return sorted(self.genes, key=_ranking_key)

    def valid_ranked(self) -> List[Gene]:
        return [gene for gene in self.ranked_by_fitness() if gene.is_valid()]

    def best(self) -> Optional[Gene]:
        ranked = self.ranked_by_fitness()
        return ranked[0] if ranked else None

    def fitness_values(self) -> List[float]:
        return [gene.fitness for gene in self.genes if gene.fitness is not None]

    def dup(self) -> "Population":
        """Copy of the population with cloned genes."""
        return Population(
            input_space=self.input_space,
            count=self.count,
            genes=[gene.clone() for gene in self.genes],
            generation=self.generation,
            max_selection_scans=self.max_selection_scans,
            insufficient_valid=self.insufficient_valid,
        )

    def evolve(self, crossover_rate: float, mutation_rate: float) -> "Population":
        """Produce the next generation; ``self`` is left untouched."""

        ranked = self.valid_ranked()
        elites = ranked[:ELITE_COUNT]
        if len(elites) < ELITE_COUNT:
            elites = self._pad_elites(elites)
            candidates: Sequence[Gene] = elites
        else:
            candidates = ranked

        gene_pool = [gene.clone() for gene in elites[: self.count]]

        # Prioritise fitter genes while filling up to 40% of the pool.
        selection_target = math.ceil(self.count * SELECTION_FRACTION)
        while len(gene_pool) < selection_target:
            gene_pool.append(self._weighted_pick(candidates, fallback_index=len(gene_pool)).clone())

        while len(gene_pool) < self.count:
            fit_gene = elites[int(self.rng.integers(len(elites)))]
            random_gene = self.genes[int(self.rng.integers(len(self.genes)))].clone()
            gene_pool.append(fit_gene.breed(random_gene, crossover_rate, self.rng))

        for gene in gene_pool:
            gene.mutate(self.input_space, mutation_rate)

        return Population(
            input_space=self.input_space,
            count=self.count,
            genes=gene_pool,
            generation=self.generation + 1,
            max_selection_scans=self.max_selection_scans,
            insufficient_valid=self.insufficient_valid,
        )

    def _pad_elites(self, elites: List[Gene]) -> List[Gene]:
        if self.insufficient_valid == RAISE:
            raise InsufficientValidGenesError(
                f"Generation {self.generation} has {len(elites)} valid genes, {ELITE_COUNT} are required",
                context={"generation": self.generation, "valid": len(elites)},
            )
        missing = ELITE_COUNT - len(elites)
        logger.warning(
            "Generation {} has {} valid genes; seeding {} fresh elite(s)",
            self.generation,
            len(elites),
            missing,
        )
        return list(elites) + [Gene.seeded(self.input_space) for _ in range(missing)]

    def _weighted_pick(self, candidates: Sequence[Gene], fallback_index: int) -> Gene:
        """First candidate whose coin flip succeeds, scanning a bounded number of times."""

        for _ in range(self.max_selection_scans):
            flips = self.rng.random(len(candidates)) < SELECTION_PROBABILITY
            hits = np.flatnonzero(flips)
            if hits.size:
                return candidates[int(hits[0])]
        logger.warning(
            "No gene selected after {} scans; taking ranked gene {}",
            self.max_selection_scans,
            fallback_index % len(candidates),
        )
        return candidates[fallback_index % len(candidates)]
