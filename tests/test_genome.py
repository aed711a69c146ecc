"""
Tests for gene operators and fitness caching.
"""

import numpy as np
import pytest

from etevolve.evolution.fitness import CallableEvaluator, EvaluationResult
from etevolve.evolution.genome import INVALID_FITNESS, Gene
from etevolve.exceptions import EvaluationError, UnknownInputError


def test_seeded_gene_covers_every_input(two_input_space) -> None:
    gene = Gene.seeded(two_input_space)
    assert set(gene.keys()) == {"x", "y"}
    assert all(value is not None for value in gene.properties.values())
    assert gene.fitness is None


def test_mutation_rate_zero_keeps_every_allele(two_input_space) -> None:
    gene = Gene.seeded(two_input_space)
    before = dict(gene.properties)
    gene.mutate(two_input_space, mutation_rate=0.0)
    assert gene.properties == before


def test_mutation_rate_one_replaces_every_allele(two_input_space, monkeypatch) -> None:
    gene = Gene.seeded(two_input_space)
    monkeypatch.setattr(two_input_space, "sample", lambda key: 99.0)
    gene.mutate(two_input_space, mutation_rate=1.0)
    assert gene.properties == {"x": 99.0, "y": 99.0}


def test_mutation_drops_cached_fitness(space) -> None:
    gene = Gene.seeded(space)
    gene.fitness = 250.0
    gene.mutate(space, mutation_rate=0.0)
    assert gene.fitness is None


def test_crossover_rate_zero_returns_first_parent() -> None:
    rng = np.random.default_rng(0)
    first = Gene({"x": 1.0, "y": 2.0})
    second = Gene({"x": 8.0, "y": 9.0})
    child = first.breed(second, crossover_rate=0.0, rng=rng)
    assert child.properties == first.properties
    assert child is not first


def test_crossover_rate_one_returns_second_parent() -> None:
    rng = np.random.default_rng(0)
    first = Gene({"x": 1.0, "y": 2.0})
    second = Gene({"x": 8.0, "y": 9.0})
    child = first.breed(second, crossover_rate=1.0, rng=rng)
    assert child.properties == second.properties
    assert first.properties == {"x": 1.0, "y": 2.0}


def test_bred_child_starts_without_fitness() -> None:
    first = Gene({"x": 1.0}, fitness=300.0)
    second = Gene({"x": 2.0}, fitness=400.0)
    child = first.breed(second, 0.5, np.random.default_rng(1))
    assert child.fitness is None


def test_breed_rejects_mismatched_genes() -> None:
    first = Gene({"x": 1.0, "y": 2.0})
    other = Gene({"x": 3.0})
    with pytest.raises(UnknownInputError):
        first.breed(other, 1.0, np.random.default_rng(0))


def test_clone_copies_properties_but_not_fitness() -> None:
    gene = Gene({"x": 4.0}, fitness=500.0)
    clone = gene.clone()
    assert clone.properties == gene.properties
    assert clone.fitness is None
    clone["x"] = 5.0
    assert gene["x"] == 4.0


def test_unknown_keys_are_rejected() -> None:
    gene = Gene({"x": 1.0})
    with pytest.raises(UnknownInputError):
        gene["z"] = 3.0
    with pytest.raises(UnknownInputError):
        gene["z"]


def test_fitness_is_computed_once() -> None:
    answers = iter([300.0, 900.0])
    evaluator = CallableEvaluator(lambda properties, objective: next(answers))
    gene = Gene({"x": 1.0})
    assert gene.evaluate_fitness(evaluator, "score") == 300.0
    assert gene.evaluate_fitness(evaluator, "score") == 300.0
    assert evaluator.calls == 1


def test_failed_evaluation_marks_gene_invalid(failing_evaluator) -> None:
    gene = Gene({"x": 1.0})
    assert gene.evaluate_fitness(failing_evaluator, "score") == INVALID_FITNESS
    assert not gene.is_valid()


def test_evaluation_error_is_absorbed() -> None:
    class RaisingEvaluator:
        concurrent_safe = False

        def evaluate(self, properties, objective):
            raise EvaluationError("connection refused")

    gene = Gene({"x": 1.0})
    assert gene.evaluate_fitness(RaisingEvaluator(), "score") == INVALID_FITNESS


def test_failure_result_is_mapped_to_sentinel() -> None:
    class FailingEvaluator:
        concurrent_safe = False

        def evaluate(self, properties, objective):
            return EvaluationResult.failure("query missing")

    gene = Gene({"x": 1.0})
    gene.evaluate_fitness(FailingEvaluator(), "score")
    assert gene.fitness == -1


@pytest.mark.parametrize(
    "fitness, expected",
    [(None, False), (-1.0, False), (100.0, False), (100.5, True), (2500.0, True)],
)
def test_validity_threshold(fitness, expected) -> None:
    assert Gene({"x": 1.0}, fitness=fitness).is_valid() is expected


@pytest.mark.parametrize("error", [ConnectionError("socket closed"), KeyError("future"), RuntimeError("boom")])
def test_unexpected_evaluator_exceptions_are_absorbed(error) -> None:
    class Raising:
        concurrent_safe = False

        def evaluate(self, properties, objective):
            raise error

    gene = Gene({"x": 1.0})
    assert gene.evaluate_fitness(Raising(), "score") == INVALID_FITNESS
    assert not gene.is_valid()
