"""Shared fixtures for the ETEvolve test-suite."""

from __future__ import annotations

import numpy as np
import pytest

from etevolve.evolution import CallableEvaluator, InputSpace


@pytest.fixture
def space() -> InputSpace:
    """Single input ``x`` ranging over 0..10 in steps of 1."""
    input_space = InputSpace(rng=np.random.default_rng(7))
    input_space.register("x", 0, 10, 1)
    return input_space


@pytest.fixture
def two_input_space() -> InputSpace:
    input_space = InputSpace(rng=np.random.default_rng(11))
    input_space.register("x", 0, 10, 1)
    input_space.register("y", -5, 5, 0.5)
    return input_space


@pytest.fixture
def constant_evaluator() -> CallableEvaluator:
    return CallableEvaluator(lambda properties, objective: 200)


@pytest.fixture
def failing_evaluator() -> CallableEvaluator:
    def _fail(properties, objective):
        raise RuntimeError("remote scenario unavailable")

    return CallableEvaluator(_fail)
