"""
Input space definition for ETEvolve genes.

Every tunable input (a slider in the energy transition model) has a valid
range and a quantization step.  The :class:`InputSpace` registry keeps one
:class:`InputSpec` per identifier and draws random values from it.  A space is
built once per run and passed explicitly to every component that samples.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Protocol

import numpy as np

from etevolve.exceptions import ETEvolveConfigError, InvalidRangeError, UnknownInputError


def _round_tenth(value: float) -> float:
    # ties go away from zero: 0.25 -> 0.3
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class InputSource(Protocol):
    """Anything that can describe an input by identifier."""

    def fetch(self, key: str) -> Mapping[str, Any]:
        ...


@dataclass(frozen=True)
class InputSpec:
    """Range and step of a single tunable input."""

    id: str
    minimum: float
    maximum: float
    step: float
    step_count: int = field(init=False)

    def __post_init__(self) -> None:
        if self.maximum <= self.minimum:
            raise InvalidRangeError(
                f"Input '{self.id}' needs max > min, got min={self.minimum} max={self.maximum}",
                context={"input": self.id, "min": self.minimum, "max": self.maximum},
            )
        if self.step <= 0:
            raise InvalidRangeError(
                f"Input '{self.id}' needs a positive step, got {self.step}",
                context={"input": self.id, "step": self.step},
            )
        object.__setattr__(self, "step_count", int(math.floor((self.maximum - self.minimum) / self.step)))

    def sample(self, rng: np.random.Generator) -> float:
        """
        Draw a random value on the step grid.

        The scaled offset is rounded half-up to one decimal before the
        minimum is added, so steps finer than 0.1 do not land exactly on the
        grid.
        """

        if self.step_count == 0:
            return self.minimum
        n = int(rng.integers(0, self.step_count))
        return self.minimum + _round_tenth(self.step * n)


class InputSpace:
    """Registry of input specifications keyed by identifier."""

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()
        self._specs: Dict[str, InputSpec] = {}

    def register(self, id: str, minimum: float, maximum: float, step: float) -> InputSpec:
        if id in self._specs:
            raise ETEvolveConfigError(f"Input '{id}' is already registered", context={"input": id})
        spec = InputSpec(id=id, minimum=float(minimum), maximum=float(maximum), step=float(step))
        self._specs[id] = spec
        return spec

    def __getitem__(self, id: str) -> InputSpec:
        try:
            return self._specs[id]
        except KeyError:
            raise UnknownInputError(f"Input '{id}' is not registered", context={"input": id}) from None

    def __contains__(self, id: object) -> bool:
        return id in self._specs

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    @property
    def identifiers(self) -> frozenset:
        return frozenset(self._specs)

    def sample(self, id: str) -> float:
        """Random value for ``id`` drawn from the shared generator."""
        return self[id].sample(self.rng)

    @classmethod
    def load(
        cls,
        keys: Iterable[str],
        source: InputSource,
        rng: Optional[np.random.Generator] = None,
    ) -> "InputSpace":
        """Build a space by fetching ``{min, max, step}`` for every key."""

        space = cls(rng=rng)
        for key in keys:
            attributes = source.fetch(key)
            space.register(key, attributes["min"], attributes["max"], attributes["step"])
        return space
