"""
Predefined configuration profiles for ETEvolve.

Profiles provide shortcuts for common modes such as a quick smoke run or an
exhaustive search.  They are merged on top of global defaults before user
overrides are applied.
"""

from __future__ import annotations

from typing import Dict

from omegaconf import OmegaConf


PROFILES: Dict[str, Dict[str, object]] = {
    "fast": {
        "optimizer": {
            "population": 6,
            "iterations": 2,
        },
    },
    "balanced": {
        "optimizer": {
            "population": 10,
            "iterations": 20,
            "mutation_rate": 0.1,
            "crossover_rate": 0.5,
        },
    },
    "exhaustive": {
        "optimizer": {
            "population": 30,
            "iterations": 60,
            "mutation_rate": 0.05,
            "crossover_rate": 0.5,
        },
    },
}


def list_profiles() -> Dict[str, Dict[str, object]]:
    """Return a copy of the registered profiles."""

    return {name: OmegaConf.to_container(OmegaConf.create(conf), resolve=True) for name, conf in PROFILES.items()}


def get_profile(name: str) -> Dict[str, object]:
    """Return a profile configuration by name."""

    if name not in PROFILES:
        raise KeyError(f"Unknown profile '{name}'. Available profiles: {list(PROFILES)}")
    return OmegaConf.to_container(OmegaConf.create(PROFILES[name]), resolve=True)
