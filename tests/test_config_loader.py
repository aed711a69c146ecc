"""Tests covering the ETEvolve configuration loader behaviour."""

from pathlib import Path

import pytest

import etevolve
from etevolve.utils import ConfigLoader


def test_defaults_come_from_the_schema() -> None:
    config = ConfigLoader().load().to_dict()
    assert config["optimizer"]["population"] == 10
    assert config["optimizer"]["insufficient_valid"] == "reseed"
    assert config["objective"]["fixed"] == {}


def test_config_loader_merges_overrides_last(tmp_path: Path) -> None:
    """File values override defaults and explicit overrides win over the file."""
    path = tmp_path / "run.yaml"
    path.write_text("optimizer:\n  population: 20\n  iterations: 4\n", encoding="utf-8")
    loader = ConfigLoader({"optimizer": {"mutation_rate": 0.3}})
    config = loader.load(path, overrides={"optimizer": {"iterations": 2}}).to_dict()
    assert config["optimizer"]["population"] == 20
    assert config["optimizer"]["iterations"] == 2
    assert config["optimizer"]["mutation_rate"] == 0.3


def test_profile_is_applied_before_the_config() -> None:
    config = ConfigLoader().load(
        {"optimizer": {"population": 4}},
        profile={"optimizer": {"population": 30, "iterations": 60}},
    ).to_dict()
    assert config["optimizer"]["population"] == 4
    assert config["optimizer"]["iterations"] == 60


def test_legacy_flat_keys_are_translated() -> None:
    legacy = {
        "population": 12,
        "mutation_rate": 0.2,
        "breed_mutate": 0.6,
        "fitness": "etflex_score",
        "inputs": ["a", "b"],
        "fixed": {"c": 1.5},
    }
    config = ConfigLoader().load(legacy).to_dict()
    assert config["optimizer"]["population"] == 12
    assert config["optimizer"]["crossover_rate"] == 0.6
    assert config["objective"]["inputs"] == ["a", "b"]
    assert config["objective"]["fixed"] == {"c": 1.5}


def test_yaml_strings_are_accepted() -> None:
    config = ConfigLoader().load("objective:\n  fitness: co2_reduction\n").to_dict()
    assert config["objective"]["fitness"] == "co2_reduction"


def test_packaged_example_config_loads() -> None:
    path = Path(etevolve.__file__).resolve().parent / "configs" / "etlight.yaml"
    config = ConfigLoader().load(path).to_dict()
    assert config["objective"]["fitness"] == "etflex_score"
    assert len(config["objective"]["inputs"]) == 5


def test_config_loader_unknown_section_raises() -> None:
    loader = ConfigLoader()
    with pytest.raises(ValueError) as err:
        loader.load(overrides={"unknown_section": {"foo": 1}})
    assert "unknown_section" in str(err.value)


def test_config_loader_unknown_key_raises() -> None:
    loader = ConfigLoader()
    with pytest.raises(ValueError) as err:
        loader.load(overrides={"optimizer": {"invalid_key": 1}})
    assert "optimizer.invalid_key" in str(err.value)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ConfigLoader().load(tmp_path / "absent.yaml")
