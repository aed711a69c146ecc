"""
Unified configuration loader for ETEvolve.

This module normalises configuration handling across the CLI and SDK.
Configurations can be provided as dictionaries, JSON/YAML files, or YAML
strings and are merged on top of the schema defaults.  Every section and key
is checked against the configuration schema so that typos fail loudly.

Flat files written for the original driver (``population``,
``mutation_rate``, ``breed_mutate``, ``fitness``, ``inputs``, ``fixed`` at the
top level) are translated to their sections.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Union

import yaml
from omegaconf import DictConfig, OmegaConf

from .config_reference import CONFIG_SCHEMA, defaults

ConfigLike = Union[str, Path, Mapping[str, Any], DictConfig]

LEGACY_KEYS: Dict[str, tuple] = {
    "population": ("optimizer", "population"),
    "mutation_rate": ("optimizer", "mutation_rate"),
    "breed_mutate": ("optimizer", "crossover_rate"),
    "iterations": ("optimizer", "iterations"),
    "fitness": ("objective", "fitness"),
    "inputs": ("objective", "inputs"),
    "fixed": ("objective", "fixed"),
}


@dataclass
class LoadedConfig:
    """Container that exposes both OmegaConf and plain-dict views."""

    data: DictConfig

    def to_dict(self) -> Dict[str, Any]:
        return OmegaConf.to_container(self.data, resolve=True)  # type: ignore[return-value]

    def __getitem__(self, item: str) -> Any:
        return self.data[item]


def _translate_legacy(raw: Dict[str, Any]) -> Dict[str, Any]:
    translated: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in LEGACY_KEYS and key not in CONFIG_SCHEMA:
            section, name = LEGACY_KEYS[key]
            translated.setdefault(section, {})[name] = value
        else:
            translated.setdefault(key, value)
    return translated


def validate(raw: Mapping[str, Any]) -> None:
    """Reject unknown sections and keys."""

    for section, values in raw.items():
        if section not in CONFIG_SCHEMA:
            raise ValueError(f"Unknown configuration section '{section}'. Options: {sorted(CONFIG_SCHEMA)}")
        if values is None:
            continue
        if not isinstance(values, Mapping):
            raise ValueError(f"Configuration section '{section}' must be a mapping.")
        for key in values:
            if key not in CONFIG_SCHEMA[section]:
                raise ValueError(
                    f"Unknown configuration key '{section}.{key}'. Options: {sorted(CONFIG_SCHEMA[section])}"
                )


class ConfigLoader:
    """
    Load and merge ETEvolve configuration sources.

    Parameters
    ----------
    global_config : Optional[ConfigLike]
        Optional path or mapping merged over the schema defaults.
    """

    def __init__(self, global_config: Optional[ConfigLike] = None) -> None:
        self._global_conf = OmegaConf.create(defaults())
        if global_config is not None:
            self._global_conf = OmegaConf.merge(self._global_conf, self._coerce(global_config))

    def _coerce(self, source: ConfigLike) -> DictConfig:
        """Convert arbitrary config-like inputs into a validated OmegaConf instance."""
        if isinstance(source, DictConfig):
            raw = OmegaConf.to_container(source, resolve=True)
        elif isinstance(source, Mapping):
            raw = dict(source)
        elif isinstance(source, Path):
            raw = self._load_path(source)
        elif isinstance(source, str):
            potential_path = Path(source)
            if potential_path.suffix.lower() in {".yaml", ".yml", ".json"} or potential_path.exists():
                raw = self._load_path(potential_path)
            else:
                try:
                    raw = yaml.safe_load(source)
                except yaml.YAMLError as exc:
                    raise ValueError(f"Failed to parse configuration string: {exc}") from exc
                if not isinstance(raw, MutableMapping):
                    raise ValueError("Configuration string must evaluate to a mapping.")
        else:
            raise TypeError(f"Unsupported configuration source: {type(source)!r}")
        raw = _translate_legacy(dict(raw))  # type: ignore[arg-type]
        validate(raw)
        return OmegaConf.create(raw)

    def _load_path(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        suffix = path.suffix.lower()
        if suffix not in {".yaml", ".yml", ".json"}:
            raise ValueError(f"Unsupported configuration file format: '{suffix}'. Expected YAML or JSON.")
        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, MutableMapping):
            raise ValueError(f"Configuration file {path} must contain a mapping.")
        return dict(loaded)

    def load(
        self,
        config: Optional[ConfigLike] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        profile: Optional[Mapping[str, Any]] = None,
    ) -> LoadedConfig:
        """Merge defaults, an optional profile, configuration and overrides in that order."""

        merged = self._global_conf.copy()

        if profile:
            merged = OmegaConf.merge(merged, self._coerce(profile))

        if config is not None:
            merged = OmegaConf.merge(merged, self._coerce(config))

        if overrides:
            merged = OmegaConf.merge(merged, self._coerce(overrides))

        return LoadedConfig(merged)
