"""
SDK entry point exposing the `ETEvolve` orchestration class.

The runner resolves configuration, builds the input space from the remote
model (through the on-disk input cache), wires the fitness evaluator, and runs
the optimizer inside an experiment-tracking context.  It serves as the
backbone of the CLI.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np
from loguru import logger

from etevolve.etengine import ETEngineClient, ETEngineEvaluator, ETEngineInputSource
from etevolve.evolution import (
    FitnessEvaluator,
    GenerationSummary,
    InputSpace,
    OptimizationScheduler,
    Optimizer,
    OptimizerConfig,
    SchedulerConfig,
)
from etevolve.evolution.search_space import InputSource
from etevolve.exceptions import ETEvolveConfigError
from etevolve.utils import ConfigLoader, ExperimentLogger, InputCache
from etevolve.utils.config_loader import ConfigLike
from etevolve.utils.config_reference import (
    as_dict as _config_schema_dict,
    find_field as _find_config_field,
    to_console as _config_schema_console,
    to_markdown as _config_schema_markdown,
    write_markdown as _config_write_markdown,
)
from etevolve.utils.profiles import get_profile, list_profiles


def _slugify_name(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "run"


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value


@dataclass
class ETEvolveResult:
    """Return payload exposed by the SDK."""

    run_id: str
    summaries: List[GenerationSummary]
    best_fitness: Optional[float]
    best_properties: Dict[str, Optional[float]]
    optimizer: Optimizer = field(repr=False)
    output_dir: Optional[Path] = None

    @property
    def history(self):
        """Every population of the run, the seed population first."""
        return self.optimizer.populations

    def to_dict(self) -> Dict[str, Any]:
        return _json_safe(
            {
                "run_id": self.run_id,
                "best_fitness": self.best_fitness,
                "best_properties": dict(self.best_properties),
                "generations": [summary.as_dict() for summary in self.summaries],
            }
        )

    def export(self, path: Union[str, Path]) -> Path:
        """Write the result, and every evaluated generation, as JSON."""

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = self.to_dict()
        payload["history"] = [
            {
                "generation": population.generation,
                "genes": [
                    {"fitness": gene.fitness, "properties": dict(gene.properties)}
                    for gene in population
                ],
            }
            for population in self.history
        ]
        target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return target


class ETEvolve:
    """Primary interface coordinating configuration and evolution.

    Use :meth:`describe_config` for interactive documentation of all tunable
    parameters.  The remote collaborators can be replaced by passing an
    ``evaluator``, an ``input_source`` or a ready ``input_space``.
    """

    @classmethod
    def describe_config(
        cls,
        section: Optional[str] = None,
        *,
        as_markdown: bool = False,
        to_console: bool = False,
    ) -> Union[str, Dict[str, Dict[str, Dict[str, object]]]]:
        """Return metadata describing ETEvolve configuration keys.

        Parameters
        ----------
        section : str, optional
            Only return information for a single section (for example
            ``"optimizer"``). All sections are returned when omitted.
        as_markdown : bool, default False
            Return Markdown text instead of a nested dictionary.
        to_console : bool, default False
            Pretty-print the configuration table to stdout as well.
        """

        if as_markdown:
            markdown = _config_schema_markdown(section=section)
            if to_console:
                print(markdown)
            return markdown

        if to_console:
            print(_config_schema_console(section=section))
        return _config_schema_dict(section)

    @classmethod
    def explain(cls, key: str) -> str:
        """Return a human readable description for a configuration key."""

        normalized = key.strip().lower().replace("-", "_")
        field_ = _find_config_field(normalized)
        if field_ is None:
            raise ETEvolveConfigError(
                f"Unknown configuration key '{key}'.",
                context={"key": key},
            )
        default_repr = "None" if field_.default is None else repr(field_.default)
        description = field_.description or "No description available."
        return (
            f"{field_.name} (section={field_.section}, type={field_.type}, "
            f"default={default_repr}) -> {description}"
        )

    @classmethod
    def generate_config_docs(cls, path: Union[str, Path] = Path("CONFIG.md")) -> Path:
        """Render the configuration reference to a markdown file."""

        return _config_write_markdown(Path(path))

    @classmethod
    def available_profiles(cls) -> Dict[str, Dict[str, object]]:
        """Return a mapping of available configuration profiles."""

        return list_profiles()

    def __init__(
        self,
        config: Optional[ConfigLike] = None,
        *,
        profile: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        run_name: Optional[str] = None,
        evaluator: Optional[FitnessEvaluator] = None,
        input_source: Optional[InputSource] = None,
        input_space: Optional[InputSpace] = None,
    ) -> None:
        """Create a new ETEvolve orchestrator.

        Parameters
        ----------
        config : str | Path | dict, optional
            Run configuration as a YAML/JSON file, YAML string or mapping.
        profile : str, optional
            Configuration profile (``"fast"``, ``"balanced"``, ``"exhaustive"``)
            merged before ``config``.
        overrides : dict, optional
            Values merged last, typically from command line flags.
        run_name : str, optional
            Slug used to name the run directory.
        evaluator : FitnessEvaluator, optional
            Replaces the ETEngine evaluator.
        input_source : InputSource, optional
            Replaces the ETEngine input metadata source.
        input_space : InputSpace, optional
            Ready input space; its generator is used as the random source.
        """

        profile_conf: Optional[Dict[str, Any]] = None
        if profile:
            try:
                profile_conf = get_profile(profile)
            except KeyError as exc:
                raise ETEvolveConfigError(str(exc), context={"profile": profile}) from exc

        self.profile = profile
        self.config = ConfigLoader().load(config=config, overrides=overrides, profile=profile_conf).to_dict()
        self._evaluator = evaluator
        self._input_source = input_source
        self._input_space = input_space
        self._client: Optional[ETEngineClient] = None

        objective = self.config["objective"]
        if not objective.get("fitness"):
            raise ETEvolveConfigError("objective.fitness must name the query to maximise")
        if input_space is None and not objective.get("inputs"):
            raise ETEvolveConfigError("objective.inputs must list at least one tunable input")

        self.optimizer_config = self._optimizer_config()
        self.iterations = int(self.config["optimizer"]["iterations"])
        if self.iterations < 1:
            raise ETEvolveConfigError(
                f"optimizer.iterations must be at least 1, got {self.iterations}",
                context={"iterations": self.iterations},
            )

        tracking = self.config["tracking"]
        self.logger = ExperimentLogger(
            experiment_name=tracking["experiment_name"],
            tracking_uri=tracking.get("tracking_uri"),
            use_mlflow=bool(tracking.get("enabled", True)),
        )
        base_slug = _slugify_name(run_name) if run_name else _slugify_name(str(objective["fitness"]))
        self.run_id = f"{base_slug}-{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        output_dir = self.config["output"].get("directory")
        self.output_dir = Path(output_dir) / self.run_id if output_dir else None

    def _optimizer_config(self) -> OptimizerConfig:
        section = self.config["optimizer"]
        return OptimizerConfig(
            population=int(section["population"]),
            mutation_rate=float(section["mutation_rate"]),
            crossover_rate=float(section["crossover_rate"]),
            max_workers=section.get("max_workers"),
            max_selection_scans=int(section["max_selection_scans"]),
            insufficient_valid=str(section["insufficient_valid"]),
        )

    @property
    def client(self) -> ETEngineClient:
        if self._client is None:
            engine = self.config["engine"]
            self._client = ETEngineClient(
                base_url=engine["base_url"],
                timeout=float(engine["timeout"]),
                title=engine["title"],
                area_code=engine["area_code"],
                start_year=int(engine["start_year"]),
                end_year=int(engine["end_year"]),
            )
        return self._client

    def _build_input_space(self) -> InputSpace:
        if self._input_space is not None:
            return self._input_space
        source = self._input_source
        if source is None:
            cache_conf = self.config["cache"]
            cache = InputCache(cache_conf["directory"]) if cache_conf.get("enabled") else None
            source = ETEngineInputSource(self.client, cache=cache)
        rng = np.random.default_rng(self.config["optimizer"].get("seed"))
        return InputSpace.load(self.config["objective"]["inputs"], source, rng=rng)

    def _build_evaluator(self) -> FitnessEvaluator:
        if self._evaluator is not None:
            return self._evaluator
        return ETEngineEvaluator(self.client, fixed=self.config["objective"].get("fixed"))

    def build_optimizer(self) -> Optimizer:
        """Input space, evaluator and optimizer for this configuration."""

        input_space = self._build_input_space()
        logger.info("Loaded {} tunable inputs", len(input_space))
        return Optimizer(
            input_space,
            self._build_evaluator(),
            str(self.config["objective"]["fitness"]),
            config=self.optimizer_config,
        )

    def run(self, on_generation=None) -> ETEvolveResult:
        """Run the configured number of generations and collect the result."""

        optimizer = self.build_optimizer()
        if on_generation is not None:
            optimizer.add_listener(on_generation)
        scheduler = OptimizationScheduler(
            optimizer=optimizer,
            logger=self.logger,
            config=SchedulerConfig(
                iterations=self.iterations,
                run_name=self.run_id,
                params={
                    "population": str(self.optimizer_config.population),
                    "mutation_rate": str(self.optimizer_config.mutation_rate),
                    "crossover_rate": str(self.optimizer_config.crossover_rate),
                    "objective": str(self.config["objective"]["fitness"]),
                },
            ),
        )
        scheduler.run()

        best = optimizer.best_gene()
        result = ETEvolveResult(
            run_id=self.run_id,
            summaries=list(optimizer.summaries),
            best_fitness=best.fitness if best is not None else None,
            best_properties=dict(best.properties) if best is not None else {},
            optimizer=optimizer,
            output_dir=self.output_dir,
        )
        if self.output_dir is not None:
            self._persist_run_outputs(result)
        return result

    def _persist_run_outputs(self, result: ETEvolveResult) -> None:
        if self.output_dir is None:
            return
        self.output_dir.mkdir(parents=True, exist_ok=True)
        result.export(self.output_dir / "result.json")
        config_path = self.output_dir / "config.json"
        config_path.write_text(json.dumps(self.config, indent=2, default=str), encoding="utf-8")
        self.logger.log_message(f"Run outputs written to {self.output_dir}")
