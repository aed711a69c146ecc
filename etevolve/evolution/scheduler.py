"""
Scheduler utilities orchestrating multiple generations of evolution.

The `OptimizationScheduler` keeps the high-level run loop tidy: it opens an
experiment run, forwards every generation summary to the experiment logger
and drives the optimizer for the configured number of iterations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from etevolve.utils.logger import ExperimentLogger

from .engine import GenerationSummary, Optimizer


@dataclass
class SchedulerConfig:
    """Configuration for the generation scheduler."""

    iterations: int = 20
    run_name: str = "etevolve"
    log_history: bool = True
    params: Optional[Dict[str, str]] = None


@dataclass
class OptimizationScheduler:
    """Drive the end-to-end optimisation workflow."""

    optimizer: Optimizer
    logger: ExperimentLogger
    config: SchedulerConfig
    history: List[Dict[str, object]] = field(default_factory=list)

    def _record(self, summary: GenerationSummary) -> None:
        self.logger.log_metrics(
            {
                "best_fitness": summary.best_fitness,
                "mean_fitness": summary.mean_fitness,
                "valid_genes": float(summary.valid_genes),
            },
            step=summary.generation,
        )
        if self.config.log_history:
            self.history.append(summary.as_dict())

    def run(self) -> List[Dict[str, object]]:
        """Execute the configured number of generations."""

        self.optimizer.add_listener(self._record)
        with self.logger.start_run(self.config.run_name, params=self.config.params):
            self.optimizer.run(self.config.iterations)
        return self.history
