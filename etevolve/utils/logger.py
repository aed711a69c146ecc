"""
Unified logging utilities that wrap Loguru and MLflow.

The `ExperimentLogger` offers a small convenience layer for recording an
optimisation run without worrying about tracking URIs or missing optional
dependencies.  Per-generation metrics are forwarded to MLflow when available,
while Loguru handles console output.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from loguru import logger

try:
    import mlflow
except ImportError:  # pragma: no cover - fallback path is best effort only.
    mlflow = None  # type: ignore[assignment]
    logger.warning("MLflow is not installed. Tracking will be disabled.")


class ExperimentLogger:
    """Thin convenience wrapper around Loguru and MLflow."""

    def __init__(
        self,
        experiment_name: str,
        tracking_uri: Optional[str] = None,
        use_mlflow: bool = True,
    ) -> None:
        self.experiment_name = experiment_name
        self.tracking_uri = tracking_uri
        self.use_mlflow = use_mlflow and mlflow is not None

    def _ensure_mlflow(self) -> None:
        """Configure the MLflow tracking URI and experiment."""
        if self.tracking_uri:
            mlflow.set_tracking_uri(self.tracking_uri)
        mlflow.set_experiment(self.experiment_name)

    @contextmanager
    def start_run(self, run_name: str, params: Optional[Dict[str, str]] = None) -> Iterator[None]:
        """
        Context manager that opens and closes an MLflow run while emitting log messages.

        Without MLflow the context still works, so callers can rely on the same
        interface without extra guards.
        """

        logger.info("Starting ETEvolve run: {}", run_name)
        if self.use_mlflow:
            self._ensure_mlflow()
            with mlflow.start_run(run_name=run_name):
                if params:
                    mlflow.log_params(params)
                yield
        else:
            yield
        logger.info("Completed ETEvolve run: {}", run_name)

    def log_metrics(self, metrics: Dict[str, float], step: Optional[int] = None) -> None:
        """Emit metrics to both the console and MLflow if enabled."""
        logger.debug("Metrics@{}: {}", step if step is not None else "-", metrics)
        if self.use_mlflow:
            finite = {key: value for key, value in metrics.items() if not math.isnan(value)}
            mlflow.log_metrics(finite, step=step)

    def log_message(self, message: str) -> None:
        """Log a simple info message."""
        logger.info(message)
