"""ETEngine remote model integration."""

from .client import DEFAULT_BASE_URL, ETEngineClient
from .evaluator import ETEngineEvaluator, ETEngineInputSource

__all__ = ["DEFAULT_BASE_URL", "ETEngineClient", "ETEngineEvaluator", "ETEngineInputSource"]
