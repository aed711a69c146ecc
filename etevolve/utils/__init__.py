"""Utility exports for ETEvolve."""

from .config_loader import ConfigLoader, LoadedConfig
from .input_cache import InputCache
from .logger import ExperimentLogger

__all__ = ["ConfigLoader", "LoadedConfig", "ExperimentLogger", "InputCache"]
