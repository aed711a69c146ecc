"""SDK pipelines."""

from .runner import ETEvolve, ETEvolveResult

__all__ = ["ETEvolve", "ETEvolveResult"]
