"""Price → returns processing."""

from .returns import calculate_returns

__all__ = ["calculate_returns"]
