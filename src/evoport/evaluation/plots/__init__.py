"""Convenience exports for plotting utilities."""

from .convergence import plot_fitness_trajectory, plot_risk_return, plot_weights

__all__ = [
    "plot_fitness_trajectory",
    "plot_weights",
    "plot_risk_return",
]
