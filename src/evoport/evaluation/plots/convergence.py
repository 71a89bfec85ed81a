"""Convergence and allocation figures for genetic-algorithm runs.

All functions return the Matplotlib ``Axes`` used (the ``Figure`` can be
retrieved via ``ax.figure``).
"""

from __future__ import annotations

from typing import Any

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

__all__ = ["plot_fitness_trajectory", "plot_weights", "plot_risk_return"]


def _prepare_axis(ax: plt.Axes | None = None, *, title: str | None = None) -> plt.Axes:
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 4))
    if title:
        ax.set_title(title)
    return ax


def _history_frame(history: Any) -> pd.DataFrame:
    if hasattr(history, "history_frame"):
        history = history.history_frame()
    if not isinstance(history, pd.DataFrame):
        raise TypeError("history must be a DataFrame or expose history_frame()")
    if history.empty:
        raise ValueError("history is empty")
    return history.replace([np.inf, -np.inf], np.nan)


def plot_fitness_trajectory(
    history: Any,
    *,
    ax: plt.Axes | None = None,
    title: str = "GA Fitness Trajectory",
) -> plt.Axes:
    """Best-so-far and mean fitness per generation."""

    frame = _history_frame(history)
    ax = _prepare_axis(ax, title=title)
    ax.plot(frame.index, frame["best_fitness"], label="best", linewidth=2)
    if "average_fitness" in frame.columns:
        ax.plot(frame.index, frame["average_fitness"], label="mean", alpha=0.7)
    ax.set_xlabel("Generation")
    ax.set_ylabel("Fitness")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)
    return ax


def plot_weights(
    weights: pd.Series,
    *,
    ax: plt.Axes | None = None,
    title: str = "Portfolio Weights",
    top_n: int | None = None,
) -> plt.Axes:
    """Horizontal bar chart of weights, largest first."""

    if not isinstance(weights, pd.Series):
        raise TypeError("weights must be a pandas Series")
    series = weights.astype(float).sort_values(ascending=True)
    if top_n is not None:
        series = series.iloc[-top_n:]
    ax = _prepare_axis(ax, title=title)
    ax.barh(series.index.astype(str), series.values)
    ax.set_xlabel("Weight")
    ax.grid(True, axis="x", alpha=0.3)
    return ax


def plot_risk_return(
    table: pd.DataFrame,
    *,
    random_metrics: pd.DataFrame | None = None,
    ax: plt.Axes | None = None,
    title: str = "Risk vs Return",
) -> plt.Axes:
    """Scatter of highlighted portfolios over the cloud of random portfolios."""

    for column in ("annual_risk", "annual_return"):
        if column not in table.columns:
            raise ValueError(f"table must contain '{column}'")
    ax = _prepare_axis(ax, title=title)
    if random_metrics is not None and not random_metrics.empty:
        ax.scatter(
            random_metrics["annual_risk"],
            random_metrics["annual_return"],
            s=8,
            alpha=0.3,
            color="grey",
            label="random",
        )
    for name, row in table.iterrows():
        ax.scatter(row["annual_risk"], row["annual_return"], s=60, edgecolor="k", label=str(name))
    ax.set_xlabel("Annual risk")
    ax.set_ylabel("Annual return")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)
    return ax
