"""Penalised fitness functions for weight optimisation and asset selection.

Both evaluators follow the same contract: they are frozen, picklable
callables mapping a gene vector to a :class:`FitnessValue`. ``objective`` is
the quantity the run minimises and ``fitness = -objective`` is what the
engine maximises.

Weight objectives (``ret`` annualised return, ``risk`` annualised standard
deviation, ``penalty`` the feasibility penalty)::

    sharpe            -(ret / risk)   + penalty
    min_risk_return    (ret / risk)   + penalty
    max_risk           (ret / -risk)  + penalty
    max_risk_return    (-ret / -risk) + penalty

The sign placement is kept literally for each mode; the forms are not
simplified into each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from evoport.config.constants import LARGE_CONSTANT, TRADING_DAYS_IN_YEAR
from evoport.data.statistics import StatisticsContractError, StatisticsSnapshot

__all__ = [
    "ObjectiveMode",
    "FitnessValue",
    "portfolio_return",
    "portfolio_risk",
    "penalty",
    "WeightFitness",
    "SelectionFitness",
    "annualised_contributions",
    "top_k_assets",
]

logger = logging.getLogger(__name__)


class ObjectiveMode(str, Enum):
    SHARPE = "sharpe"
    MIN_RISK_RETURN = "min_risk_return"
    MAX_RISK = "max_risk"
    MAX_RISK_RETURN = "max_risk_return"

    @classmethod
    def parse(cls, value: "ObjectiveMode | str") -> "ObjectiveMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            options = ", ".join(mode.value for mode in cls)
            raise ValueError(f"unknown objective '{value}'; expected one of: {options}") from None


@dataclass(frozen=True)
class FitnessValue:
    fitness: float
    objective: float
    metrics: dict
    degenerate: bool = False


def _as_genes(genes: Sequence[float] | np.ndarray, size: int) -> np.ndarray:
    array = np.asarray(genes, dtype=float)
    if array.shape != (size,):
        raise StatisticsContractError(f"expected {size} genes, got shape {array.shape}")
    if np.isnan(array).any():
        raise StatisticsContractError("candidate genes contain NaN")
    return array


def portfolio_return(weights: np.ndarray, mean: np.ndarray) -> float:
    """Annualised return ``252 * sum(mean_i * w_i)``."""
    return float(TRADING_DAYS_IN_YEAR * np.dot(mean, weights))


def portfolio_risk(weights: np.ndarray, covariance: np.ndarray) -> float:
    """Annualised standard deviation ``sqrt(252 * w' C w)``.

    Round-off can push the quadratic form of a PSD matrix slightly below
    zero; it is floored at 0.
    """
    variance = float(weights @ covariance @ weights)
    return float(np.sqrt(max(TRADING_DAYS_IN_YEAR * variance, 0.0)))


def penalty(weights: np.ndarray) -> float:
    """``max(sum(w) - 1, 0) * LARGE_CONSTANT``; zero for any feasible vector."""
    excess = float(np.sum(weights)) - 1.0
    return max(excess, 0.0) * LARGE_CONSTANT


def _ratio_term(mode: ObjectiveMode, ret: float, risk: float) -> float:
    if mode is ObjectiveMode.SHARPE:
        return -(ret / risk)
    if mode is ObjectiveMode.MIN_RISK_RETURN:
        return ret / risk
    if mode is ObjectiveMode.MAX_RISK:
        return ret / -risk
    return -ret / -risk


@dataclass(frozen=True, eq=False)
class WeightFitness:
    """Real-valued evaluator: one parameterised form for all objective modes."""

    snapshot: StatisticsSnapshot
    mode: ObjectiveMode = ObjectiveMode.SHARPE

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", ObjectiveMode.parse(self.mode))

    def __call__(self, genes: Sequence[float] | np.ndarray) -> FitnessValue:
        weights = _as_genes(genes, self.snapshot.size)
        ret = portfolio_return(weights, self.snapshot.mean)
        risk = portfolio_risk(weights, self.snapshot.covariance)
        pen = penalty(weights)
        metrics = {"return": ret, "risk": risk, "penalty": pen, "weight_sum": float(weights.sum())}

        if not np.isfinite(risk) or risk <= 0.0:
            # Zero risk is treated as infinite risk: worst possible fitness.
            return FitnessValue(-np.inf, np.inf, metrics, degenerate=True)

        objective = _ratio_term(self.mode, ret, risk) + pen
        if np.isnan(objective):
            raise StatisticsContractError("objective evaluated to NaN")
        return FitnessValue(-objective, objective, metrics)


@dataclass(frozen=True, eq=False)
class SelectionFitness:
    """Binary evaluator: total annualised contribution of the selected assets.

    No feasibility penalty applies; the caller truncates to the top-K assets
    with :func:`top_k_assets`.
    """

    contributions: np.ndarray

    def __post_init__(self) -> None:
        contributions = np.array(self.contributions, dtype=float, copy=True)
        if contributions.ndim != 1 or contributions.size == 0:
            raise ValueError("contributions must be a non-empty 1-dimensional vector")
        if np.isnan(contributions).any():
            raise StatisticsContractError("contributions contain NaN")
        contributions.setflags(write=False)
        object.__setattr__(self, "contributions", contributions)

    def __call__(self, genes: Sequence[bool] | np.ndarray) -> FitnessValue:
        mask = np.asarray(genes)
        if mask.shape != self.contributions.shape:
            raise StatisticsContractError(
                f"expected {self.contributions.size} genes, got shape {mask.shape}"
            )
        mask = mask.astype(bool)
        total = float(self.contributions[mask].sum())
        metrics = {"selected": int(mask.sum()), "contribution": total}
        return FitnessValue(total, -total, metrics)


def annualised_contributions(
    weights: Sequence[float] | np.ndarray,
    mean: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """Element-wise ``252 * w_i * mean_i``.

    When the weight vector length differs from the universe it is recycled
    cyclically to the universe length.
    """

    weights_arr = np.asarray(weights, dtype=float)
    mean_arr = np.asarray(mean, dtype=float)
    if weights_arr.ndim != 1 or mean_arr.ndim != 1 or weights_arr.size == 0:
        raise ValueError("weights and mean must be non-empty 1-dimensional vectors")
    if weights_arr.size != mean_arr.size:
        logger.warning(
            "Recycling %d weights over %d assets", weights_arr.size, mean_arr.size
        )
        weights_arr = np.resize(weights_arr, mean_arr.size)
    return TRADING_DAYS_IN_YEAR * weights_arr * mean_arr


def top_k_assets(
    mask: Sequence[bool] | np.ndarray,
    contributions: Sequence[float] | np.ndarray,
    k: int,
    universe: Sequence[str] | None = None,
) -> list:
    """Keep the ``k`` selected genes with the largest contribution magnitude.

    Returns asset names when ``universe`` is given, otherwise indices. Ties
    keep the lower index first.
    """

    if k <= 0:
        raise ValueError("k must be positive")
    mask_arr = np.asarray(mask).astype(bool)
    contrib = np.asarray(contributions, dtype=float)
    if mask_arr.shape != contrib.shape:
        raise ValueError("mask and contributions must have the same length")
    selected = np.flatnonzero(mask_arr)
    order = selected[np.argsort(-np.abs(contrib[selected]), kind="stable")]
    chosen = [int(idx) for idx in order[:k]]
    if universe is None:
        return chosen
    if len(universe) != mask_arr.size:
        raise ValueError("universe length must match mask length")
    return [universe[idx] for idx in chosen]
