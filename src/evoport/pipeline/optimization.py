"""Pipeline step: weight optimisation with the real-valued GA.

Wraps the GA engine for the common case of optimising one snapshot under
one objective, and packages the winner as a pandas-friendly result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from evoport.config.constants import COLUMN_ASSET, COLUMN_WEIGHT
from evoport.config.schemas import GAConfig
from evoport.data.statistics import StatisticsSnapshot
from evoport.evaluation.report import PortfolioMetrics, portfolio_metrics
from evoport.optimization.ga.fitness import ObjectiveMode, WeightFitness
from evoport.optimization.ga.genetic import GeneticRun, run_genetic_algorithm
from evoport.optimization.ga.population import space_from_config
from evoport.utils.seed import register_seed_logging, rng_factory

__all__ = ["WeightOptimizationResult", "run_weight_optimization"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class WeightOptimizationResult:
    objective_mode: ObjectiveMode
    weights: pd.Series
    fitness: float
    objective: float
    metrics: PortfolioMetrics
    run: GeneticRun = field(repr=False)

    @property
    def history(self) -> pd.DataFrame:
        return self.run.history_frame()

    def weights_frame(self) -> pd.DataFrame:
        return pd.DataFrame({COLUMN_ASSET: self.weights.index, COLUMN_WEIGHT: self.weights.values})

    def to_dict(self) -> dict[str, Any]:
        return {
            "objective_mode": self.objective_mode.value,
            "fitness": float(self.fitness),
            "objective": float(self.objective),
            "weights": {asset: float(w) for asset, w in self.weights.items()},
            "metrics": self.metrics.to_dict(),
            "generations": self.run.generations_run,
            "converged": self.run.converged,
        }


def run_weight_optimization(
    snapshot: StatisticsSnapshot,
    ga_config: GAConfig,
    objective: ObjectiveMode | str = ObjectiveMode.SHARPE,
    *,
    rng: np.random.Generator | None = None,
) -> WeightOptimizationResult:
    """Evolve portfolio weights for ``snapshot`` under ``objective``."""

    if ga_config.encoding != "real":
        raise ValueError("weight optimisation requires ga.encoding 'real'")
    mode = ObjectiveMode.parse(objective)
    if ga_config.seed is not None:
        register_seed_logging(logger, ga_config.seed)
    rng = rng or rng_factory(ga_config.seed)

    logger.info(
        "Optimising %d weights (objective=%s, population=%d, generations=%d)",
        snapshot.size,
        mode.value,
        ga_config.population_size,
        ga_config.generations,
    )
    space = space_from_config(ga_config, snapshot.size)
    run = run_genetic_algorithm(WeightFitness(snapshot, mode), space, ga_config, rng)

    weights = pd.Series(
        np.asarray(run.best_candidate.genes, dtype=float),
        index=list(snapshot.universe),
        name=COLUMN_WEIGHT,
    )
    metrics = portfolio_metrics(weights, snapshot)
    if run.best_result.degenerate:
        logger.warning("Best candidate has non-positive risk; every evaluation was degenerate")
    logger.info(
        "Best portfolio: return=%.4f risk=%.4f sharpe=%.4f sum=%.4f",
        metrics.annual_return,
        metrics.annual_risk,
        metrics.sharpe,
        metrics.weight_sum,
    )
    return WeightOptimizationResult(
        objective_mode=mode,
        weights=weights,
        fitness=run.best_result.fitness,
        objective=run.best_result.objective,
        metrics=metrics,
        run=run,
    )
