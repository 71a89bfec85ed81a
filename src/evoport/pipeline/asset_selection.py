"""Pipeline step: binary-encoded asset selection.

Weights optimised on one universe are applied element-wise to the per-asset
mean returns of a larger universe; the binary GA then searches the subset
with the largest total contribution and the result is truncated to the
``top_k`` assets by contribution magnitude.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
import pandas as pd

from evoport.config.schemas import GAConfig
from evoport.data.statistics import StatisticsSnapshot
from evoport.evaluation.report import PortfolioMetrics, equal_weight_portfolio, portfolio_metrics
from evoport.optimization.ga.fitness import SelectionFitness, annualised_contributions, top_k_assets
from evoport.optimization.ga.genetic import GeneticRun, run_genetic_algorithm
from evoport.optimization.ga.population import space_from_config
from evoport.utils.seed import rng_factory

__all__ = ["AssetSelectionResult", "run_asset_selection"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class AssetSelectionResult:
    mask: pd.Series
    selected: list[str]
    contributions: pd.Series
    fitness: float
    metrics: PortfolioMetrics | None
    run: GeneticRun = field(repr=False)

    @property
    def cardinality(self) -> int:
        return int(self.mask.sum())

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected": list(self.selected),
            "mask_cardinality": self.cardinality,
            "fitness": float(self.fitness),
            "selected_contribution": float(self.contributions[self.selected].sum()),
            "metrics": None if self.metrics is None else self.metrics.to_dict(),
            "generations": self.run.generations_run,
            "converged": self.run.converged,
        }


def run_asset_selection(
    weights: pd.Series | Sequence[float] | np.ndarray,
    snapshot: StatisticsSnapshot,
    ga_config: GAConfig,
    top_k: int = 10,
    *,
    rng: np.random.Generator | None = None,
) -> AssetSelectionResult:
    """Select up to ``top_k`` assets of ``snapshot`` with the binary GA."""

    if ga_config.encoding != "binary":
        raise ValueError("asset selection requires ga.encoding 'binary'")
    vector = weights.to_numpy(dtype=float) if isinstance(weights, pd.Series) else weights
    contributions = annualised_contributions(vector, snapshot.mean)

    logger.info(
        "Selecting up to %d of %d assets (population=%d, generations=%d)",
        top_k,
        snapshot.size,
        ga_config.population_size,
        ga_config.generations,
    )
    space = space_from_config(ga_config, snapshot.size)
    run = run_genetic_algorithm(
        SelectionFitness(contributions), space, ga_config, rng or rng_factory(ga_config.seed)
    )

    universe = list(snapshot.universe)
    mask = np.asarray(run.best_candidate.genes, dtype=bool)
    selected = top_k_assets(mask, contributions, top_k, universe) if mask.any() else []
    if mask.sum() > top_k:
        logger.info("Truncated %d selected assets to top %d", int(mask.sum()), top_k)

    metrics = None
    if selected:
        subset = snapshot.subset(selected)
        metrics = portfolio_metrics(equal_weight_portfolio(subset.universe), subset)
    else:
        logger.warning("Asset selection returned an empty mask")

    return AssetSelectionResult(
        mask=pd.Series(mask, index=universe, name="selected"),
        selected=selected,
        contributions=pd.Series(contributions, index=universe, name="contribution"),
        fitness=run.best_result.fitness,
        metrics=metrics,
        run=run,
    )
