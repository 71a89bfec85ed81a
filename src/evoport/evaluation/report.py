"""Portfolio reporting: metrics, baselines and objective comparison.

Todas as métricas são recalculadas a partir de um :class:`StatisticsSnapshot`
(média e covariância diárias), o que permite avaliar os mesmos pesos em
janelas diferentes (in-sample vs. out-of-sample) sem refazer a otimização.

Componentes
-----------
- ``portfolio_metrics`` retorno anualizado, risco anualizado e Sharpe.
- ``equal_weight_portfolio`` / ``random_portfolios`` baselines ingênuos.
- ``baseline_table`` consolida portfólio otimizado vs. baselines.
- ``out_of_sample_table`` mesmo vetor de pesos avaliado em várias janelas.
- ``compare_objectives`` roda o GA para cada ``ObjectiveMode`` no mesmo
  snapshot e tabula os resultados.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from evoport.config.constants import DEFAULT_RISK_FREE_RATE
from evoport.config.schemas import GAConfig
from evoport.data.statistics import StatisticsSnapshot
from evoport.optimization.ga.fitness import ObjectiveMode, WeightFitness, portfolio_return, portfolio_risk
from evoport.optimization.ga.genetic import run_genetic_algorithm
from evoport.optimization.ga.population import space_from_config

__all__ = [
    "PortfolioMetrics",
    "portfolio_metrics",
    "equal_weight_portfolio",
    "random_portfolios",
    "random_portfolio_metrics",
    "baseline_table",
    "out_of_sample_table",
    "compare_objectives",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioMetrics:
    annual_return: float
    annual_risk: float
    sharpe: float
    weight_sum: float

    def to_dict(self) -> dict[str, float]:
        return {key: float(value) for key, value in asdict(self).items()}


def _weights_vector(
    weights: pd.Series | Sequence[float] | np.ndarray, universe: Sequence[str]
) -> np.ndarray:
    if isinstance(weights, pd.Series):
        missing = [asset for asset in universe if asset not in weights.index]
        if missing:
            raise ValueError(f"weights missing assets: {missing}")
        return weights.reindex(list(universe)).to_numpy(dtype=float)
    vector = np.asarray(weights, dtype=float)
    if vector.shape != (len(universe),):
        raise ValueError(
            f"weights have shape {vector.shape}, expected ({len(universe)},)"
        )
    return vector


def portfolio_metrics(
    weights: pd.Series | Sequence[float] | np.ndarray,
    snapshot: StatisticsSnapshot,
    *,
    risk_free: float = DEFAULT_RISK_FREE_RATE,
) -> PortfolioMetrics:
    """Annualised return, risk and Sharpe of ``weights`` under ``snapshot``.

    Sharpe is ``NaN`` when the portfolio has zero risk.
    """

    vector = _weights_vector(weights, snapshot.universe)
    ret = portfolio_return(vector, snapshot.mean)
    risk = portfolio_risk(vector, snapshot.covariance)
    sharpe = (ret - risk_free) / risk if risk > 0 else float("nan")
    return PortfolioMetrics(
        annual_return=ret,
        annual_risk=risk,
        sharpe=float(sharpe),
        weight_sum=float(vector.sum()),
    )


def equal_weight_portfolio(universe: Sequence[str]) -> pd.Series:
    if not universe:
        raise ValueError("universe must not be empty")
    return pd.Series(1.0 / len(universe), index=list(universe), name="equal_weight")


def random_portfolios(
    n: int, universe: Sequence[str], rng: np.random.Generator
) -> pd.DataFrame:
    """Draw ``n`` long-only portfolios uniformly from the simplex (Dirichlet(1))."""

    if n < 0:
        raise ValueError("n must be non-negative")
    if not universe:
        raise ValueError("universe must not be empty")
    draws = rng.dirichlet(np.ones(len(universe)), size=n)
    return pd.DataFrame(draws, columns=list(universe))


def random_portfolio_metrics(
    portfolios: pd.DataFrame, snapshot: StatisticsSnapshot
) -> pd.DataFrame:
    rows = [portfolio_metrics(row.to_numpy(), snapshot).to_dict() for _, row in portfolios.iterrows()]
    return pd.DataFrame(rows, index=portfolios.index)


def baseline_table(
    weights: pd.Series,
    snapshot: StatisticsSnapshot,
    *,
    random_weights: pd.DataFrame | None = None,
    label: str = "ga",
) -> pd.DataFrame:
    """Compare the optimised portfolio with equal-weight and random baselines.

    Rows: ``label``, ``equal_weight`` and, when ``random_weights`` is given,
    ``random_mean`` / ``random_best`` (highest Sharpe among the draws). The
    ``beats_random`` column holds the fraction of random portfolios whose
    Sharpe is strictly below the row's Sharpe.
    """

    rows: dict[str, dict[str, float]] = {
        label: portfolio_metrics(weights, snapshot).to_dict(),
        "equal_weight": portfolio_metrics(
            equal_weight_portfolio(snapshot.universe), snapshot
        ).to_dict(),
    }
    random_sharpe = None
    if random_weights is not None and not random_weights.empty:
        random_table = random_portfolio_metrics(random_weights, snapshot)
        rows["random_mean"] = random_table.mean().to_dict()
        rows["random_best"] = random_table.loc[random_table["sharpe"].idxmax()].to_dict()
        random_sharpe = random_table["sharpe"].to_numpy(dtype=float)

    table = pd.DataFrame.from_dict(rows, orient="index")
    if random_sharpe is not None:
        table["beats_random"] = [
            float(np.mean(random_sharpe < sharpe)) if np.isfinite(sharpe) else float("nan")
            for sharpe in table["sharpe"]
        ]
    return table


def out_of_sample_table(
    weights: pd.Series, snapshots: Mapping[str, StatisticsSnapshot]
) -> pd.DataFrame:
    """Evaluate the same weights over several windows (one row per window)."""

    rows = {}
    for name, snapshot in snapshots.items():
        metrics = portfolio_metrics(weights, snapshot).to_dict()
        metrics["observations"] = snapshot.n_observations
        rows[name] = metrics
    return pd.DataFrame.from_dict(rows, orient="index")


def compare_objectives(
    snapshot: StatisticsSnapshot,
    ga_config: GAConfig,
    modes: Iterable[ObjectiveMode | str],
    *,
    evaluation_snapshot: StatisticsSnapshot | None = None,
) -> pd.DataFrame:
    """Optimise ``snapshot`` once per objective and tabulate the winners.

    Each run uses the same GA configuration (and seed). Metrics are computed
    on ``evaluation_snapshot`` when given (e.g. the test window), otherwise on
    ``snapshot``. Asset weights follow the metric columns.
    """

    target = evaluation_snapshot or snapshot
    space = space_from_config(ga_config, snapshot.size)
    rows = {}
    for raw_mode in modes:
        mode = ObjectiveMode.parse(raw_mode)
        logger.info("Comparing objective '%s'", mode.value)
        run = run_genetic_algorithm(WeightFitness(snapshot, mode), space, ga_config)
        weights = pd.Series(run.best_candidate.genes, index=list(snapshot.universe))
        row = {
            "fitness": run.best_result.fitness,
            "objective": run.best_result.objective,
            **portfolio_metrics(weights, target).to_dict(),
        }
        row.update(weights.to_dict())
        rows[mode.value] = row
    return pd.DataFrame.from_dict(rows, orient="index")
