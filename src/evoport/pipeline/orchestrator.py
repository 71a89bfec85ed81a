"""Full pipeline orchestrator.

This module coordinates the execution of all pipeline stages:
1. Data acquisition (download or returns file) and statistics snapshots
2. Weight optimisation with the real-valued GA
3. Evaluation: out-of-sample metrics, random/equal-weight baselines and
   (optional) objective comparison
4. Asset selection with the binary GA (optional)

The orchestrator validates write permissions before starting, persists the
artefacts (JSON, CSV, PNG) in ``output_dir`` and returns a structured result
dictionary suitable for logging.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt
import pandas as pd

from evoport.config import RunConfig, Settings, load_config
from evoport.config.schemas import DataWindow, GAConfig, UniverseConfig
from evoport.data.statistics import StatisticsSnapshot, build_snapshot, load_returns
from evoport.evaluation.plots import plot_fitness_trajectory, plot_risk_return, plot_weights
from evoport.evaluation.report import (
    baseline_table,
    compare_objectives,
    out_of_sample_table,
    random_portfolio_metrics,
    random_portfolios,
)
from evoport.pipeline.asset_selection import run_asset_selection
from evoport.pipeline.optimization import run_weight_optimization
from evoport.utils.data_loading import write_dataframe
from evoport.utils.seed import hash_seed_from_config, rng_factory

__all__ = [
    "PipelineError",
    "apply_default_seed",
    "validate_write_permissions",
    "run_windows",
    "returns_cache_path",
    "load_universe_returns",
    "build_window_snapshot",
    "run_full_pipeline",
]

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Raised when pipeline execution fails."""


def validate_write_permissions(output_dir: Path) -> None:
    """Create ``output_dir`` and check that a file can be written there.

    Raises
    ------
    PipelineError
        If the directory cannot be created or written to.
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PipelineError(f"Cannot create directory {output_dir}: {e}") from e

    test_file = output_dir / ".write_test"
    try:
        test_file.touch()
        test_file.unlink()
    except OSError as e:
        raise PipelineError(f"No write permission to {output_dir}: {e}") from e


def apply_default_seed(ga_config: GAConfig, settings: Settings) -> GAConfig:
    """Fill a missing GA seed with ``settings.random_seed``."""
    if ga_config.seed is not None:
        return ga_config
    return ga_config.model_copy(update={"seed": settings.random_seed})


def _resolve_path(path: str | Path, settings: Settings) -> Path:
    candidate = Path(path)
    if candidate.is_absolute() or candidate.exists():
        return candidate
    return settings.project_root / candidate


def _span(windows: list[DataWindow]) -> tuple[str | None, str | None]:
    starts = [w.start for w in windows if w.start]
    ends = [w.end for w in windows if w.end]
    start = min(starts) if starts and len(starts) == len(windows) else None
    end = max(ends) if ends and len(ends) == len(windows) else None
    return start, end


def run_windows(config: RunConfig) -> list[DataWindow]:
    """Train window plus the test window when one is configured."""
    return [config.train] + ([config.test] if config.test is not None else [])


def returns_cache_path(
    universe: UniverseConfig, windows: list[DataWindow], settings: Settings
) -> Path:
    """Cache file for ``universe`` over the span of ``windows``.

    The file name carries a digest of the tickers and of the requested span.
    """
    start, end = _span(windows)
    digest = hash_seed_from_config({"tickers": list(universe.tickers), "start": start, "end": end})
    return settings.data_dir / "returns" / f"{universe.name}-{digest:08x}.csv"


def load_universe_returns(
    universe: UniverseConfig | None,
    returns_path: str | None,
    windows: list[DataWindow],
    *,
    settings: Settings,
    skip_download: bool = False,
) -> pd.DataFrame:
    """Daily returns covering every window in ``windows``.

    A ``returns_path`` wins over the universe. Downloaded returns are cached at
    :func:`returns_cache_path`; ``skip_download`` reuses that cache.
    """
    if returns_path is not None:
        returns = load_returns(_resolve_path(returns_path, settings))
        if universe is not None:
            missing = [t for t in universe.tickers if t not in returns.columns]
            if missing:
                raise ValueError(f"returns file missing tickers: {missing}")
            returns = returns.loc[:, universe.tickers]
        return returns

    if universe is None:
        raise ValueError("either a universe or a returns_path is required")
    cache = returns_cache_path(universe, windows, settings)
    if skip_download:
        if not cache.exists():
            raise FileNotFoundError(
                f"No cached returns for universe '{universe.name}' over this span: {cache}"
            )
        logger.info("Reusing cached returns from %s", cache)
        returns = load_returns(cache)
        missing = [t for t in universe.tickers if t not in returns.columns]
        if missing:
            raise ValueError(f"cached returns missing tickers: {missing}")
        return returns.loc[:, universe.tickers]

    from evoport.data.processing.returns import calculate_returns
    from evoport.data.sources.yf import download_prices

    start, end = _span(windows)
    prices = download_prices(universe.tickers, start=start, end=end)
    returns = calculate_returns(prices)
    write_dataframe(returns, cache)
    logger.info("Cached %d return rows at %s", len(returns), cache)
    return returns


def build_window_snapshot(
    returns: pd.DataFrame, universe: UniverseConfig | None, window: DataWindow, label: str
) -> StatisticsSnapshot:
    snapshot = build_snapshot(
        tickers=universe.tickers if universe is not None else None,
        start=window.start,
        end=window.end,
        returns=returns,
    )
    logger.info(
        "%s window: %d assets, %d observations (%s to %s)",
        label,
        snapshot.size,
        snapshot.n_observations,
        snapshot.start,
        snapshot.end,
    )
    return snapshot


def _window_summary(snapshot: StatisticsSnapshot) -> dict[str, Any]:
    return {
        "n_observations": snapshot.n_observations,
        "start": None if snapshot.start is None else snapshot.start.date().isoformat(),
        "end": None if snapshot.end is None else snapshot.end.date().isoformat(),
    }


def _save_figure(ax: plt.Axes, path: Path) -> Path:
    fig = ax.figure
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    return path


def run_full_pipeline(
    config_path: str | Path,
    *,
    settings: Settings | None = None,
    skip_download: bool = False,
    output_dir: str | Path | None = None,
) -> dict[str, Any]:
    """Execute the complete GA portfolio pipeline described by ``config_path``.

    Args:
        config_path: Path to a YAML file validated as :class:`RunConfig`
        settings: Settings object (uses ``Settings.from_env()`` if None)
        skip_download: If True, reuse cached returns instead of downloading
        output_dir: Directory for artefacts (defaults to ``settings.reports_dir``)

    Returns:
        dict containing ``status``, ``metadata``, ``stages``, ``artifacts``
        and ``duration_seconds``.

    Raises:
        PipelineError: If any stage fails.
    """
    settings = settings or Settings.from_env()
    output_path = Path(output_dir) if output_dir is not None else settings.reports_dir
    config: RunConfig = load_config(config_path, RunConfig, project_root=settings.project_root)
    config = config.model_copy(update={"ga": apply_default_seed(config.ga, settings)})

    logger.info("Validating write permissions to %s", output_path)
    validate_write_permissions(output_path)

    start_time = time.perf_counter()
    results: dict[str, Any] = {
        "metadata": {
            "timestamp": datetime.now().isoformat(),
            "config_path": str(config_path),
            "objective": config.objective,
            "seed": config.ga.seed,
        },
        "stages": {},
        "artifacts": {},
    }
    artifacts: dict[str, str] = results["artifacts"]

    try:
        logger.info("Stage 1/4: Data and statistics snapshots")
        windows = run_windows(config)
        returns = load_universe_returns(
            config.universe,
            config.returns_path,
            windows,
            settings=settings,
            skip_download=skip_download,
        )
        train = build_window_snapshot(returns, config.universe, config.train, "Train")
        snapshots = {"train": train}
        if config.test is not None:
            snapshots["test"] = build_window_snapshot(returns, config.universe, config.test, "Test")
        results["stages"]["data"] = {
            "n_assets": train.size,
            "universe": list(train.universe),
            "windows": {name: _window_summary(snap) for name, snap in snapshots.items()},
        }

        logger.info("Stage 2/4: Weight optimisation")
        optimisation = run_weight_optimization(train, config.ga, config.objective)
        results["stages"]["optimization"] = optimisation.to_dict()
        artifacts["weights"] = str(write_dataframe(optimisation.weights, output_path / "weights.csv"))
        artifacts["history"] = str(write_dataframe(optimisation.history, output_path / "history.csv"))
        artifacts["fitness_plot"] = str(
            _save_figure(plot_fitness_trajectory(optimisation.run), output_path / "fitness.png")
        )
        artifacts["weights_plot"] = str(
            _save_figure(plot_weights(optimisation.weights), output_path / "weights.png")
        )

        logger.info("Stage 3/4: Evaluation and baselines")
        evaluation_snapshot = snapshots.get("test", train)
        oos = out_of_sample_table(optimisation.weights, snapshots)
        rng = rng_factory(config.ga.seed)
        randoms = random_portfolios(config.baselines.random_portfolios, train.universe, rng)
        baselines = baseline_table(optimisation.weights, evaluation_snapshot, random_weights=randoms)
        artifacts["windows"] = str(write_dataframe(oos, output_path / "windows.csv"))
        artifacts["baselines"] = str(write_dataframe(baselines, output_path / "baselines.csv"))
        artifacts["risk_return_plot"] = str(
            _save_figure(
                plot_risk_return(
                    baselines.drop(index=["random_mean", "random_best"], errors="ignore"),
                    random_metrics=random_portfolio_metrics(randoms, evaluation_snapshot)
                    if not randoms.empty
                    else None,
                ),
                output_path / "risk_return.png",
            )
        )
        evaluation: dict[str, Any] = {
            "evaluated_on": "test" if "test" in snapshots else "train",
            "windows": oos.to_dict(orient="index"),
            "baselines": baselines.to_dict(orient="index"),
        }
        if config.baselines.compare_objectives:
            comparison = compare_objectives(
                train,
                config.ga,
                config.baselines.compare_objectives,
                evaluation_snapshot=evaluation_snapshot,
            )
            artifacts["objectives"] = str(write_dataframe(comparison, output_path / "objectives.csv"))
            evaluation["objectives"] = comparison.to_dict(orient="index")
        results["stages"]["evaluation"] = evaluation

        selection_cfg = config.asset_selection
        if selection_cfg is not None:
            logger.info("Stage 4/4: Asset selection")
            selection_returns = load_universe_returns(
                selection_cfg.universe,
                selection_cfg.returns_path,
                [selection_cfg.window],
                settings=settings,
                skip_download=skip_download,
            )
            selection_snapshot = build_window_snapshot(
                selection_returns, selection_cfg.universe, selection_cfg.window, "Selection"
            )
            selection = run_asset_selection(
                optimisation.weights,
                selection_snapshot,
                apply_default_seed(selection_cfg.ga, settings),
                selection_cfg.top_k,
            )
            table = pd.DataFrame(
                {"contribution": selection.contributions, "selected": selection.mask}
            )
            artifacts["selection"] = str(write_dataframe(table, output_path / "selection.csv"))
            results["stages"]["asset_selection"] = selection.to_dict()
        else:
            logger.info("Stage 4/4: Asset selection (skipped)")
            results["stages"]["asset_selection"] = {"status": "skipped"}

        results["status"] = "completed"
        results["duration_seconds"] = time.perf_counter() - start_time
        summary_path = output_path / "results.json"
        summary_path.write_text(json.dumps(results, indent=2, default=str), encoding="utf-8")
        artifacts["results"] = str(summary_path)
        logger.info("Pipeline completed successfully in %.1f seconds", results["duration_seconds"])

    except Exception as e:
        results["status"] = "failed"
        results["error"] = str(e)
        results["duration_seconds"] = time.perf_counter() - start_time
        logger.error(
            "Pipeline failed after %.1f seconds: %s",
            results["duration_seconds"],
            e,
            exc_info=True,
        )
        raise PipelineError(f"Pipeline execution failed: {e}") from e

    return results
