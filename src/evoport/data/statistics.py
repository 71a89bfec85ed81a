"""Statistics snapshots consumed by the genetic-algorithm core.

A :class:`StatisticsSnapshot` is the immutable pair (mean vector, covariance
matrix) of daily returns over one historical window. It is built once per
run and shared read-only by every fitness evaluation, including concurrent
ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from evoport.utils.checks import assert_no_nans, assert_psd, assert_symmetric
from evoport.utils.data_loading import read_dataframe

__all__ = [
    "StatisticsContractError",
    "StatisticsSnapshot",
    "snapshot_from_returns",
    "load_returns",
    "select_window",
    "build_snapshot",
]

logger = logging.getLogger(__name__)

MIN_OBSERVATIONS = 2


class StatisticsContractError(ValueError):
    """Raised when statistics reaching the core are incomplete (NaN, wrong shape)."""


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class StatisticsSnapshot:
    """Mean-return vector and covariance matrix for an ordered universe."""

    universe: tuple[str, ...]
    mean: np.ndarray
    covariance: np.ndarray
    n_observations: int = 0
    start: pd.Timestamp | None = None
    end: pd.Timestamp | None = None
    metadata: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        universe = tuple(str(asset) for asset in self.universe)
        if not universe:
            raise StatisticsContractError("universe must not be empty")
        if len(set(universe)) != len(universe):
            raise StatisticsContractError("universe contains duplicated assets")

        mean = np.asarray(self.mean, dtype=float)
        covariance = np.asarray(self.covariance, dtype=float)
        size = len(universe)
        if mean.shape != (size,):
            raise StatisticsContractError(
                f"mean vector has shape {mean.shape}, expected ({size},)"
            )
        if covariance.shape != (size, size):
            raise StatisticsContractError(
                f"covariance matrix has shape {covariance.shape}, expected ({size}, {size})"
            )
        try:
            assert_no_nans(mean, context="snapshot.mean")
            assert_no_nans(covariance, context="snapshot.covariance")
            assert_symmetric(covariance)
        except ValueError as exc:
            raise StatisticsContractError(str(exc)) from exc
        if not (np.all(np.isfinite(mean)) and np.all(np.isfinite(covariance))):
            raise StatisticsContractError("statistics must be finite")

        try:
            assert_psd(covariance, atol=1e-10)
        except ValueError as exc:
            # Degenerate but usable: risk may evaluate to zero for some weights.
            logger.warning("Covariance matrix is not PSD: %s", exc)

        object.__setattr__(self, "universe", universe)
        object.__setattr__(self, "mean", _frozen(mean))
        object.__setattr__(self, "covariance", _frozen(covariance))
        object.__setattr__(self, "metadata", dict(self.metadata))

    @property
    def size(self) -> int:
        return len(self.universe)

    def subset(self, assets: Sequence[str]) -> "StatisticsSnapshot":
        """Return the snapshot restricted to ``assets`` (in the given order)."""

        position = {asset: idx for idx, asset in enumerate(self.universe)}
        missing = [asset for asset in assets if asset not in position]
        if missing:
            raise KeyError(f"assets not in snapshot universe: {missing}")
        idx = np.array([position[asset] for asset in assets], dtype=int)
        return StatisticsSnapshot(
            universe=tuple(assets),
            mean=self.mean[idx],
            covariance=self.covariance[np.ix_(idx, idx)],
            n_observations=self.n_observations,
            start=self.start,
            end=self.end,
            metadata=dict(self.metadata),
        )

    def to_dict(self) -> dict:
        return {
            "universe": list(self.universe),
            "mean": self.mean.tolist(),
            "covariance": self.covariance.tolist(),
            "n_observations": self.n_observations,
            "start": None if self.start is None else self.start.isoformat(),
            "end": None if self.end is None else self.end.isoformat(),
        }


def snapshot_from_returns(
    returns: pd.DataFrame,
    universe: Sequence[str] | None = None,
    **metadata,
) -> StatisticsSnapshot:
    """Compute the mean/covariance snapshot of a daily returns frame.

    Rows with any missing observation are dropped first, so mean and
    covariance are computed over the same dates. At least two observations
    must remain.
    """

    if not isinstance(returns, pd.DataFrame):
        raise TypeError("returns must be a pandas DataFrame")
    if universe is not None:
        missing = [asset for asset in universe if asset not in returns.columns]
        if missing:
            raise StatisticsContractError(f"returns missing assets: {missing}")
        returns = returns.loc[:, list(universe)]

    clean = returns.apply(pd.to_numeric, errors="coerce").replace([np.inf, -np.inf], np.nan)
    dropped = len(clean) - len(clean.dropna(how="any"))
    clean = clean.dropna(how="any")
    if dropped:
        logger.info("Dropped %d return rows with gaps", dropped)
    if len(clean) < MIN_OBSERVATIONS:
        raise StatisticsContractError(
            f"at least {MIN_OBSERVATIONS} complete observations required, got {len(clean)}"
        )

    start = pd.Timestamp(clean.index[0]) if isinstance(clean.index, pd.DatetimeIndex) else None
    end = pd.Timestamp(clean.index[-1]) if isinstance(clean.index, pd.DatetimeIndex) else None
    return StatisticsSnapshot(
        universe=tuple(str(col) for col in clean.columns),
        mean=clean.mean().to_numpy(dtype=float),
        covariance=clean.cov().to_numpy(dtype=float),
        n_observations=int(len(clean)),
        start=start,
        end=end,
        metadata=dict(metadata),
    )


def load_returns(path: str | Path) -> pd.DataFrame:
    """Read a returns table (dates in the first column / index)."""

    data = read_dataframe(path)
    if isinstance(data, pd.Series):
        data = data.to_frame()
    if not isinstance(data.index, pd.DatetimeIndex):
        data.index = pd.to_datetime(data.index)
    return data.sort_index().astype(float)


def select_window(
    returns: pd.DataFrame, start: str | None = None, end: str | None = None
) -> pd.DataFrame:
    """Slice ``returns`` to the inclusive ``[start, end]`` window."""

    window = returns.sort_index()
    if start is not None:
        window = window.loc[window.index >= pd.Timestamp(start)]
    if end is not None:
        window = window.loc[window.index <= pd.Timestamp(end)]
    return window


def build_snapshot(
    *,
    tickers: Sequence[str] | None = None,
    start: str | None = None,
    end: str | None = None,
    returns: pd.DataFrame | None = None,
    returns_path: str | Path | None = None,
) -> StatisticsSnapshot:
    """Statistics provider entry point.

    Uses, in order of preference, an in-memory ``returns`` frame, a returns
    file, or prices downloaded from yfinance for ``tickers``.
    """

    if returns is None and returns_path is not None:
        returns = load_returns(returns_path)
    if returns is None:
        if not tickers:
            raise ValueError("tickers are required when no returns are provided")
        from evoport.data.processing.returns import calculate_returns
        from evoport.data.sources.yf import download_prices

        prices = download_prices(tickers, start=start, end=end)
        returns = calculate_returns(prices)
    window = select_window(returns, start, end)
    snapshot = snapshot_from_returns(window, universe=tickers or None)
    logger.info(
        "Built statistics snapshot",
        extra={
            "assets": snapshot.size,
            "observations": snapshot.n_observations,
            "window_start": str(snapshot.start),
            "window_end": str(snapshot.end),
        },
    )
    return snapshot
