from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from evoport.data import statistics
from evoport.data.statistics import StatisticsContractError, StatisticsSnapshot


def test_snapshot_from_returns_matches_pandas(synthetic_returns: pd.DataFrame) -> None:
    snap = statistics.snapshot_from_returns(synthetic_returns, source="unit")
    assert snap.universe == tuple(synthetic_returns.columns)
    np.testing.assert_allclose(snap.mean, synthetic_returns.mean().to_numpy())
    np.testing.assert_allclose(snap.covariance, synthetic_returns.cov().to_numpy())
    assert snap.n_observations == len(synthetic_returns)
    assert snap.start == synthetic_returns.index[0]
    assert snap.metadata == {"source": "unit"}


def test_snapshot_arrays_are_read_only(snapshot: StatisticsSnapshot) -> None:
    with pytest.raises(ValueError):
        snapshot.mean[0] = 1.0
    with pytest.raises(ValueError):
        snapshot.covariance[0, 0] = 1.0


def test_rows_with_gaps_are_dropped(synthetic_returns: pd.DataFrame) -> None:
    returns = synthetic_returns.copy()
    returns.iloc[5, 2] = np.nan
    returns.iloc[10, 0] = np.nan
    snap = statistics.snapshot_from_returns(returns)
    assert snap.n_observations == len(returns) - 2
    assert np.isfinite(snap.covariance).all()


def test_universe_order_is_respected(synthetic_returns: pd.DataFrame) -> None:
    snap = statistics.snapshot_from_returns(synthetic_returns, universe=["CCC", "AAA"])
    assert snap.universe == ("CCC", "AAA")
    assert snap.mean[0] == pytest.approx(synthetic_returns["CCC"].mean())
    with pytest.raises(StatisticsContractError, match="missing"):
        statistics.snapshot_from_returns(synthetic_returns, universe=["AAA", "ZZZ"])


def test_too_few_observations_raise(synthetic_returns: pd.DataFrame) -> None:
    with pytest.raises(StatisticsContractError, match="at least"):
        statistics.snapshot_from_returns(synthetic_returns.iloc[:1])


def test_snapshot_validates_shapes_and_nans() -> None:
    with pytest.raises(StatisticsContractError):
        StatisticsSnapshot(universe=("A", "B"), mean=np.zeros(3), covariance=np.eye(2))
    with pytest.raises(StatisticsContractError):
        StatisticsSnapshot(universe=("A", "B"), mean=np.zeros(2), covariance=np.eye(3))
    with pytest.raises(StatisticsContractError):
        StatisticsSnapshot(universe=("A", "B"), mean=np.array([0.0, np.nan]), covariance=np.eye(2))
    with pytest.raises(StatisticsContractError):
        StatisticsSnapshot(
            universe=("A", "B"), mean=np.zeros(2), covariance=np.array([[1.0, 0.5], [0.2, 1.0]])
        )
    with pytest.raises(StatisticsContractError):
        StatisticsSnapshot(universe=("A", "A"), mean=np.zeros(2), covariance=np.eye(2))


def test_contract_error_is_a_value_error() -> None:
    assert issubclass(StatisticsContractError, ValueError)


def test_subset_reorders_statistics(snapshot: StatisticsSnapshot) -> None:
    sub = snapshot.subset(["EEE", "BBB"])
    assert sub.universe == ("EEE", "BBB")
    assert sub.covariance[0, 1] == pytest.approx(snapshot.covariance[4, 1])
    with pytest.raises(KeyError):
        snapshot.subset(["XYZ"])


def test_select_window_is_inclusive(synthetic_returns: pd.DataFrame) -> None:
    window = statistics.select_window(synthetic_returns, "2020-01-06", "2020-01-10")
    assert window.index[0] == pd.Timestamp("2020-01-06")
    assert window.index[-1] == pd.Timestamp("2020-01-10")
    assert len(window) == 5


def test_build_snapshot_from_file(tmp_path, synthetic_returns: pd.DataFrame) -> None:
    path = tmp_path / "returns.csv"
    synthetic_returns.to_csv(path)
    snap = statistics.build_snapshot(
        tickers=["AAA", "BBB"], start="2020-03-01", end="2020-06-30", returns_path=path
    )
    assert snap.universe == ("AAA", "BBB")
    assert snap.start >= pd.Timestamp("2020-03-01")
    assert snap.end <= pd.Timestamp("2020-06-30")


def test_build_snapshot_requires_a_source() -> None:
    with pytest.raises(ValueError, match="tickers"):
        statistics.build_snapshot()
