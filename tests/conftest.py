from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import logging

import numpy as np
import pandas as pd
import pytest

from evoport.config.settings import reset_settings_cache
from evoport.data.statistics import StatisticsSnapshot, snapshot_from_returns

TICKERS = ["AAA", "BBB", "CCC", "DDD", "EEE"]


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point every Settings directory at a temporary folder."""
    for name in ("DATA_DIR", "REPORTS_DIR", "LOGS_DIR", "CONFIGS_DIR"):
        monkeypatch.setenv(f"EVOPORT_{name}", str(tmp_path / name.lower()))
    monkeypatch.delenv("EVOPORT_PROJECT_ROOT", raising=False)
    reset_settings_cache()
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            handler.close()
            root.removeHandler(handler)
    reset_settings_cache()


@pytest.fixture
def synthetic_returns() -> pd.DataFrame:
    rng = np.random.default_rng(0)
    index = pd.bdate_range("2020-01-01", periods=500)
    means = np.array([0.0008, 0.0005, 0.0003, 0.0001, -0.0002])
    vols = np.array([0.020, 0.015, 0.010, 0.012, 0.018])
    data = rng.normal(means, vols, size=(len(index), len(means)))
    return pd.DataFrame(data, index=index, columns=TICKERS)


@pytest.fixture
def snapshot(synthetic_returns: pd.DataFrame) -> StatisticsSnapshot:
    return snapshot_from_returns(synthetic_returns)


@pytest.fixture
def three_asset_snapshot() -> StatisticsSnapshot:
    """Three uncorrelated assets with distinct return/risk profiles."""
    mean = np.array([0.0010, 0.0004, 0.0001])
    vols = np.array([0.020, 0.010, 0.015])
    return StatisticsSnapshot(
        universe=("HIGH", "MID", "LOW"),
        mean=mean,
        covariance=np.diag(vols**2),
        n_observations=250,
    )
