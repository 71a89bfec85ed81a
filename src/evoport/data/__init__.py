"""Statistics provider: prices, returns and mean/covariance snapshots."""

from .statistics import (
    StatisticsContractError,
    StatisticsSnapshot,
    build_snapshot,
    load_returns,
    select_window,
    snapshot_from_returns,
)

__all__ = [
    "StatisticsContractError",
    "StatisticsSnapshot",
    "build_snapshot",
    "load_returns",
    "select_window",
    "snapshot_from_returns",
]
