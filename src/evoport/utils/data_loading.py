"""Lightweight helpers to load and persist returns tables and weight vectors."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

__all__ = ["read_dataframe", "read_vector", "write_dataframe"]

_PARQUET = {".parquet", ".pq"}
_PICKLE = {".pkl", ".pickle"}


def read_dataframe(path: str | Path) -> pd.DataFrame | pd.Series:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in _PARQUET:
        return pd.read_parquet(path)
    if suffix == ".csv":
        return pd.read_csv(path, index_col=0, parse_dates=True)
    if suffix in _PICKLE:
        return pd.read_pickle(path)
    raise ValueError(f"Unsupported data format for {path}")


def read_vector(path: str | Path) -> pd.Series:
    """Read a single row or single column file as a float ``Series``."""
    obj = read_dataframe(path)
    if isinstance(obj, pd.Series):
        return obj.astype(float)
    if obj.empty:
        raise ValueError(f"Vector file at {path} is empty")
    if obj.shape[1] == 1:
        return obj.iloc[:, 0].astype(float)
    if obj.shape[0] == 1:
        return obj.iloc[0].astype(float)
    raise ValueError("Cannot infer vector from data frame; please provide series or single row.")


def write_dataframe(data: pd.DataFrame | pd.Series, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix in _PARQUET:
        frame = data.to_frame() if isinstance(data, pd.Series) else data
        frame.to_parquet(path)
    elif suffix == ".csv":
        data.to_csv(path)
    elif suffix in _PICKLE:
        data.to_pickle(path)
    else:
        raise ValueError(f"Unsupported data format for {path}")
    return path
