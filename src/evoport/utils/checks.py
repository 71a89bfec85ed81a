"""Friendly input validation helpers.

Funções utilitárias que inspecionam dados de entrada (DataFrames, numpy
arrays) e levantam exceções descritivas antes de alimentar o otimizador.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

__all__ = ["assert_no_nans", "assert_shape", "assert_symmetric", "assert_psd"]


def _with_context(msg: str, context: str) -> str:
    return f"[{context}] {msg}" if context else msg


def assert_no_nans(obj, context: str = "") -> None:
    """Raise ``ValueError`` listing the positions of missing values in ``obj``.

    ``obj`` pode ser DataFrame, Series ou ndarray; ``context`` identifica a
    origem (ex.: nome da função) na mensagem.
    """
    if isinstance(obj, pd.DataFrame):
        if obj.isnull().values.any():
            nan_positions = np.argwhere(obj.isnull().values)
            details = ", ".join(f"(row {r}, col '{obj.columns[c]}')" for r, c in nan_positions)
            raise ValueError(_with_context(f"Input contains NaNs at positions: {details}.", context))
    elif isinstance(obj, pd.Series):
        if obj.isnull().any():
            details = ", ".join(f"index {i}" for i in obj[obj.isnull()].index.tolist())
            raise ValueError(_with_context(f"Input contains NaNs at positions: {details}.", context))
    elif isinstance(obj, np.ndarray):
        if np.isnan(obj).any():
            details = ", ".join(f"index {tuple(idx)}" for idx in np.argwhere(np.isnan(obj)))
            raise ValueError(_with_context(f"Input contains NaNs at positions: {details}.", context))
    else:
        raise TypeError("Input must be a DataFrame, Series or ndarray.")


def assert_shape(obj, expected_shape=None, min_rows=None, min_cols=None, context: str = "") -> None:
    """Check exact (``expected_shape``) or minimum dimensions of ``obj``."""
    if isinstance(obj, (pd.DataFrame, pd.Series, np.ndarray)):
        actual_shape = obj.shape
    else:
        raise TypeError("Input must be a DataFrame, Series or ndarray.")

    if expected_shape is not None and tuple(actual_shape) != tuple(expected_shape):
        raise ValueError(
            _with_context(f"Expected shape {tuple(expected_shape)}, got {actual_shape}.", context)
        )
    if min_rows is not None and actual_shape[0] < min_rows:
        raise ValueError(
            _with_context(f"Expected at least {min_rows} rows, got {actual_shape[0]}.", context)
        )
    if min_cols is not None and (len(actual_shape) < 2 or actual_shape[1] < min_cols):
        got = actual_shape[1] if len(actual_shape) > 1 else 0
        raise ValueError(_with_context(f"Expected at least {min_cols} columns, got {got}.", context))


def assert_symmetric(matrix: np.ndarray, atol: float = 1e-8) -> None:
    """Verifica se a matriz é quadrada e simétrica dentro de ``atol``."""
    if not isinstance(matrix, np.ndarray):
        raise TypeError("Input must be an ndarray.")
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError("Matrix must be square.")
    if not np.allclose(matrix, matrix.T, atol=atol):
        raise ValueError("Matrix is not symmetric within the given tolerance.")


def assert_psd(matrix: np.ndarray, atol: float = 1e-8) -> None:
    """Verifica semidefinitude positiva (autovalores >= -atol)."""
    assert_symmetric(matrix, atol=max(atol, 1e-8))
    eigenvalues = np.linalg.eigvalsh(matrix)
    if np.any(eigenvalues < -atol):
        raise ValueError(
            f"Matrix is not positive semidefinite (min eigenvalue {eigenvalues.min():.3e})."
        )
