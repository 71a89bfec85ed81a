"""Funções de processamento de retornos.

Cálculo de retornos diários simples (padrão) ou logarítmicos.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

__all__ = ["calculate_returns"]


def calculate_returns(prices_df: pd.DataFrame, method: str = "simple") -> pd.DataFrame:
    prices = prices_df.sort_index()
    if method == "log":
        ratio = prices.divide(prices.shift(1))
        ratio = ratio.where(ratio > 0)
        rets = np.log(ratio)
    elif method == "simple":
        rets = prices.pct_change(fill_method=None)
    else:
        raise ValueError(f"unknown returns method '{method}'")
    rets = rets.replace([np.inf, -np.inf], np.nan)
    return rets.iloc[1:].dropna(how="all")
