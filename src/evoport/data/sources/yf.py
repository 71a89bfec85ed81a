"""Fonte de dados: yfinance.

Baixa séries de preços ajustados via API pública do Yahoo Finance, na ordem
exata dos tickers pedidos (a ordem define a codificação dos genes).
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Iterable, Optional

import pandas as pd
import yfinance as yf

__all__ = ["download_prices"]

logger = logging.getLogger(__name__)


def download_prices(
    tickers: Iterable[str],
    start: Optional[str | datetime] = None,
    end: Optional[str | datetime] = None,
    progress: bool = False,
    sleep_seconds: float = 0.25,
) -> pd.DataFrame:
    tickers_list = list(dict.fromkeys(t.strip().upper() for t in tickers))
    if not tickers_list:
        raise ValueError("Lista de tickers vazia.")

    logger.info(
        "Baixando preços (yfinance): %s (start=%s, end=%s)",
        ",".join(tickers_list), start, end,
    )
    # Throttle leve para evitar rate limit/ban de IP em ambientes CI
    if sleep_seconds and sleep_seconds > 0:
        time.sleep(sleep_seconds)

    data = yf.download(
        tickers=tickers_list,
        start=start,
        end=end,
        auto_adjust=False,
        progress=progress,
        group_by="ticker",
        threads=True,
    )
    if data is None or data.empty:
        raise ValueError(f"yfinance não retornou dados para {tickers_list}")

    if isinstance(data.columns, pd.MultiIndex):
        fields = set(data.columns.get_level_values(1))
        field = "Adj Close" if "Adj Close" in fields else "Close"
        if field == "Close":
            logger.warning("Adj Close ausente; usando Close.")
        adj = data.xs(field, axis=1, level=1)
    else:
        col = "Adj Close" if "Adj Close" in data.columns else "Close"
        adj = data[[col]].copy()
        adj.columns = tickers_list[:1]

    missing = [t for t in tickers_list if t not in adj.columns]
    if missing:
        logger.warning("Tickers sem dados no yfinance: %s", ",".join(missing))
    adj = adj.reindex(columns=[c for c in tickers_list if c in adj.columns])
    return adj.sort_index().dropna(how="all")
