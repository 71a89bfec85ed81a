from __future__ import annotations

import logging

import pandas as pd
import pytest

from evoport.data.sources import yf as yf_source


def _multiindex_frame(tickers: list[str]) -> pd.DataFrame:
    index = pd.bdate_range("2022-01-03", periods=3)
    columns = pd.MultiIndex.from_product([tickers, ["Adj Close", "Close"]])
    data = [[float(i + j) for j in range(len(columns))] for i in range(len(index))]
    return pd.DataFrame(data, index=index, columns=columns)


def test_download_prices_keeps_requested_order(monkeypatch, caplog) -> None:
    calls = {}

    def fake_download(**kwargs):
        calls.update(kwargs)
        return _multiindex_frame(["MSFT", "AAPL"])

    monkeypatch.setattr(yf_source.yf, "download", fake_download)
    with caplog.at_level(logging.WARNING, logger="evoport.data.sources.yf"):
        prices = yf_source.download_prices(["aapl", "msft", "zzzz"], start="2022-01-01", sleep_seconds=0)

    assert list(prices.columns) == ["AAPL", "MSFT"]
    assert calls["tickers"] == ["AAPL", "MSFT", "ZZZZ"]
    assert calls["auto_adjust"] is False
    assert "ZZZZ" in caplog.text


def test_download_prices_rejects_empty_result(monkeypatch) -> None:
    monkeypatch.setattr(yf_source.yf, "download", lambda **kwargs: pd.DataFrame())
    with pytest.raises(ValueError):
        yf_source.download_prices(["AAPL"], sleep_seconds=0)


def test_download_prices_requires_tickers() -> None:
    with pytest.raises(ValueError):
        yf_source.download_prices([], sleep_seconds=0)
