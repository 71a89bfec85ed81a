from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from evoport.data.processing.returns import calculate_returns


def _prices() -> pd.DataFrame:
    index = pd.bdate_range("2021-01-04", periods=4)
    return pd.DataFrame(
        {"AAA": [100.0, 110.0, 99.0, 99.0], "BBB": [50.0, np.nan, 55.0, 60.5]},
        index=index,
    )


def test_simple_returns_drop_first_row() -> None:
    returns = calculate_returns(_prices())
    assert len(returns) == 3
    assert returns["AAA"].iloc[0] == pytest.approx(0.10)
    assert returns["AAA"].iloc[1] == pytest.approx(-0.10)
    assert returns["BBB"].iloc[2] == pytest.approx(0.10)


def test_gaps_are_not_forward_filled() -> None:
    returns = calculate_returns(_prices())
    assert np.isnan(returns["BBB"].iloc[0])
    assert np.isnan(returns["BBB"].iloc[1])


def test_log_returns() -> None:
    returns = calculate_returns(_prices(), method="log")
    assert returns["AAA"].iloc[0] == pytest.approx(np.log(1.1))


def test_unknown_method_raises() -> None:
    with pytest.raises(ValueError):
        calculate_returns(_prices(), method="excess")
