"""Tests for the pydantic configuration schemas."""

from __future__ import annotations

import numpy as np
import pytest
from pydantic import ValidationError

from evoport.config import (
    AssetSelectionConfig,
    DataWindow,
    GAConfig,
    RunConfig,
    UniverseConfig,
)


def test_ga_config_defaults() -> None:
    config = GAConfig()
    assert config.encoding == "real"
    assert config.population_size == 50
    assert config.pcrossover == pytest.approx(0.7)
    assert config.pmutation == pytest.approx(0.5)
    assert config.elitism == 1
    assert config.selection.method == "roulette"
    assert config.mutation_method() == "uniform"
    assert GAConfig(encoding="binary").mutation_method() == "flip"


@pytest.mark.parametrize(
    "params",
    [
        {"population_size": 0},
        {"population_size": -5},
        {"generations": 0},
        {"pcrossover": 1.5},
        {"pmutation": -0.1},
        {"lower": 1.0, "upper": 0.0},
        {"lower": [0.0, 0.5], "upper": [1.0, 0.4]},
        {"lower": [0.0, 0.0], "upper": [1.0, 1.0, 1.0]},
        {"upper": float("inf")},
        {"elitism": 50},
        {"selection": {"method": "random"}},
        {"unknown_field": 1},
    ],
)
def test_ga_config_rejects_malformed_values(params: dict) -> None:
    with pytest.raises(ValidationError):
        GAConfig(**params)


def test_elitism_cannot_be_disabled() -> None:
    with pytest.raises(ValidationError, match="elitism"):
        GAConfig(elitism=0)
    assert GAConfig(elitism=3).elitism == 3


def test_operator_encoding_compatibility() -> None:
    with pytest.raises(ValidationError, match="real-valued"):
        GAConfig(encoding="binary", crossover={"method": "blend"})
    with pytest.raises(ValidationError, match="real-valued"):
        GAConfig(encoding="binary", mutation={"method": "gaussian"})
    with pytest.raises(ValidationError, match="binary"):
        GAConfig(mutation={"method": "flip"})


def test_gene_bounds_broadcast() -> None:
    lower, upper = GAConfig(lower=0.1, upper=[0.5, 0.6, 0.7]).gene_bounds(3)
    np.testing.assert_allclose(lower, [0.1, 0.1, 0.1])
    np.testing.assert_allclose(upper, [0.5, 0.6, 0.7])
    with pytest.raises(ValueError):
        GAConfig(lower=[0.0, 0.0]).gene_bounds(3)


def test_data_window_validation() -> None:
    assert DataWindow(start="2020-01-01", end="2020-12-31").start == "2020-01-01"
    with pytest.raises(ValidationError):
        DataWindow(start="01/01/2020")
    with pytest.raises(ValidationError):
        DataWindow(start="2021-01-01", end="2020-01-01")


def test_universe_normalises_and_rejects_duplicates() -> None:
    assert UniverseConfig(tickers=[" aapl", "msft"]).tickers == ["AAPL", "MSFT"]
    with pytest.raises(ValidationError, match="Duplicate"):
        UniverseConfig(tickers=["AAPL", "aapl"])


def test_run_config_requires_a_data_source() -> None:
    with pytest.raises(ValidationError):
        RunConfig()
    config = RunConfig(returns_path="returns.csv", objective="max_risk")
    assert config.objective == "max_risk"
    assert config.asset_selection is None
    with pytest.raises(ValidationError):
        RunConfig(returns_path="returns.csv", objective="max_return")
    with pytest.raises(ValidationError, match="real"):
        RunConfig(returns_path="returns.csv", ga={"encoding": "binary"})


def test_asset_selection_defaults_to_binary_ga() -> None:
    config = AssetSelectionConfig(returns_path="selection.csv")
    assert config.ga.encoding == "binary"
    assert config.top_k == 10
    with pytest.raises(ValidationError, match="binary"):
        AssetSelectionConfig(returns_path="selection.csv", ga={"encoding": "real"})
