from __future__ import annotations

from collections import Counter

import numpy as np
import pytest

from evoport.config import SelectionConfig
from evoport.optimization.ga import selection
from evoport.optimization.ga.population import RealValuedCandidate


def _population(n: int = 4) -> list[RealValuedCandidate]:
    return [RealValuedCandidate(np.array([float(i)]), {"id": i}) for i in range(n)]


def _counts(picks) -> Counter:
    return Counter(candidate.metadata["id"] for candidate in picks)


def test_roulette_prefers_higher_fitness() -> None:
    population = _population()
    fitness = [0.0, 1.0, 2.0, 10.0]
    rng = np.random.default_rng(0)
    picks = [selection.roulette_wheel_selection(population, fitness, rng) for _ in range(2000)]
    counts = _counts(picks)
    assert counts[3] > counts[2] > counts[1]


def test_roulette_handles_negative_and_huge_penalised_scores() -> None:
    population = _population()
    fitness = [-1.3e154, -0.5, 0.2, 0.4]
    rng = np.random.default_rng(1)
    picks = [selection.roulette_wheel_selection(population, fitness, rng) for _ in range(500)]
    counts = _counts(picks)
    assert counts[0] < 5
    assert counts[3] > 0


def test_roulette_handles_infinite_scores() -> None:
    population = _population()
    rng = np.random.default_rng(2)
    picks = [
        selection.roulette_wheel_selection(population, [-np.inf, 1.0, 2.0, -np.inf], rng)
        for _ in range(200)
    ]
    assert set(_counts(picks)) <= {0, 1, 2, 3}
    assert _counts(picks)[2] > 0

    # no finite score at all: uniform fallback
    pick = selection.roulette_wheel_selection(population, [-np.inf] * 4, rng)
    assert pick in population


def test_nan_fitness_is_rejected() -> None:
    with pytest.raises(ValueError, match="NaN"):
        selection.roulette_wheel_selection(_population(), [0.0, np.nan, 1.0, 2.0], np.random.default_rng(0))


def test_tournament_with_full_size_returns_best() -> None:
    population = _population()
    rng = np.random.default_rng(3)
    best = selection.tournament_selection(population, [0.3, 0.9, 0.1, 0.2], 4, rng)
    assert best.metadata["id"] == 1


def test_stochastic_universal_sampling_returns_requested_count() -> None:
    population = _population()
    rng = np.random.default_rng(4)
    picks = selection.stochastic_universal_sampling(population, [0.0, 0.0, 0.0, 1.0], 10, rng)
    assert len(picks) == 10
    assert _counts(picks)[3] >= 9


def test_rank_selection_prefers_best_rank() -> None:
    population = _population()
    rng = np.random.default_rng(5)
    picks = [selection.rank_selection(population, [5.0, -1.0, 3.0, 100.0], rng) for _ in range(2000)]
    counts = _counts(picks)
    assert counts[3] > counts[0] > counts[2] > counts[1]


def test_selection_pipeline_uses_configured_method() -> None:
    population = _population()
    rng = np.random.default_rng(6)
    parents = selection.selection_pipeline(
        population, [0.1, 0.2, 0.3, 0.4], SelectionConfig(method="tournament", tournament_size=4), rng
    )
    assert len(parents) == 2
    assert all(parent.metadata["id"] == 3 for parent in parents)

    parents = selection.selection_pipeline(
        population, [0.1, 0.2, 0.3, 0.4], {"method": "sus"}, rng, num_parents=3
    )
    assert len(parents) == 3


def test_selection_pipeline_validates_inputs() -> None:
    rng = np.random.default_rng(7)
    with pytest.raises(ValueError, match="unknown selection method"):
        selection.selection_pipeline(_population(), [1, 2, 3, 4], {"method": "random"}, rng)
    with pytest.raises(ValueError, match="same length"):
        selection.selection_pipeline(_population(), [1, 2], {"method": "roulette"}, rng)
