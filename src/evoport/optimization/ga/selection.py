"""Parent selection helpers for the genetic algorithm.

Every policy samples with replacement and is biased toward higher fitness.
Candidates whose fitness is ``-inf`` (degenerate risk) get zero weight in the
proportional policies but may still be picked when nothing else is finite.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from .population import Candidate

__all__ = [
    "tournament_selection",
    "roulette_wheel_selection",
    "stochastic_universal_sampling",
    "rank_selection",
    "selection_pipeline",
]


def _validate_inputs(population: Sequence[Candidate], fitness: Sequence[float]) -> None:
    if len(population) != len(fitness):
        raise ValueError("population and fitness must have the same length")
    if not population:
        raise ValueError("population must not be empty")


def tournament_selection(
    population: Sequence[Candidate],
    fitness: Sequence[float],
    tournament_size: int,
    rng: np.random.Generator,
) -> Candidate:
    """Best of ``tournament_size`` distinct contestants drawn at random."""
    _validate_inputs(population, fitness)
    size = int(np.clip(tournament_size, 1, len(population)))
    contestants = rng.choice(len(population), size=size, replace=False)
    scores = np.asarray(fitness, dtype=float)[contestants]
    return population[int(contestants[int(np.argmax(scores))])]


def _normalise_fitness(fitness: Sequence[float]) -> np.ndarray:
    values = np.asarray(fitness, dtype=float)
    if np.isnan(values).any():
        raise ValueError("fitness scores contain NaN")
    finite = np.isfinite(values)
    if not finite.any():
        return np.full(len(values), 1.0 / len(values))
    min_value = values[finite].min()
    values = np.where(finite, values, min_value)
    values = values - min_value
    # Rescale before summing: penalised scores can reach ~1e154.
    scale = values.max()
    if scale > 0:
        values = values / scale
    values = values + 1e-12
    return values / values.sum()


def roulette_wheel_selection(
    population: Sequence[Candidate], fitness: Sequence[float], rng: np.random.Generator
) -> Candidate:
    _validate_inputs(population, fitness)
    probabilities = _normalise_fitness(fitness)
    idx = rng.choice(len(population), p=probabilities)
    return population[idx]


def stochastic_universal_sampling(
    population: Sequence[Candidate],
    fitness: Sequence[float],
    num_samples: int,
    rng: np.random.Generator,
) -> list[Candidate]:
    """``num_samples`` evenly spaced pointers over one spin of the wheel."""
    _validate_inputs(population, fitness)
    count = max(1, num_samples)
    edges = np.cumsum(_normalise_fitness(fitness))
    edges[-1] = 1.0
    offsets = (rng.uniform(0.0, 1.0) + np.arange(count)) / count
    slots = np.searchsorted(edges, offsets, side="left")
    return [population[int(slot)] for slot in slots]


def rank_selection(
    population: Sequence[Candidate],
    fitness: Sequence[float],
    rng: np.random.Generator,
    *,
    pressure: float = 2.0,
) -> Candidate:
    """Linear ranking: best gets ``pressure`` times the average weight."""
    _validate_inputs(population, fitness)
    n = len(population)
    if n == 1:
        return population[0]
    order = np.argsort(np.asarray(fitness, dtype=float), kind="stable")
    ranks = np.empty(n, dtype=float)
    ranks[order] = np.arange(n)
    probabilities = (2.0 - pressure) / n + 2.0 * ranks * (pressure - 1.0) / (n * (n - 1))
    probabilities = probabilities / probabilities.sum()
    return population[int(rng.choice(n, p=probabilities))]


def selection_pipeline(
    population: Sequence[Candidate],
    fitness: Sequence[float],
    config: Any,
    rng: np.random.Generator,
    *,
    num_parents: int = 2,
) -> list[Candidate]:
    """Draw ``num_parents`` parents with the policy named in ``config``.

    ``config`` is a :class:`~evoport.config.SelectionConfig` or a mapping
    with the same keys.
    """
    _validate_inputs(population, fitness)
    if isinstance(config, dict):
        method = str(config.get("method", "roulette")).lower()
        tournament_size = int(config.get("tournament_size", 3))
    else:
        method = str(config.method).lower()
        tournament_size = int(config.tournament_size)

    if method in {"sus", "stochastic_universal"}:
        return stochastic_universal_sampling(population, fitness, num_parents, rng)

    parents: list[Candidate] = []
    while len(parents) < num_parents:
        if method == "roulette":
            parents.append(roulette_wheel_selection(population, fitness, rng))
        elif method == "tournament":
            parents.append(tournament_selection(population, fitness, tournament_size, rng))
        elif method == "rank":
            parents.append(rank_selection(population, fitness, rng))
        else:
            raise ValueError(f"unknown selection method '{method}'")
    return parents
