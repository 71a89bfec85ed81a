from __future__ import annotations

import logging

import numpy as np
import pytest

from evoport.config import GAConfig
from evoport.data.statistics import StatisticsSnapshot
from evoport.optimization.ga import genetic
from evoport.optimization.ga.fitness import SelectionFitness, WeightFitness, portfolio_return, portfolio_risk
from evoport.optimization.ga.population import BinarySpace, RealValuedSpace, space_from_config


def _real_config(**overrides) -> GAConfig:
    params = {"population_size": 20, "generations": 30, "seed": 11, "log_every": 0}
    params.update(overrides)
    return GAConfig(**params)


def test_best_record_is_monotonic(snapshot) -> None:
    config = _real_config()
    space = space_from_config(config, snapshot.size)
    run = genetic.run_genetic_algorithm(WeightFitness(snapshot), space, config)

    best = run.history_frame()["best_fitness"].to_numpy()
    assert len(best) == config.generations
    assert np.all(np.diff(best) >= 0)
    assert run.best_fitness == pytest.approx(best[-1])


def test_genes_stay_within_bounds_every_generation(snapshot) -> None:
    config = _real_config(
        lower=[0.0, 0.05, 0.0, 0.1, 0.0],
        upper=[0.5, 0.3, 0.4, 0.2, 0.6],
        crossover={"method": "blend", "alpha": 1.0},
        mutation={"method": "gaussian", "sigma": 0.5},
    )
    space = space_from_config(config, snapshot.size)
    sizes = set()
    for summary in genetic.iterate_generations(WeightFitness(snapshot), space, config):
        sizes.add(len(summary.population))
        for candidate in summary.population:
            assert space.contains(candidate.genes)
    assert sizes == {config.population_size}


def test_same_seed_gives_identical_runs(snapshot) -> None:
    config = _real_config()
    space = space_from_config(config, snapshot.size)
    first = genetic.run_genetic_algorithm(WeightFitness(snapshot), space, config)
    second = genetic.run_genetic_algorithm(WeightFitness(snapshot), space, config)

    np.testing.assert_array_equal(first.best_candidate.genes, second.best_candidate.genes)
    np.testing.assert_array_equal(
        first.history_frame()["best_fitness"].to_numpy(),
        second.history_frame()["best_fitness"].to_numpy(),
    )

    generations = zip(
        genetic.iterate_generations(WeightFitness(snapshot), space, config),
        genetic.iterate_generations(WeightFitness(snapshot), space, config),
    )
    count = 0
    for a, b in generations:
        assert a.generation == b.generation
        np.testing.assert_array_equal(
            np.vstack([c.genes for c in a.population]),
            np.vstack([c.genes for c in b.population]),
        )
        np.testing.assert_array_equal(a.best_result.candidate.genes, b.best_result.candidate.genes)
        assert a.best_fitness == b.best_fitness
        count += 1
    assert count == first.generations_run


def test_thread_backend_is_bit_identical_to_sequential(snapshot) -> None:
    config = _real_config(generations=10)
    threaded = _real_config(generations=10, parallel={"backend": "thread", "max_workers": 4})
    space = space_from_config(config, snapshot.size)

    a = genetic.run_genetic_algorithm(WeightFitness(snapshot), space, config)
    b = genetic.run_genetic_algorithm(WeightFitness(snapshot), space, threaded)
    np.testing.assert_array_equal(a.best_candidate.genes, b.best_candidate.genes)


def test_elite_survives_unmodified(snapshot) -> None:
    config = _real_config(generations=5, elitism=2)
    space = space_from_config(config, snapshot.size)
    evaluator = WeightFitness(snapshot)
    previous = None
    for summary in genetic.iterate_generations(evaluator, space, config):
        if previous is not None:
            fitness = [evaluator(c.genes).fitness for c in previous.population]
            best = previous.population[int(np.argmax(fitness))]
            assert summary.population[0].same_genes(best)
        previous = summary


def test_three_asset_sharpe_beats_equal_weight(three_asset_snapshot) -> None:
    config = GAConfig(population_size=50, generations=200, seed=3, log_every=0)
    space = space_from_config(config, three_asset_snapshot.size)
    run = genetic.run_genetic_algorithm(WeightFitness(three_asset_snapshot), space, config)

    weights = run.best_candidate.genes
    equal = np.full(3, 1.0 / 3.0)

    def sharpe(w: np.ndarray) -> float:
        return portfolio_return(w, three_asset_snapshot.mean) / portfolio_risk(
            w, three_asset_snapshot.covariance
        )

    assert weights.sum() <= 1.01
    assert sharpe(weights) > sharpe(equal)


def test_binary_selection_converges_to_strong_assets() -> None:
    rng = np.random.default_rng(42)
    contributions = rng.uniform(-0.05, 0.01, 50)
    strong = rng.choice(50, size=10, replace=False)
    contributions[strong] = rng.uniform(0.5, 1.0, 10)

    config = GAConfig(
        encoding="binary",
        population_size=60,
        generations=300,
        pmutation=0.02,
        elitism=2,
        seed=5,
        log_every=0,
        crossover={"method": "uniform"},
    )
    run = genetic.run_genetic_algorithm(SelectionFitness(contributions), BinarySpace(50), config)

    mask = run.best_candidate.genes
    assert set(np.flatnonzero(mask)) >= set(strong.tolist())
    extra = np.flatnonzero(mask & ~np.isin(np.arange(50), strong))
    assert np.all(contributions[extra] >= 0)


def test_stagnation_stops_early() -> None:
    contributions = np.ones(4)
    config = GAConfig(
        encoding="binary",
        population_size=30,
        generations=500,
        stagnation=5,
        seed=1,
        log_every=0,
    )
    run = genetic.run_genetic_algorithm(SelectionFitness(contributions), BinarySpace(4), config)
    assert run.converged
    assert run.generations_run < config.generations
    assert run.best_fitness == pytest.approx(4.0)


def test_generator_can_be_abandoned_with_valid_best(snapshot) -> None:
    config = _real_config(generations=100)
    space = space_from_config(config, snapshot.size)
    iterator = genetic.iterate_generations(WeightFitness(snapshot), space, config)
    summaries = [next(iterator) for _ in range(3)]
    iterator.close()
    assert [s.generation for s in summaries] == [0, 1, 2]
    assert np.isfinite(summaries[-1].best_fitness)
    assert summaries[-1].best_result.candidate is not None


def test_encoding_mismatch_is_rejected(snapshot) -> None:
    config = _real_config()
    with pytest.raises(ValueError, match="encoding"):
        next(genetic.iterate_generations(WeightFitness(snapshot), BinarySpace(5), config))


def test_degenerate_generation_logs_warning(caplog) -> None:
    snap = StatisticsSnapshot(
        universe=("A", "B"), mean=np.array([0.001, 0.002]), covariance=np.zeros((2, 2))
    )
    config = _real_config(generations=2, population_size=6)
    space = RealValuedSpace(np.zeros(2), np.ones(2))
    with caplog.at_level(logging.WARNING, logger="evoport.optimization.ga.genetic"):
        run = genetic.run_genetic_algorithm(WeightFitness(snap), space, config)
    assert "non-positive risk" in caplog.text
    assert run.best_result.degenerate
    assert run.history_frame()["degenerate"].iloc[0] == 6


def test_suggestions_seed_the_initial_population(three_asset_snapshot) -> None:
    config = _real_config(generations=1, suggestions=[[0.6, 0.3, 0.1]])
    space = space_from_config(config, 3)
    summary = next(genetic.iterate_generations(WeightFitness(three_asset_snapshot), space, config))
    np.testing.assert_allclose(summary.population[0].genes, [0.6, 0.3, 0.1])


def test_scaled_identity_scenario_beats_equal_weight_fitness() -> None:
    snapshot = StatisticsSnapshot(
        universe=("A", "B", "C"),
        mean=np.array([0.001, 0.002, 0.0015]),
        covariance=np.eye(3) * 0.0001,
    )
    config = GAConfig(population_size=50, generations=200, pcrossover=0.7, pmutation=0.5, seed=2024, log_every=0)
    evaluator = WeightFitness(snapshot)
    run = genetic.run_genetic_algorithm(evaluator, space_from_config(config, 3), config)

    equal = evaluator(np.full(3, 1.0 / 3.0))
    assert run.best_candidate.genes.sum() <= 1.01
    assert run.best_result.objective < equal.objective
