from __future__ import annotations

import numpy as np
import pytest

from evoport.optimization.ga import mutation
from evoport.optimization.ga.population import (
    BinaryCandidate,
    BinarySpace,
    RealValuedCandidate,
    RealValuedSpace,
)


def test_flip_with_certain_probability_inverts_mask() -> None:
    candidate = BinaryCandidate(np.array([1, 0, 0, 1], dtype=bool))
    mutated = mutation.flip_genes(candidate, 1.0, np.random.default_rng(0))
    np.testing.assert_array_equal(mutated.genes, [False, True, True, False])
    assert mutated.metadata["last_mutation"] == "flip"
    assert mutated.metadata["mutated_genes"] == 4


def test_zero_probability_leaves_candidate_untouched() -> None:
    space = RealValuedSpace(np.zeros(3), np.ones(3))
    candidate = RealValuedCandidate(np.array([0.2, 0.4, 0.6]))
    mutated = mutation.mutation_pipeline(candidate, space, "uniform", 0.0, np.random.default_rng(1))
    assert mutated is candidate


def test_flip_requires_binary_candidate() -> None:
    with pytest.raises(TypeError):
        mutation.flip_genes(RealValuedCandidate(np.zeros(2)), 0.5, np.random.default_rng(0))


def test_uniform_resample_stays_within_bounds() -> None:
    space = RealValuedSpace([0.0, 0.5, -1.0], [0.1, 0.6, 1.0])
    rng = np.random.default_rng(2)
    candidate = space.candidate(space.sample(rng))
    for _ in range(100):
        candidate = mutation.uniform_resample(candidate, space, 0.5, rng)
        assert space.contains(candidate.genes)


def test_gaussian_jitter_is_clipped() -> None:
    space = RealValuedSpace(np.zeros(4), np.ones(4))
    candidate = RealValuedCandidate(np.array([0.0, 1.0, 0.5, 0.99]))
    mutated = mutation.gaussian_jitter(candidate, space, 1.0, 5.0, np.random.default_rng(3))
    assert space.contains(mutated.genes)
    assert mutated.metadata["last_mutation"] == "gaussian"
    with pytest.raises(ValueError):
        mutation.gaussian_jitter(candidate, space, 1.0, 0.0, np.random.default_rng(3))


def test_mutation_probability_is_validated() -> None:
    with pytest.raises(ValueError):
        mutation.flip_genes(BinaryCandidate(np.zeros(3)), 1.5, np.random.default_rng(0))


def test_pipeline_dispatches_by_method() -> None:
    rng = np.random.default_rng(4)
    binary = mutation.mutation_pipeline(
        BinaryCandidate(np.zeros(10, dtype=bool)), BinarySpace(10), "flip", 1.0, rng
    )
    assert binary.genes.all()

    with pytest.raises(TypeError):
        mutation.mutation_pipeline(
            BinaryCandidate(np.zeros(3)), BinarySpace(3), "uniform", 0.5, rng
        )
    with pytest.raises(ValueError, match="unknown mutation"):
        mutation.mutation_pipeline(
            RealValuedCandidate(np.zeros(3)),
            RealValuedSpace(np.zeros(3), np.ones(3)),
            "swap",
            0.5,
            rng,
        )
