"""Mutation operators used by the genetic algorithm suite.

Each gene mutates independently with probability ``prob``; results are
always clipped back into the gene space.
"""

from __future__ import annotations

import numpy as np

from .population import Candidate, GeneSpace, RealValuedSpace

__all__ = [
    "flip_genes",
    "uniform_resample",
    "gaussian_jitter",
    "mutation_pipeline",
]


def _check_prob(prob: float) -> None:
    if not 0.0 <= prob <= 1.0:
        raise ValueError("prob must be in [0, 1]")


def _mutated(candidate: Candidate, genes: np.ndarray, hits: np.ndarray, name: str) -> Candidate:
    meta = dict(candidate.metadata)
    meta["last_mutation"] = name
    meta["mutated_genes"] = int(hits.sum())
    return candidate.copy(genes=genes, metadata=meta)


def flip_genes(candidate: Candidate, prob: float, rng: np.random.Generator) -> Candidate:
    """Bit-flip mutation for binary candidates."""
    _check_prob(prob)
    if candidate.encoding != "binary":
        raise TypeError("flip mutation requires a binary candidate")
    hits = rng.random(candidate.genes.size) < prob
    if not hits.any():
        return candidate
    return _mutated(candidate, np.logical_xor(candidate.genes, hits), hits, "flip")


def uniform_resample(
    candidate: Candidate, space: RealValuedSpace, prob: float, rng: np.random.Generator
) -> Candidate:
    """Re-draw mutated genes uniformly within their bounds."""
    _check_prob(prob)
    hits = rng.random(candidate.genes.size) < prob
    if not hits.any():
        return candidate
    fresh = space.sample(rng)
    genes = np.where(hits, fresh, candidate.genes)
    return _mutated(candidate, genes, hits, "uniform")


def gaussian_jitter(
    candidate: Candidate,
    space: RealValuedSpace,
    prob: float,
    sigma: float,
    rng: np.random.Generator,
) -> Candidate:
    """Add ``N(0, sigma * (upper - lower))`` noise to mutated genes, then clip."""
    _check_prob(prob)
    if sigma <= 0:
        raise ValueError("sigma must be positive")
    hits = rng.random(candidate.genes.size) < prob
    if not hits.any():
        return candidate
    noise = rng.normal(0.0, 1.0, candidate.genes.size) * sigma * (space.upper - space.lower)
    genes = space.clip(np.where(hits, candidate.genes + noise, candidate.genes))
    return _mutated(candidate, genes, hits, "gaussian")


def mutation_pipeline(
    candidate: Candidate,
    space: GeneSpace,
    method: str,
    prob: float,
    rng: np.random.Generator,
    *,
    sigma: float = 0.1,
) -> Candidate:
    if prob <= 0.0:
        return candidate
    if method == "flip":
        mutated = flip_genes(candidate, prob, rng)
    elif method in {"uniform", "gaussian"}:
        if not isinstance(space, RealValuedSpace):
            raise TypeError(f"mutation '{method}' requires a real-valued gene space")
        if method == "uniform":
            mutated = uniform_resample(candidate, space, prob, rng)
        else:
            mutated = gaussian_jitter(candidate, space, prob, sigma, rng)
    else:
        raise ValueError(f"unknown mutation method '{method}'")
    return mutated.copy(genes=space.clip(mutated.genes))
