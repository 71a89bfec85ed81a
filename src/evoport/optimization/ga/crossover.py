"""Crossover operators for GA candidates."""

from __future__ import annotations

from typing import Any, Callable

import numpy as np

from .population import Candidate, GeneSpace

__all__ = [
    "single_point_crossover",
    "uniform_crossover",
    "blend_crossover",
    "arithmetic_crossover",
    "crossover_factory",
]

CrossoverOperator = Callable[
    [Candidate, Candidate, np.random.Generator], tuple[Candidate, Candidate]
]

_REAL_ONLY = {"blend", "arithmetic"}


def _check_parents(parent_a: Candidate, parent_b: Candidate) -> None:
    if type(parent_a) is not type(parent_b):
        raise TypeError("parents must share the same encoding")
    if parent_a.genes.size != parent_b.genes.size:
        raise ValueError("parent gene vectors must have equal length")


def _children(
    parent_a: Candidate, parent_b: Candidate, genes_a: np.ndarray, genes_b: np.ndarray, method: str
) -> tuple[Candidate, Candidate]:
    metadata = {"origin": "crossover", "crossover": method}
    return parent_a.copy(genes=genes_a, metadata=metadata), parent_b.copy(genes=genes_b, metadata=metadata)


def single_point_crossover(
    parent_a: Candidate, parent_b: Candidate, rng: np.random.Generator
) -> tuple[Candidate, Candidate]:
    _check_parents(parent_a, parent_b)
    length = parent_a.genes.size
    if length == 1:
        return parent_a, parent_b
    point = int(rng.integers(1, length))
    child1 = np.concatenate([parent_a.genes[:point], parent_b.genes[point:]])
    child2 = np.concatenate([parent_b.genes[:point], parent_a.genes[point:]])
    return _children(parent_a, parent_b, child1, child2, "single_point")


def uniform_crossover(
    parent_a: Candidate,
    parent_b: Candidate,
    rng: np.random.Generator,
    *,
    prob: float = 0.5,
) -> tuple[Candidate, Candidate]:
    _check_parents(parent_a, parent_b)
    mask_choice = rng.random(parent_a.genes.size) < prob
    child1 = np.where(mask_choice, parent_a.genes, parent_b.genes)
    child2 = np.where(mask_choice, parent_b.genes, parent_a.genes)
    return _children(parent_a, parent_b, child1, child2, "uniform")


def blend_crossover(
    parent_a: Candidate,
    parent_b: Candidate,
    rng: np.random.Generator,
    *,
    alpha: float = 0.5,
) -> tuple[Candidate, Candidate]:
    """BLX-alpha: each child gene drawn from the parents' interval widened by alpha."""
    _check_parents(parent_a, parent_b)
    a = parent_a.genes.astype(float)
    b = parent_b.genes.astype(float)
    spread = np.abs(a - b)
    low = np.minimum(a, b) - alpha * spread
    high = np.maximum(a, b) + alpha * spread
    child1 = rng.uniform(low, high)
    child2 = rng.uniform(low, high)
    return _children(parent_a, parent_b, child1, child2, "blend")


def arithmetic_crossover(
    parent_a: Candidate, parent_b: Candidate, rng: np.random.Generator
) -> tuple[Candidate, Candidate]:
    """Whole-vector convex combination with a random mixing coefficient."""
    _check_parents(parent_a, parent_b)
    a = parent_a.genes.astype(float)
    b = parent_b.genes.astype(float)
    mix = float(rng.random())
    child1 = mix * a + (1.0 - mix) * b
    child2 = (1.0 - mix) * a + mix * b
    return _children(parent_a, parent_b, child1, child2, "arithmetic")


def crossover_factory(config: Any, space: GeneSpace) -> CrossoverOperator:
    """Return the configured operator; children are clipped back into ``space``.

    ``config`` is a :class:`~evoport.config.CrossoverConfig` or a mapping with
    the same keys.
    """
    cfg = config if isinstance(config, dict) else config.model_dump()
    method = str(cfg.get("method", "single_point")).lower()
    alpha = float(cfg.get("alpha", 0.5))
    prob = float(cfg.get("prob", 0.5))
    if method not in {"single_point", "uniform"} | _REAL_ONLY:
        raise ValueError(f"unsupported crossover method '{method}'")
    if method in _REAL_ONLY and space.encoding != "real":
        raise ValueError(f"crossover '{method}' requires real-valued encoding")

    def crossover(
        parent_a: Candidate, parent_b: Candidate, rng: np.random.Generator
    ) -> tuple[Candidate, Candidate]:
        if method == "single_point":
            return single_point_crossover(parent_a, parent_b, rng)
        if method == "uniform":
            return uniform_crossover(parent_a, parent_b, rng, prob=prob)
        if method == "blend":
            return blend_crossover(parent_a, parent_b, rng, alpha=alpha)
        return arithmetic_crossover(parent_a, parent_b, rng)

    def wrapped(
        parent_a: Candidate, parent_b: Candidate, rng: np.random.Generator
    ) -> tuple[Candidate, Candidate]:
        child_a, child_b = crossover(parent_a, parent_b, rng)
        return (
            child_a.copy(genes=space.clip(child_a.genes)),
            child_b.copy(genes=space.clip(child_b.genes)),
        )

    return wrapped
