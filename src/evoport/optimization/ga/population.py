"""Utilities for genetic-algorithm candidates, gene spaces and populations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Sequence

import numpy as np

__all__ = [
    "Candidate",
    "RealValuedCandidate",
    "BinaryCandidate",
    "GeneSpace",
    "RealValuedSpace",
    "BinarySpace",
    "space_from_config",
    "random_candidate",
    "initial_population",
    "gene_distance",
    "population_diversity",
]


@dataclass(frozen=True, eq=False)
class Candidate:
    """Immutable fixed-length gene vector plus bookkeeping metadata."""

    genes: np.ndarray
    metadata: Mapping[str, Any] = field(default_factory=dict)

    encoding: ClassVar[str] = "abstract"
    _dtype: ClassVar[type] = float

    def __post_init__(self) -> None:
        genes = np.array(self.genes, dtype=self._dtype, copy=True)
        if genes.ndim != 1:
            raise ValueError("genes must be 1-dimensional")
        if genes.size == 0:
            raise ValueError("genes must not be empty")
        genes.setflags(write=False)
        object.__setattr__(self, "genes", genes)
        object.__setattr__(self, "metadata", dict(self.metadata))

    def __len__(self) -> int:
        return int(self.genes.size)

    def copy(
        self,
        *,
        genes: Sequence[float] | np.ndarray | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> "Candidate":
        new_genes = self.genes if genes is None else np.asarray(genes)
        if new_genes.shape != self.genes.shape:
            raise ValueError("gene vector size mismatch")
        new_metadata = dict(self.metadata if metadata is None else metadata)
        return type(self)(new_genes, new_metadata)

    def same_genes(self, other: "Candidate") -> bool:
        return type(self) is type(other) and np.array_equal(self.genes, other.genes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "encoding": self.encoding,
            "genes": self.genes.tolist(),
            "metadata": dict(self.metadata),
        }

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "Candidate":
        encoding = payload.get("encoding", "real")
        cls = BinaryCandidate if encoding == "binary" else RealValuedCandidate
        return cls(np.asarray(payload["genes"]), payload.get("metadata", {}))


@dataclass(frozen=True, eq=False)
class RealValuedCandidate(Candidate):
    """Portfolio weight vector; genes are continuous values within bounds."""

    encoding: ClassVar[str] = "real"
    _dtype: ClassVar[type] = float

    @property
    def weights(self) -> np.ndarray:
        return self.genes


@dataclass(frozen=True, eq=False)
class BinaryCandidate(Candidate):
    """Asset inclusion mask; ``True`` selects the asset at that position."""

    encoding: ClassVar[str] = "binary"
    _dtype: ClassVar[type] = bool

    def cardinality(self) -> int:
        return int(self.genes.sum())

    def active_assets(self, universe: Sequence[str]) -> list[str]:
        if len(universe) != self.genes.size:
            raise ValueError("universe length must match mask length")
        return [asset for asset, active in zip(universe, self.genes) if active]


class GeneSpace:
    """Declared domain of every gene; samples, clips and validates vectors."""

    candidate_type: type[Candidate] = Candidate

    @property
    def size(self) -> int:  # pragma: no cover - abstract
        raise NotImplementedError

    @property
    def encoding(self) -> str:
        return self.candidate_type.encoding

    def sample(self, rng: np.random.Generator) -> np.ndarray:  # pragma: no cover - abstract
        raise NotImplementedError

    def clip(self, genes: np.ndarray) -> np.ndarray:  # pragma: no cover - abstract
        raise NotImplementedError

    def contains(self, genes: np.ndarray) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError

    def candidate(self, genes: Sequence[float] | np.ndarray, **metadata: Any) -> Candidate:
        genes = np.asarray(genes)
        if genes.shape != (self.size,):
            raise ValueError(f"expected {self.size} genes, got shape {genes.shape}")
        return self.candidate_type(self.clip(genes), metadata)


class RealValuedSpace(GeneSpace):
    """Box ``[lower_i, upper_i]`` per gene."""

    candidate_type = RealValuedCandidate

    def __init__(self, lower: Sequence[float] | np.ndarray, upper: Sequence[float] | np.ndarray) -> None:
        lower_arr = np.asarray(lower, dtype=float)
        upper_arr = np.asarray(upper, dtype=float)
        if lower_arr.ndim != 1 or lower_arr.shape != upper_arr.shape:
            raise ValueError("lower and upper must be 1-dimensional with equal length")
        if lower_arr.size == 0:
            raise ValueError("gene space must have at least one gene")
        if np.any(lower_arr > upper_arr):
            raise ValueError("lower bound must not exceed upper bound")
        self.lower = lower_arr
        self.upper = upper_arr

    @property
    def size(self) -> int:
        return int(self.lower.size)

    def sample(self, rng: np.random.Generator) -> np.ndarray:
        return rng.uniform(self.lower, self.upper)

    def clip(self, genes: np.ndarray) -> np.ndarray:
        return np.clip(np.asarray(genes, dtype=float), self.lower, self.upper)

    def contains(self, genes: np.ndarray) -> bool:
        genes = np.asarray(genes, dtype=float)
        return bool(np.all(genes >= self.lower) and np.all(genes <= self.upper))

    def __repr__(self) -> str:
        return f"RealValuedSpace(size={self.size})"


class BinarySpace(GeneSpace):
    """``{0, 1}`` per gene, sampled as Bernoulli(0.5)."""

    candidate_type = BinaryCandidate

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("gene space must have at least one gene")
        self._size = int(size)

    @property
    def size(self) -> int:
        return self._size

    def sample(self, rng: np.random.Generator) -> np.ndarray:
        return rng.random(self._size) < 0.5

    def clip(self, genes: np.ndarray) -> np.ndarray:
        return np.asarray(genes).astype(bool)

    def contains(self, genes: np.ndarray) -> bool:
        genes = np.asarray(genes)
        return genes.shape == (self._size,) and bool(np.all((genes == 0) | (genes == 1)))

    def __repr__(self) -> str:
        return f"BinarySpace(size={self.size})"


def space_from_config(config: Any, size: int) -> GeneSpace:
    """Build the gene space declared by a :class:`~evoport.config.GAConfig`."""

    if config.encoding == "binary":
        return BinarySpace(size)
    lower, upper = config.gene_bounds(size)
    return RealValuedSpace(lower, upper)


def random_candidate(space: GeneSpace, rng: np.random.Generator) -> Candidate:
    return space.candidate(space.sample(rng), origin="random")


def initial_population(
    space: GeneSpace,
    size: int,
    rng: np.random.Generator,
    *,
    suggestions: Sequence[Sequence[float]] | None = None,
) -> list[Candidate]:
    """Sample ``size`` independent candidates; ``suggestions`` fill the first slots."""

    if size <= 0:
        raise ValueError("population size must be positive")
    population: list[Candidate] = []
    for vector in list(suggestions or [])[:size]:
        population.append(space.candidate(np.asarray(vector), origin="suggestion"))
    while len(population) < size:
        population.append(random_candidate(space, rng))
    return population


def gene_distance(a: Candidate, b: Candidate) -> float:
    """Mean absolute gene difference (Hamming fraction for binary genes)."""

    if a.genes.shape != b.genes.shape:
        raise ValueError("candidates must have the same length")
    return float(np.mean(np.abs(a.genes.astype(float) - b.genes.astype(float))))


def population_diversity(population: Sequence[Candidate]) -> float:
    """Average pairwise :func:`gene_distance` across the population."""

    if len(population) < 2:
        return 0.0
    genes = np.stack([candidate.genes.astype(float) for candidate in population])
    diffs = np.abs(genes[:, None, :] - genes[None, :, :]).mean(axis=2)
    upper = diffs[np.triu_indices(len(population), k=1)]
    return float(upper.mean()) if upper.size else 0.0
