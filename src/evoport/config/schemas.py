"""Pydantic schemas for configuration validation.

This module defines typed configuration schemas using Pydantic v2 for:
- Genetic-algorithm parameters (population, operators, termination)
- Asset universe and historical data windows
- Reporting baselines and the asset-selection scenario

All YAML configuration files in configs/ should validate against these schemas.
Malformed values (negative population, probabilities outside [0, 1], lower
bound above upper bound) are rejected here, before any generation runs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

__all__ = [
    "OBJECTIVE_NAMES",
    "SelectionConfig",
    "CrossoverConfig",
    "MutationConfig",
    "ParallelConfig",
    "GAConfig",
    "DataWindow",
    "UniverseConfig",
    "BaselineConfig",
    "AssetSelectionConfig",
    "RunConfig",
]

ObjectiveName = Literal["sharpe", "min_risk_return", "max_risk", "max_risk_return"]
OBJECTIVE_NAMES: tuple[str, ...] = (
    "sharpe",
    "min_risk_return",
    "max_risk",
    "max_risk_return",
)

_REAL_ONLY_CROSSOVERS = {"blend", "arithmetic"}
_REAL_MUTATIONS = {"uniform", "gaussian"}


class SelectionConfig(BaseModel):
    """Parent selection policy.

    Attributes
    ----------
    method : Literal
        ``roulette`` (fitness proportional), ``tournament``, ``sus``
        (stochastic universal sampling) or ``rank``.
    tournament_size : int
        Contestants per tournament (only used by ``tournament``).
    """

    model_config = ConfigDict(extra="forbid")

    method: Literal["roulette", "tournament", "sus", "rank"] = Field(
        default="roulette", description="Parent selection method"
    )
    tournament_size: int = Field(default=3, ge=1, description="Tournament size")


class CrossoverConfig(BaseModel):
    """Recombination operator.

    Attributes
    ----------
    method : Literal
        ``single_point`` and ``uniform`` work for both encodings; ``blend``
        (BLX-alpha) and ``arithmetic`` only for real-valued genes.
    alpha : float
        Range extension for ``blend``.
    prob : float
        Per-gene swap probability for ``uniform``.
    """

    model_config = ConfigDict(extra="forbid")

    method: Literal["single_point", "uniform", "blend", "arithmetic"] = Field(
        default="single_point", description="Crossover operator"
    )
    alpha: float = Field(default=0.5, ge=0, description="BLX-alpha range extension")
    prob: float = Field(default=0.5, ge=0, le=1, description="Uniform swap probability")


class MutationConfig(BaseModel):
    """Mutation operator.

    ``method=None`` picks the encoding default: ``uniform`` re-sampling for
    real-valued genes and ``flip`` for binary genes.
    """

    model_config = ConfigDict(extra="forbid")

    method: Literal["uniform", "gaussian", "flip"] | None = Field(
        default=None, description="Mutation operator"
    )
    sigma: float = Field(
        default=0.1,
        gt=0,
        description="Gaussian jitter scale as a fraction of each gene's range",
    )


class ParallelConfig(BaseModel):
    """Backend used to evaluate fitness within a generation."""

    model_config = ConfigDict(extra="forbid")

    backend: Literal["sequential", "thread", "process", "joblib"] = Field(
        default="sequential", description="Fitness evaluation backend"
    )
    max_workers: int | None = Field(default=None, ge=1, description="Worker count")


class GAConfig(BaseModel):
    """Genetic-algorithm configuration.

    Attributes
    ----------
    encoding : Literal
        ``real`` (weight vector) or ``binary`` (asset-subset mask).
    population_size : int
        Candidates per generation (constant across generations).
    generations : int
        Maximum number of generations.
    pcrossover : float
        Probability that a parent pair is recombined.
    pmutation : float
        Per-gene mutation probability.
    elitism : int
        Number of best candidates copied unmodified into the next generation.
    stagnation : int, optional
        Stop after this many consecutive generations without improving the
        best record. ``None`` disables early stopping.
    lower, upper : float or list of float
        Gene bounds for the real-valued encoding (scalar or one per gene).
    seed : int, optional
        Seed of the random generator threaded through every operator.
    log_every : int
        Log progress every ``log_every`` generations (0 disables).
    suggestions : list of list of float
        Warm-start vectors placed at the front of the initial population.
    """

    model_config = ConfigDict(extra="forbid")

    encoding: Literal["real", "binary"] = Field(default="real", description="Gene encoding")
    population_size: int = Field(default=50, gt=0, description="Population size")
    generations: int = Field(default=100, gt=0, description="Generation budget")
    pcrossover: float = Field(default=0.7, ge=0, le=1, description="Crossover probability")
    pmutation: float = Field(default=0.5, ge=0, le=1, description="Per-gene mutation probability")
    elitism: int = Field(default=1, ge=1, description="Elite candidates kept per generation")
    stagnation: int | None = Field(default=None, gt=0, description="Early-stop patience")
    lower: float | list[float] = Field(default=0.0, description="Lower gene bound(s)")
    upper: float | list[float] = Field(default=1.0, description="Upper gene bound(s)")
    seed: int | None = Field(default=None, description="Random seed")
    log_every: int = Field(default=10, ge=0, description="Progress log interval")
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    crossover: CrossoverConfig = Field(default_factory=CrossoverConfig)
    mutation: MutationConfig = Field(default_factory=MutationConfig)
    parallel: ParallelConfig = Field(default_factory=ParallelConfig)
    suggestions: list[list[float]] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_consistency(self) -> "GAConfig":
        if self.elitism >= self.population_size:
            raise ValueError("elitism must be smaller than population_size")

        lower = np.atleast_1d(np.asarray(self.lower, dtype=float))
        upper = np.atleast_1d(np.asarray(self.upper, dtype=float))
        if lower.size > 1 and upper.size > 1 and lower.size != upper.size:
            raise ValueError("lower and upper must have the same length")
        if not (np.all(np.isfinite(lower)) and np.all(np.isfinite(upper))):
            raise ValueError("gene bounds must be finite")
        if np.any(lower > upper):
            raise ValueError("lower bound must not exceed upper bound")

        if self.encoding == "binary":
            if self.crossover.method in _REAL_ONLY_CROSSOVERS:
                raise ValueError(
                    f"crossover '{self.crossover.method}' requires real-valued encoding"
                )
            if self.mutation.method in _REAL_MUTATIONS:
                raise ValueError(
                    f"mutation '{self.mutation.method}' requires real-valued encoding"
                )
        elif self.mutation.method == "flip":
            raise ValueError("mutation 'flip' requires binary encoding")
        return self

    def mutation_method(self) -> str:
        if self.mutation.method is not None:
            return self.mutation.method
        return "flip" if self.encoding == "binary" else "uniform"

    def gene_bounds(self, size: int) -> tuple[np.ndarray, np.ndarray]:
        """Broadcast ``lower``/``upper`` to ``size`` genes."""

        if size <= 0:
            raise ValueError("number of genes must be positive")
        lower = np.atleast_1d(np.asarray(self.lower, dtype=float))
        upper = np.atleast_1d(np.asarray(self.upper, dtype=float))
        for name, bound in (("lower", lower), ("upper", upper)):
            if bound.size not in {1, size}:
                raise ValueError(
                    f"{name} bounds have {bound.size} entries, expected 1 or {size}"
                )
        return (
            np.broadcast_to(lower, (size,)).astype(float),
            np.broadcast_to(upper, (size,)).astype(float),
        )


class DataWindow(BaseModel):
    """Historical window ``[start, end]`` (YYYY-MM-DD, inclusive)."""

    start: str | None = Field(default=None, description="Start date (YYYY-MM-DD)")
    end: str | None = Field(default=None, description="End date (YYYY-MM-DD)")

    @field_validator("start", "end")
    @classmethod
    def validate_date_format(cls, v: str | None) -> str | None:
        """Validate date format if provided."""
        if v is None:
            return v
        try:
            datetime.strptime(v, "%Y-%m-%d")
        except ValueError:
            raise ValueError(f"Date must be in YYYY-MM-DD format, got: {v}")
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "DataWindow":
        if self.start and self.end and self.start > self.end:
            raise ValueError("window start must not be after its end")
        return self


class UniverseConfig(BaseModel):
    """Ordered asset universe.

    The ticker order defines the gene order of every candidate.
    """

    name: str = Field(default="default", description="Universe name identifier")
    tickers: list[str] = Field(min_length=1, description="Ordered ticker symbols")

    @field_validator("tickers")
    @classmethod
    def validate_tickers_unique_uppercase(cls, v: list[str]) -> list[str]:
        """Ensure tickers are unique and uppercase."""
        tickers_upper = [ticker.strip().upper() for ticker in v]
        if len(tickers_upper) != len(set(tickers_upper)):
            raise ValueError("Duplicate tickers found")
        return tickers_upper


class BaselineConfig(BaseModel):
    """Comparison baselines produced next to the optimised portfolio."""

    random_portfolios: int = Field(
        default=1000, ge=0, description="Random long-only portfolios to sample"
    )
    compare_objectives: list[ObjectiveName] = Field(
        default_factory=list,
        description="Alternative objectives optimised on the same snapshot",
    )


class AssetSelectionConfig(BaseModel):
    """Binary-encoded selection of ``top_k`` assets from a larger universe.

    Weights optimised on the main universe are applied element-wise to the
    per-asset mean returns of this universe to build the contribution vector.
    """

    universe: UniverseConfig | None = None
    returns_path: str | None = Field(default=None, description="Returns file (CSV/Parquet)")
    window: DataWindow = Field(default_factory=DataWindow)
    top_k: int = Field(default=10, gt=0, description="Assets kept after truncation")
    ga: GAConfig = Field(default_factory=lambda: GAConfig(encoding="binary"))

    @model_validator(mode="after")
    def validate_source(self) -> "AssetSelectionConfig":
        if self.universe is None and self.returns_path is None:
            raise ValueError("asset_selection requires 'universe' or 'returns_path'")
        if self.ga.encoding != "binary":
            raise ValueError("asset_selection.ga.encoding must be 'binary'")
        return self


class RunConfig(BaseModel):
    """Top-level configuration for a weight-optimisation run."""

    universe: UniverseConfig | None = None
    returns_path: str | None = Field(default=None, description="Returns file (CSV/Parquet)")
    train: DataWindow = Field(default_factory=DataWindow)
    test: DataWindow | None = Field(default=None, description="Out-of-sample window")
    objective: ObjectiveName = Field(default="sharpe", description="Fitness objective")
    ga: GAConfig = Field(default_factory=GAConfig)
    baselines: BaselineConfig = Field(default_factory=BaselineConfig)
    asset_selection: AssetSelectionConfig | None = None

    @model_validator(mode="after")
    def validate_source(self) -> "RunConfig":
        if self.universe is None and self.returns_path is None:
            raise ValueError("run config requires 'universe' or 'returns_path'")
        if self.ga.encoding != "real":
            raise ValueError("weight optimisation requires ga.encoding 'real'")
        return self
