"""Fitness evaluation helpers for the GA pipeline.

Evaluating a generation is embarrassingly parallel: the evaluator is a pure
function of the gene vector and the read-only statistics snapshot. The call
returns only once every candidate has been scored, which is the barrier
between one generation's evaluation and the next generation's selection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from evoport.utils.parallel import collect_exceptions, parallel_map

from .fitness import FitnessValue
from .population import Candidate

__all__ = [
    "EvaluationResult",
    "evaluate_candidate",
    "evaluate_population",
]

Evaluator = Callable[[np.ndarray], FitnessValue]


@dataclass(frozen=True, eq=False)
class EvaluationResult:
    candidate: Candidate
    fitness: float
    objective: float
    metrics: Mapping[str, Any]
    degenerate: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "genes": self.candidate.genes.tolist(),
            "encoding": self.candidate.encoding,
            "fitness": float(self.fitness),
            "objective": float(self.objective),
            "metrics": {key: float(value) for key, value in self.metrics.items()},
            "degenerate": self.degenerate,
        }


def _to_result(candidate: Candidate, value: FitnessValue) -> EvaluationResult:
    return EvaluationResult(
        candidate=candidate,
        fitness=float(value.fitness),
        objective=float(value.objective),
        metrics=dict(value.metrics),
        degenerate=bool(value.degenerate),
    )


def evaluate_candidate(candidate: Candidate, evaluator: Evaluator) -> EvaluationResult:
    return _to_result(candidate, evaluator(candidate.genes))


def evaluate_population(
    population: Sequence[Candidate],
    evaluator: Evaluator,
    *,
    backend: str = "sequential",
    max_workers: int | None = None,
) -> list[EvaluationResult]:
    """Score every candidate, in population order.

    Worker failures are re-raised; a NaN reaching the evaluator is a contract
    violation, not a low score.
    """
    values = parallel_map(
        evaluator,
        [candidate.genes for candidate in population],
        backend=backend,
        max_workers=max_workers,
    )
    values, _ = collect_exceptions(values, re_raise=True)
    return [_to_result(candidate, value) for candidate, value in zip(population, values)]
