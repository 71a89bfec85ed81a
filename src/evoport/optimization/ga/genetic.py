"""Genetic algorithm driver that orchestrates population evolution."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, Sequence

import numpy as np
import pandas as pd

from evoport.config.constants import COLUMN_GENERATION
from evoport.config.schemas import GAConfig
from evoport.utils.seed import rng_factory

from .crossover import CrossoverOperator, crossover_factory
from .evaluation import EvaluationResult, evaluate_population
from .fitness import FitnessValue
from .mutation import mutation_pipeline
from .population import Candidate, GeneSpace, initial_population, population_diversity
from .selection import selection_pipeline

__all__ = [
    "GenerationSummary",
    "GeneticRun",
    "iterate_generations",
    "run_genetic_algorithm",
]

logger = logging.getLogger(__name__)

Evaluator = Callable[[np.ndarray], FitnessValue]


@dataclass(frozen=True, eq=False)
class GenerationSummary:
    generation: int
    best_fitness: float
    best_objective: float
    generation_best_fitness: float
    average_fitness: float
    diversity: float
    degenerate: int
    best_result: EvaluationResult
    stagnation: int = 0
    population: tuple[Candidate, ...] = field(default=(), repr=False)

    def to_record(self) -> dict[str, float | int]:
        return {
            COLUMN_GENERATION: self.generation,
            "best_fitness": self.best_fitness,
            "best_objective": self.best_objective,
            "generation_best_fitness": self.generation_best_fitness,
            "average_fitness": self.average_fitness,
            "diversity": self.diversity,
            "degenerate": self.degenerate,
        }


@dataclass(frozen=True, eq=False)
class GeneticRun:
    best_result: EvaluationResult
    history: list[GenerationSummary]
    population: list[Candidate]
    converged: bool = False

    @property
    def best_candidate(self) -> Candidate:
        return self.best_result.candidate

    @property
    def best_fitness(self) -> float:
        return self.best_result.fitness

    @property
    def generations_run(self) -> int:
        return len(self.history)

    def history_frame(self) -> pd.DataFrame:
        """Fitness trajectory, one row per generation."""
        frame = pd.DataFrame([summary.to_record() for summary in self.history])
        if frame.empty:
            return frame
        return frame.set_index(COLUMN_GENERATION)


def _finite_mean(values: np.ndarray) -> float:
    finite = values[np.isfinite(values)]
    return float(finite.mean()) if finite.size else float("-inf")


def _breed(
    population: Sequence[Candidate],
    fitness: np.ndarray,
    space: GeneSpace,
    config: GAConfig,
    crossover: CrossoverOperator,
    rng: np.random.Generator,
) -> list[Candidate]:
    order = np.argsort(-fitness, kind="stable")
    elites = [population[idx] for idx in order[: config.elitism]]

    mutation_method = config.mutation_method()
    needed = len(population) - len(elites)
    offspring: list[Candidate] = []
    while len(offspring) < needed:
        parent_a, parent_b = selection_pipeline(
            population, fitness, config.selection, rng, num_parents=2
        )
        if rng.random() < config.pcrossover:
            child_a, child_b = crossover(parent_a, parent_b, rng)
        else:
            child_a = parent_a.copy(metadata={"origin": "copy"})
            child_b = parent_b.copy(metadata={"origin": "copy"})
        child_a = mutation_pipeline(
            child_a, space, mutation_method, config.pmutation, rng, sigma=config.mutation.sigma
        )
        child_b = mutation_pipeline(
            child_b, space, mutation_method, config.pmutation, rng, sigma=config.mutation.sigma
        )
        offspring.append(child_a)
        if len(offspring) < needed:
            offspring.append(child_b)

    return elites + offspring


def iterate_generations(
    evaluator: Evaluator,
    space: GeneSpace,
    config: GAConfig,
    rng: np.random.Generator | None = None,
) -> Iterator[GenerationSummary]:
    """Evolve a population, yielding one summary per evaluated generation.

    The caller may stop consuming at any point; the last summary's
    ``best_result`` is always a valid best-so-far record.
    """
    if config.encoding != space.encoding:
        raise ValueError(
            f"config encoding '{config.encoding}' does not match gene space '{space.encoding}'"
        )
    rng = rng or rng_factory(config.seed)
    crossover = crossover_factory(config.crossover, space)
    population = initial_population(
        space, config.population_size, rng, suggestions=config.suggestions
    )

    best: EvaluationResult | None = None
    stagnation = 0
    for generation in range(config.generations):
        evaluations = evaluate_population(
            population,
            evaluator,
            backend=config.parallel.backend,
            max_workers=config.parallel.max_workers,
        )
        fitness = np.array([result.fitness for result in evaluations], dtype=float)
        generation_best = evaluations[int(np.argmax(fitness))]
        if best is None or generation_best.fitness > best.fitness:
            best = generation_best
            stagnation = 0
        else:
            stagnation += 1

        degenerate = sum(result.degenerate for result in evaluations)
        if degenerate:
            logger.warning(
                "Generation %d: %d candidate(s) with non-positive risk scored as worst",
                generation,
                degenerate,
            )

        summary = GenerationSummary(
            generation=generation,
            best_fitness=float(best.fitness),
            best_objective=float(best.objective),
            generation_best_fitness=float(generation_best.fitness),
            average_fitness=_finite_mean(fitness),
            diversity=population_diversity(population),
            degenerate=int(degenerate),
            best_result=best,
            stagnation=stagnation,
            population=tuple(population),
        )
        if config.log_every and generation % config.log_every == 0:
            logger.info(
                "GA generation %d/%d | best=%.6g | mean=%.6g",
                generation + 1,
                config.generations,
                summary.best_fitness,
                summary.average_fitness,
                extra={"generation": generation, "diversity": summary.diversity},
            )
        yield summary

        if config.stagnation is not None and stagnation >= config.stagnation:
            return
        if generation + 1 < config.generations:
            population = _breed(population, fitness, space, config, crossover, rng)


def run_genetic_algorithm(
    evaluator: Evaluator,
    space: GeneSpace,
    config: GAConfig,
    rng: np.random.Generator | None = None,
) -> GeneticRun:
    """Run the configured generation budget and report the best record."""
    history: list[GenerationSummary] = []
    last: GenerationSummary | None = None
    for summary in iterate_generations(evaluator, space, config, rng):
        last = summary
        history.append(dataclasses.replace(summary, population=()))

    if last is None:
        raise RuntimeError("genetic algorithm failed to evaluate any candidate")
    converged = config.stagnation is not None and last.stagnation >= config.stagnation
    logger.info(
        "GA finished after %d generation(s) | best fitness=%.6g | converged=%s",
        len(history),
        last.best_fitness,
        converged,
    )
    return GeneticRun(
        best_result=last.best_result,
        history=history,
        population=list(last.population),
        converged=converged,
    )
