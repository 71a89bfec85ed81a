"""Public API for the optimisation genetic-algorithm components."""

from .crossover import crossover_factory
from .evaluation import EvaluationResult, evaluate_candidate, evaluate_population
from .fitness import (
    FitnessValue,
    ObjectiveMode,
    SelectionFitness,
    WeightFitness,
    annualised_contributions,
    top_k_assets,
)
from .genetic import GenerationSummary, GeneticRun, iterate_generations, run_genetic_algorithm
from .mutation import mutation_pipeline
from .population import (
    BinaryCandidate,
    BinarySpace,
    Candidate,
    GeneSpace,
    RealValuedCandidate,
    RealValuedSpace,
    initial_population,
    population_diversity,
    space_from_config,
)
from .selection import selection_pipeline

__all__ = [
    "BinaryCandidate",
    "BinarySpace",
    "Candidate",
    "GeneSpace",
    "RealValuedCandidate",
    "RealValuedSpace",
    "initial_population",
    "population_diversity",
    "space_from_config",
    "FitnessValue",
    "ObjectiveMode",
    "SelectionFitness",
    "WeightFitness",
    "annualised_contributions",
    "top_k_assets",
    "selection_pipeline",
    "mutation_pipeline",
    "crossover_factory",
    "EvaluationResult",
    "evaluate_candidate",
    "evaluate_population",
    "GenerationSummary",
    "GeneticRun",
    "iterate_generations",
    "run_genetic_algorithm",
]
