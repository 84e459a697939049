"""
Steady-state replacement for the grouping GA.

A child enters the population only by displacing the current worst member,
and only when it is strictly fitter.
"""

from typing import Callable, Optional, Tuple

from groupify.fitness import evaluate, population_fitness
from groupify.partition import Solution

from .data_models import Population


def update_population(
    population: Population,
    child: Solution,
    fitness_fn: Callable[[Solution], float] = evaluate
) -> Tuple[Optional[int], float]:
    """
    Evaluate the child and replace the worst member if the child beats it.

    Ties keep the incumbent. The worst member is the first occurrence of the
    minimum cached fitness.

    Args:
        population: Population to update in place
        child: Candidate solution
        fitness_fn: Fitness function (defaults to legacy evaluation)

    Returns:
        Tuple of (replaced_index or None, child_fitness)
    """
    child_fitness = fitness_fn(child)
    worst = population.worst_index()

    if child_fitness > population.fitness_scores[worst]:
        population.replace(worst, child, child_fitness)
        return worst, child_fitness

    return None, child_fitness


def refresh_fitness(population: Population, dispersion: str = "legacy", workers: int = 1) -> None:
    """Recompute every cached fitness score from scratch."""
    population.fitness_scores[:] = population_fitness(population.solutions, dispersion, workers)
