"""
Parent selection for the grouping GA.

Truncation selection: the two fittest members of the population become
the parents of the next child.
"""

from typing import List, Tuple

from groupify.exceptions import InvalidArgumentError
from groupify.partition import Solution

from .data_models import Population


def rank_by_fitness(fitness_scores: List[float]) -> List[int]:
    """
    Population indices ordered by fitness, best first.

    The sort is stable, so equal scores keep their population order.
    """
    return sorted(range(len(fitness_scores)), key=lambda i: fitness_scores[i], reverse=True)


def select_parents(population: Population) -> Tuple[Solution, Solution, Tuple[int, int]]:
    """
    Select the top two solutions as parents.

    Args:
        population: Current population with cached fitness scores

    Returns:
        Tuple of (parent1, parent2, (parent1_index, parent2_index)).
        A single-member population yields that member twice.

    Raises:
        InvalidArgumentError: If the population is empty
    """
    if len(population) == 0:
        raise InvalidArgumentError("Cannot select parents from an empty population")

    if len(population) == 1:
        return population.solutions[0], population.solutions[0], (0, 0)

    ranked = rank_by_fitness(population.fitness_scores)
    first, second = ranked[0], ranked[1]

    return population.solutions[first], population.solutions[second], (first, second)
