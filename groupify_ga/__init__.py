"""
Genetic optimizer for participant grouping.

Steady-state search over partitions: truncation selection of the two
fittest members, fill crossover, swap mutation and replace-worst.
"""

from .data_models import GenerationRecord, OptimizationResult, Population
from .selection import rank_by_fitness, select_parents
from .crossover import fill_crossover
from .mutation import mutate, swap_mutation
from .replacement import update_population
from .optimizer import initialize_population, optimize_grouping, optimize_groups

__all__ = [
    'Population',
    'GenerationRecord',
    'OptimizationResult',
    'rank_by_fitness',
    'select_parents',
    'fill_crossover',
    'swap_mutation',
    'mutate',
    'update_population',
    'initialize_population',
    'optimize_grouping',
    'optimize_groups',
]
