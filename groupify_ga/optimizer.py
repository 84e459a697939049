"""
Steady-state genetic optimizer for participant grouping.

Each generation selects the two fittest partitions, combines them with fill
crossover, applies swap mutation with some probability and lets the child
replace the worst member of the population if it is strictly fitter.
"""

import time
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from groupify.config_loader import (
    ConfigurationError,
    get_optimizer_config,
    resolve_random_seed,
    validate_config,
)
from groupify.exceptions import InvalidArgumentError
from groupify.fitness import evaluate, population_fitness
from groupify.participant import Participant
from groupify.partition import Solution
from groupify.preference_graph import build_initial_partition

from .crossover import fill_crossover
from .data_models import GenerationRecord, OptimizationResult, Population
from .mutation import mutate
from .replacement import refresh_fitness, update_population
from .selection import select_parents


def _merge_config(config: Optional[Dict]) -> Dict:
    """Optimizer settings on top of the defaults; accepts flat or sectioned dicts."""
    if config is None:
        return get_optimizer_config()
    if 'optimization' in config:
        return get_optimizer_config(config)
    return get_optimizer_config({'optimization': config})


def initialize_population(
    participants: Sequence[Participant],
    group_count: int,
    population_size: int,
    rng: np.random.Generator,
    dispersion: str = "legacy",
    workers: int = 1
) -> Population:
    """
    Build and score the initial population.

    Every member is an independent preference-graph partition drawn from
    the same generator.

    Args:
        participants: Every participant of the run
        group_count: Requested number of groups
        population_size: Number of partitions to build
        rng: Random number generator
        dispersion: Dispersion sampling mode for fitness
        workers: Thread count for fitness evaluation

    Returns:
        Population with cached fitness scores
    """
    solutions = [
        build_initial_partition(participants, group_count, rng)
        for _ in range(population_size)
    ]
    return Population(
        solutions=solutions,
        fitness_scores=population_fitness(solutions, dispersion, workers),
    )


def optimize_grouping(
    participants: Sequence[Participant],
    group_count: int,
    config: Optional[Dict] = None,
    rng: Optional[np.random.Generator] = None,
    should_stop: Optional[Callable[[], bool]] = None
) -> OptimizationResult:
    """
    Search for a high-fitness partition of the participants.

    Args:
        participants: Every participant to place
        group_count: Requested number of groups
        config: Optimizer settings, either flat (``{'generations': 50}``) or
            a full configuration with an ``optimization`` section
        rng: Random number generator; when omitted one is seeded from
            ``random_seed`` (or a freshly drawn seed, which is recorded)
        should_stop: Callable polled between generations; returning True
            ends the run early with the best solution so far

    Returns:
        OptimizationResult holding the best solution and the run history

    Raises:
        InvalidArgumentError: If group_count is not positive, the participant
            set is empty while more than one group is requested, or any
            optimizer setting is out of range (population_size, generations,
            mutation_rate, workers, time_limit, dispersion, random_seed)
    """
    try:
        settings = _merge_config(config)
    except ConfigurationError as e:
        raise InvalidArgumentError(str(e)) from e
    issues = validate_config({'optimization': settings})
    if issues:
        raise InvalidArgumentError("Invalid optimizer settings: " + "; ".join(issues))

    if isinstance(group_count, bool) or not isinstance(group_count, (int, np.integer)) or group_count <= 0:
        raise InvalidArgumentError(f"group_count must be a positive integer, got: {group_count!r}")

    participants = list(participants)
    if not participants and group_count > 1:
        raise InvalidArgumentError(
            f"Cannot split an empty participant set into {group_count} groups"
        )

    seed = None
    if rng is None:
        seed = resolve_random_seed(settings.get('random_seed'))
        if seed is None:
            seed = int(np.random.default_rng().integers(0, 2**31))
        rng = np.random.default_rng(seed)

    population_size = settings.get('population_size')
    if population_size is None:
        population_size = group_count

    dispersion = settings.get('dispersion', 'legacy')
    workers = settings.get('workers', 1)
    generations = settings.get('generations', 180)
    time_limit = settings.get('time_limit')
    recompute = settings.get('recompute_fitness', False)

    metadata = {
        'group_count': int(group_count),
        'participant_count': len(participants),
        'config': dict(settings),
    }
    started = time.monotonic()

    if not participants:
        # group_count == 1: one empty group is the only valid answer
        empty = Solution(groups=[[]], metadata={'notes': ['no participants to group']})
        metadata['elapsed_seconds'] = 0.0
        return OptimizationResult(
            solution=empty,
            fitness=evaluate(empty, dispersion),
            seed=seed,
            generations_run=0,
            stopped_early=False,
            population_size=0,
            metadata=metadata,
        )

    population = initialize_population(
        participants, group_count, population_size, rng, dispersion, workers
    )
    initial_best = population.best_fitness()

    if group_count == 1:
        metadata['elapsed_seconds'] = time.monotonic() - started
        return OptimizationResult(
            solution=population.solutions[0],
            fitness=population.fitness_scores[0],
            seed=seed,
            generations_run=0,
            stopped_early=False,
            population_size=len(population),
            initial_best_fitness=initial_best,
            metadata=metadata,
        )

    def fitness_fn(solution: Solution) -> float:
        return evaluate(solution, dispersion)

    history: List[GenerationRecord] = []
    stopped_early = False

    for generation in range(generations):
        if should_stop is not None and should_stop():
            stopped_early = True
            break
        if time_limit is not None and time.monotonic() - started >= time_limit:
            stopped_early = True
            break

        parent_a, parent_b, parent_indices = select_parents(population)

        child, _ = fill_crossover(parent_a, parent_b, participants)
        child.validate(participants)

        child, mutation_ops = mutate(child, settings, rng)

        replaced_index, child_fitness = update_population(population, child, fitness_fn)
        if recompute:
            refresh_fitness(population, dispersion, workers)

        history.append(GenerationRecord(
            generation=generation,
            parent_indices=parent_indices,
            mutation_ops=mutation_ops,
            child_fitness=child_fitness,
            replaced_index=replaced_index,
            best_fitness=population.best_fitness(),
            worst_fitness=population.min_fitness(),
        ))

    best_index = population.best_index()
    metadata['elapsed_seconds'] = time.monotonic() - started

    return OptimizationResult(
        solution=population.solutions[best_index],
        fitness=population.fitness_scores[best_index],
        seed=seed,
        generations_run=len(history),
        stopped_early=stopped_early,
        population_size=len(population),
        history=history,
        initial_best_fitness=initial_best,
        metadata=metadata,
    )


def optimize_groups(
    participants: Sequence[Participant],
    group_count: int,
    config: Optional[Dict] = None,
    rng: Optional[np.random.Generator] = None
) -> Solution:
    """Best partition found by :func:`optimize_grouping`."""
    return optimize_grouping(participants, group_count, config, rng).solution
