"""
Mutation operators for the grouping GA.

Implements the swap mutation: one member of one group trades places with
one member of another group. Group sizes never change.
"""

from typing import Dict, List, Tuple

import numpy as np

from groupify.partition import Solution


def swap_mutation(
    solution: Solution,
    rng: np.random.Generator
) -> Tuple[Solution, List[str]]:
    """
    Swap one member between two distinct groups.

    Both groups are drawn uniformly by index; within each group the member is
    drawn uniformly as well. If either chosen group is empty the solution is
    returned unchanged.

    Args:
        solution: Solution to mutate (not modified)
        rng: Random number generator

    Returns:
        Tuple of (mutated_solution, operation_log)
    """
    if len(solution.groups) < 2:
        return solution, [f"swap_mutation: only {len(solution.groups)} group(s), skipped"]

    first, second = (int(i) for i in rng.choice(len(solution.groups), size=2, replace=False))

    if not solution.groups[first] or not solution.groups[second]:
        return solution, [f"swap_mutation: group {first} or {second} is empty, skipped"]

    member_a = int(rng.integers(0, len(solution.groups[first])))
    member_b = int(rng.integers(0, len(solution.groups[second])))

    mutated = solution.copy()
    group_a = mutated.groups[first]
    group_b = mutated.groups[second]
    participant_a = group_a[member_a]
    participant_b = group_b[member_b]
    group_a[member_a], group_b[member_b] = participant_b, participant_a

    return mutated, [
        f"swap_mutation: {participant_a.id} (group {first}) <-> {participant_b.id} (group {second})"
    ]


def mutate(
    solution: Solution,
    config: Dict,
    rng: np.random.Generator
) -> Tuple[Solution, List[str]]:
    """
    Apply the swap mutation with probability ``mutation_rate``.

    Args:
        solution: Solution to mutate
        config: Optimizer configuration (reads ``mutation_rate``, default 0.5)
        rng: Random number generator

    Returns:
        Tuple of (possibly mutated solution, operation_log)
    """
    rate = config.get('mutation_rate', 0.5)

    if rng.random() >= rate:
        return solution, ["no_mutation: skipped (probability)"]

    mutated, op_log = swap_mutation(solution, rng)
    if mutated is not solution:
        mutated.metadata['mutation_ops'] = op_log
    return mutated, op_log


def mutation_statistics(original: Solution, mutated: Solution) -> Dict:
    """
    Compare a solution before and after mutation.

    Returns:
        Dictionary with the number of participants that changed group and
        whether group sizes were preserved
    """
    moved = 0
    for index, group in enumerate(mutated.groups):
        for participant in group:
            if original.group_index_of(participant.id) != index:
                moved += 1

    return {
        'moved_participants': moved,
        'sizes_preserved': original.group_sizes() == mutated.group_sizes(),
        'total_participants': mutated.total_participant_count(),
    }
