"""
Crossover operator for the grouping GA.

Implements fill crossover: the child inherits parent A's grouping and
takes in, from parent B, every participant parent A did not place.
"""

from collections import Counter
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

from groupify.participant import Participant
from groupify.partition import Solution


def _smallest_group_index(groups: List[List[Participant]]) -> int:
    """First group with the fewest members"""
    smallest = 0
    for index, group in enumerate(groups):
        if len(group) < len(groups[smallest]):
            smallest = index
    return smallest


def _place(child: Solution, participant: Participant):
    if not child.groups:
        child.groups.append([])
    child.groups[_smallest_group_index(child.groups)].append(participant)


def fill_crossover(
    parent_a: Solution,
    parent_b: Solution,
    participants: Optional[Sequence[Participant]] = None
) -> Tuple[Solution, List[str]]:
    """
    Combine two parents into one child.

    Algorithm:
        1. Copy parent A's groups into the child
        2. Walk parent B's groups in order; every participant the child does
           not hold yet goes into the first smallest child group
        3. Place any participant of the full universe that is still missing
           the same way

    Args:
        parent_a: Parent whose grouping the child inherits
        parent_b: Parent supplying participants missing from parent A
        participants: Full participant universe (defaults to the union of
            both parents)

    Returns:
        Tuple of (child_solution, operation_log)

    Note:
        Parent A and parent B are never modified; the child owns fresh
        group lists.
    """
    child = Solution(
        groups=[list(group) for group in parent_a.groups],
        metadata={'crossover_strategy': 'fill', 'provisional': True},
    )

    placed = {p.id for group in child.groups for p in group}
    op_log = []

    inherited = 0
    for group in parent_b.groups:
        for participant in group:
            if participant.id in placed:
                continue
            _place(child, participant)
            placed.add(participant.id)
            inherited += 1

    op_log.append(f"fill_crossover: {inherited} participants taken from parent B")

    # Universe defaults to the union of both parents
    universe: Dict[Hashable, Participant] = {}
    for source in (parent_a.groups, parent_b.groups):
        for group in source:
            for participant in group:
                universe[participant.id] = participant
    for participant in participants or []:
        universe[participant.id] = participant

    stragglers = [p for pid, p in universe.items() if pid not in placed]
    for participant in stragglers:
        _place(child, participant)
        placed.add(participant.id)

    if stragglers:
        op_log.append(f"fill_crossover: placed {len(stragglers)} participants missing from both parents")

    child.metadata['crossover_ops'] = op_log
    return child, op_log


def detect_duplicates(solution: Solution) -> List[Hashable]:
    """
    Detect participants placed more than once.

    Args:
        solution: Solution to check

    Returns:
        List of duplicated participant ids
    """
    counts = Counter(solution.participant_ids())
    return [pid for pid, count in counts.items() if count > 1]


def crossover_statistics(child: Solution, parent_a: Solution, parent_b: Solution) -> Dict:
    """
    Calculate statistics about the crossover operation.

    Args:
        child: Child solution
        parent_a: First parent
        parent_b: Second parent

    Returns:
        Dictionary with crossover statistics
    """
    # Groups the child kept identical to parent A
    unchanged = sum(
        1 for child_group, parent_group in zip(child.groups, parent_a.groups)
        if {p.id for p in child_group} == {p.id for p in parent_group}
    )

    return {
        'total_participants': child.total_participant_count(),
        'duplicates': len(detect_duplicates(child)),
        'groups': len(child.groups),
        'groups_unchanged_from_a': unchanged,
        'parent_a_participants': parent_a.total_participant_count(),
        'parent_b_participants': parent_b.total_participant_count(),
        'child_group_sizes': child.group_sizes(),
    }
