"""
Grouping Fitness Evaluation

Scores a Solution by combining within-group score dispersion with mutual
preference satisfaction. Higher is better.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Sequence

import numpy as np

from .participant import Participant
from .partition import Solution

LEGACY_DISPERSION = "legacy"
PAIR_DIFFERENCE_DISPERSION = "pair_difference"
DISPERSION_MODES = (LEGACY_DISPERSION, PAIR_DIFFERENCE_DISPERSION)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty list"""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def sample_std_dev(values: Sequence[float]) -> float:
    """Sample standard deviation (N-1 denominator); 0 for fewer than two values"""
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=1))


def dispersion_samples(group: Sequence[Participant], mode: str = LEGACY_DISPERSION) -> List[float]:
    """
    Build the dispersion samples of one group.

    In ``legacy`` mode every unordered pair (i, j), i < j, contributes the
    score of member i, so earlier members are repeated once per later member.
    ``pair_difference`` contributes the absolute score difference of the pair.

    Args:
        group: Members of one group
        mode: One of DISPERSION_MODES

    Returns:
        List of samples (empty for groups of fewer than two members)

    Raises:
        ValueError: If mode is unknown
    """
    if mode not in DISPERSION_MODES:
        raise ValueError(f"Unknown dispersion mode: {mode}. Must be one of {DISPERSION_MODES}")

    scores = [member.score() for member in group]
    samples = []
    for i in range(len(scores)):
        for j in range(i + 1, len(scores)):
            if mode == LEGACY_DISPERSION:
                samples.append(scores[i])
            else:
                samples.append(abs(scores[i] - scores[j]))
    return samples


def group_diversity(group: Sequence[Participant], mode: str = LEGACY_DISPERSION) -> float:
    return sample_std_dev(dispersion_samples(group, mode))


def satisfied_participants(group: Sequence[Participant]) -> List[Participant]:
    """Members with at least one preferred participant inside the same group"""
    member_ids = {member.id for member in group}
    return [
        member for member in group
        if any(preferred in member_ids for preferred in member.preference_ids)
    ]


def preference_satisfaction(solution: Solution) -> int:
    """Count of participants grouped with at least one of their preferences"""
    return sum(len(satisfied_participants(group)) for group in solution.groups)


def evaluate(solution: Solution, dispersion: str = LEGACY_DISPERSION) -> float:
    """
    Fitness of a solution.

    total = mean(group diversities) + preference satisfaction
            - sample_std_dev(group diversities)

    Args:
        solution: Partition to score
        dispersion: Dispersion sampling mode

    Returns:
        Fitness value (higher is better)
    """
    diversities = [group_diversity(group, dispersion) for group in solution.groups]
    return mean(diversities) + preference_satisfaction(solution) - sample_std_dev(diversities)


def population_fitness(solutions: Sequence[Solution],
                       dispersion: str = LEGACY_DISPERSION,
                       workers: int = 1) -> List[float]:
    """
    Evaluate every solution of a population.

    Each task reads one solution and produces one score, so evaluation can
    be spread over a thread pool when ``workers`` > 1.

    Args:
        solutions: Solutions to score
        dispersion: Dispersion sampling mode
        workers: Number of worker threads (1 evaluates inline)

    Returns:
        Fitness scores in population order
    """
    if workers is None or workers <= 1 or len(solutions) < 2:
        return [evaluate(solution, dispersion) for solution in solutions]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda s: evaluate(s, dispersion), solutions))


def analyze_solution(solution: Solution, dispersion: str = LEGACY_DISPERSION) -> Dict[str, Any]:
    """
    Break a solution's fitness down into its components.

    Args:
        solution: Partition to analyze
        dispersion: Dispersion sampling mode

    Returns:
        Dictionary with per-group details and the fitness terms
    """
    group_details = []
    diversities = []

    for index, group in enumerate(solution.groups):
        scores = [member.score() for member in group]
        diversity = group_diversity(group, dispersion)
        diversities.append(diversity)
        group_details.append({
            'group': index,
            'size': len(group),
            'member_ids': [member.id for member in group],
            'mean_score': mean(scores),
            'score_range': (min(scores), max(scores)) if scores else (0.0, 0.0),
            'diversity': diversity,
            'satisfied': len(satisfied_participants(group)),
        })

    satisfaction = preference_satisfaction(solution)
    mean_diversity = mean(diversities)
    diversity_penalty = sample_std_dev(diversities)

    return {
        'groups': group_details,
        'group_count': len(solution.groups),
        'participant_count': solution.total_participant_count(),
        'mean_diversity': mean_diversity,
        'diversity_penalty': diversity_penalty,
        'preference_satisfaction': satisfaction,
        'satisfaction_rate': satisfaction / max(solution.total_participant_count(), 1),
        'fitness': mean_diversity + satisfaction - diversity_penalty,
        'dispersion': dispersion,
    }
