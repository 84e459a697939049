"""
Mock participant generator.

Produces realistic-looking participant sets for demos and load tests:
small clusters of friends who prefer each other, a few random extra
preferences, and decile-scale criteria.
"""

from typing import Dict, List, Optional

import numpy as np

from .participant import Criterion, Participant, ScaleKind

MAX_FRIEND_GROUP_SIZE = 3
MAX_PREFERENCES = 4
FRIEND_GROUP_PROBABILITY = 0.2


def mock_participant_id(index: int) -> str:
    """Stable id of the index-th mock participant (1-based)"""
    return f"p{index:03d}"


def _friend_clusters(count: int, rng: np.random.Generator) -> Dict[int, List[int]]:
    """Map participant index to the indices of its friends"""
    friends: Dict[int, List[int]] = {}
    used = set()

    for i in range(1, count + 1):
        if i in used:
            continue
        if rng.random() < FRIEND_GROUP_PROBABILITY and i < count:
            remaining = count - i + 1
            size = min(MAX_FRIEND_GROUP_SIZE, int(rng.integers(2, MAX_FRIEND_GROUP_SIZE + 1)), remaining)
            cluster = list(range(i, i + size))
            used.update(cluster)
            for member in cluster:
                friends[member] = [other for other in cluster if other != member]

    return friends


def generate_mock_participants(count: int,
                               criteria_count: int = 3,
                               rng: Optional[np.random.Generator] = None) -> List[Participant]:
    """
    Generate mock participants.

    About one participant in five starts a cluster of 2-3 friends who all
    prefer each other. Everyone then receives a random number of extra
    preferences, up to four preferences in total. Each criterion is rated on
    the 0-10 scale with a value between 1 and 10.

    Args:
        count: Number of participants
        criteria_count: Number of criteria per participant
        rng: Random number generator

    Returns:
        List of participants with ids ``p001``, ``p002``, ...

    Raises:
        ValueError: If count or criteria_count is negative
    """
    if count < 0 or criteria_count < 0:
        raise ValueError(f"count and criteria_count must be non-negative, got: {count}, {criteria_count}")

    rng = rng if rng is not None else np.random.default_rng()
    friends = _friend_clusters(count, rng)

    participants = []
    for i in range(1, count + 1):
        preferences = [mock_participant_id(f) for f in friends.get(i, [])][:MAX_PREFERENCES]

        extras = int(rng.integers(0, MAX_PREFERENCES - len(preferences) + 1))
        # Nobody else left to prefer in tiny sets
        extras = min(extras, count - 1 - len(preferences))
        target = len(preferences) + extras
        while len(preferences) < target:
            candidate = int(rng.integers(1, count + 1))
            candidate_id = mock_participant_id(candidate)
            if candidate != i and candidate_id not in preferences:
                preferences.append(candidate_id)

        criteria = tuple(
            Criterion(ScaleKind.DECILE.value, float(rng.integers(1, 11)))
            for _ in range(criteria_count)
        )

        participants.append(Participant(
            id=mock_participant_id(i),
            name=f"Mock User {i}",
            criteria=criteria,
            preference_ids=tuple(preferences),
        ))

    return participants
