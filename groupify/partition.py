"""
Solution (partition) data structure.

A Solution is an arena of groups addressed by index. Every participant of a
run appears in exactly one group; ``validate`` enforces that.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Optional

from .exceptions import InvariantViolationError
from .participant import Participant


@dataclass
class Solution:
    """
    One candidate partition of all participants into groups.

    Attributes:
        groups: List of groups, each a list of Participant objects
        metadata: Additional information (partition notes, operation logs, etc.)
    """
    groups: List[List[Participant]]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "Solution":
        """
        Create a copy with independent group lists.

        Participants are immutable and shared between copies.

        Returns:
            New Solution with copied groups and metadata
        """
        return Solution(
            groups=[list(group) for group in self.groups],
            metadata=self.metadata.copy(),
        )

    def participant_ids(self) -> List[Hashable]:
        """
        Get ids of all placed participants, group by group.

        Returns:
            List of ids (duplicates kept so callers can detect them)
        """
        return [p.id for group in self.groups for p in group]

    def group_sizes(self) -> List[int]:
        return [len(group) for group in self.groups]

    def total_participant_count(self) -> int:
        return sum(len(group) for group in self.groups)

    def group_index_of(self, participant_id: Hashable) -> Optional[int]:
        """
        Find the group holding a participant.

        Args:
            participant_id: Id to look up

        Returns:
            Group index, or None if the participant is not placed
        """
        for index, group in enumerate(self.groups):
            if any(p.id == participant_id for p in group):
                return index
        return None

    def validate(self, participants: Iterable[Participant]) -> None:
        """
        Check the partition invariant against the full participant set.

        Args:
            participants: Every participant of the run

        Raises:
            InvariantViolationError: If a participant is missing, placed more
                than once, or not part of the run
        """
        expected = {p.id for p in participants}
        placed = Counter(self.participant_ids())

        duplicated = sorted(str(pid) for pid, count in placed.items() if count > 1)
        missing = sorted(str(pid) for pid in expected if pid not in placed)
        foreign = sorted(str(pid) for pid in placed if pid not in expected)

        problems = []
        if duplicated:
            problems.append(f"placed more than once: {', '.join(duplicated)}")
        if missing:
            problems.append(f"missing: {', '.join(missing)}")
        if foreign:
            problems.append(f"not in participant set: {', '.join(foreign)}")

        if problems:
            raise InvariantViolationError(
                "Solution is not a valid partition (" + "; ".join(problems) + ")"
            )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a plain dictionary of group member ids.

        Returns:
            Dictionary with ``groups`` (lists of ids) and ``sizes``
        """
        return {
            "groups": [[p.id for p in group] for group in self.groups],
            "sizes": self.group_sizes(),
        }

    def __len__(self) -> int:
        """Number of groups in the solution."""
        return len(self.groups)
