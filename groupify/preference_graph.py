"""
Preference-Graph Partitioner

Builds an initial partition of participants into groups. Participants are
nodes of a directed preference graph; groups are grown along preference
edges in reverse DFS discovery order, and whoever cannot be matched that way
is packed into fallback groups so the partition is always complete.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Hashable, List, Optional, Sequence

import numpy as np

from .exceptions import InvalidArgumentError
from .participant import Participant
from .partition import Solution


class NodeColor(Enum):
    """Traversal state of a graph node"""
    WHITE = "white"      # unvisited
    GRAY = "gray"        # in progress
    BLACK = "black"      # finished
    CLAIMED = "claimed"  # placed into a group


@dataclass
class GraphNode:
    """A participant plus its outgoing preference edges and DFS bookkeeping"""
    participant: Participant
    neighbors: List[int] = field(default_factory=list)
    color: NodeColor = NodeColor.WHITE
    discovery: Optional[int] = None
    finish: Optional[int] = None
    parent: Optional[int] = None


class PreferenceGraph:
    """Directed preference graph over one ordering of the participants"""

    def __init__(self, participants: Sequence[Participant]):
        self.nodes = [GraphNode(participant) for participant in participants]
        self.index: Dict[Hashable, int] = {
            participant.id: i for i, participant in enumerate(participants)
        }

        # Dangling preference ids are skipped
        for i, participant in enumerate(participants):
            for preferred_id in participant.preference_ids:
                j = self.index.get(preferred_id)
                if j is not None:
                    self.nodes[i].neighbors.append(j)

    def __len__(self) -> int:
        return len(self.nodes)

    def edge_count(self) -> int:
        return sum(len(node.neighbors) for node in self.nodes)

    def depth_first_search(self) -> int:
        """
        Timestamp every node with a three-color depth-first search.

        Uses an explicit stack of (node, next neighbor position) pairs so deep
        preference chains cannot exhaust the interpreter stack. Edges into
        GRAY or BLACK nodes are never followed, which makes cycles harmless.

        Returns:
            Final value of the traversal clock
        """
        for node in self.nodes:
            node.color = NodeColor.WHITE
            node.parent = None
            node.discovery = None
            node.finish = None

        time = 0
        for root in range(len(self.nodes)):
            if self.nodes[root].color is not NodeColor.WHITE:
                continue

            time += 1
            self._discover(root, time)
            stack = [(root, 0)]

            while stack:
                u, position = stack[-1]
                node = self.nodes[u]

                if position < len(node.neighbors):
                    stack[-1] = (u, position + 1)
                    v = node.neighbors[position]
                    if self.nodes[v].color is NodeColor.WHITE:
                        self.nodes[v].parent = u
                        time += 1
                        self._discover(v, time)
                        stack.append((v, 0))
                else:
                    stack.pop()
                    time += 1
                    node.finish = time
                    node.color = NodeColor.BLACK

        return time

    def _discover(self, index: int, time: int):
        node = self.nodes[index]
        node.color = NodeColor.GRAY
        node.discovery = time

    def discovery_order(self) -> List[int]:
        """Node indices by descending discovery time"""
        return sorted(
            range(len(self.nodes)),
            key=lambda i: self.nodes[i].discovery or 0,
            reverse=True,
        )

    def is_claimed(self, index: int) -> bool:
        return self.nodes[index].color is NodeColor.CLAIMED

    def claim(self, members: Sequence[int]):
        for index in members:
            self.nodes[index].color = NodeColor.CLAIMED

    def unclaimed(self) -> List[int]:
        return [i for i in range(len(self.nodes)) if not self.is_claimed(i)]

    def is_connected_group(self, members: Sequence[int]) -> bool:
        """Every member has at least one preference edge to another member of the set"""
        member_set = set(members)
        return all(
            any(neighbor in member_set for neighbor in self.nodes[m].neighbors)
            for m in members
        )

    def find_group(self, start: int, size: int, depth_limit: int) -> List[int]:
        """
        Search for a connected group of exactly ``size`` nodes starting at ``start``.

        Extends a simple path along preference edges from ``start``, skipping
        claimed nodes and nodes already on the path, and backtracks when a
        path reaches ``size`` without forming a connected group or runs out
        of extensions.

        Args:
            start: Index of the unclaimed node to grow from
            size: Exact number of members wanted
            depth_limit: Maximum path depth explored

        Returns:
            Member indices in path order, or an empty list if no group exists
        """
        if size < 1:
            return []

        path = [start]
        on_path = {start}
        cursors = [0]

        while path:
            depth = len(path) - 1

            if len(path) == size or depth > depth_limit:
                if len(path) == size and depth <= depth_limit and self.is_connected_group(path):
                    return list(path)
                on_path.discard(path.pop())
                cursors.pop()
                continue

            neighbors = self.nodes[path[-1]].neighbors
            extended = False

            while cursors[-1] < len(neighbors):
                candidate = neighbors[cursors[-1]]
                cursors[-1] += 1
                if candidate not in on_path and not self.is_claimed(candidate):
                    path.append(candidate)
                    on_path.add(candidate)
                    cursors.append(0)
                    extended = True
                    break

            if not extended:
                on_path.discard(path.pop())
                cursors.pop()

        return []


class PreferencePartitioner:
    """Builds one complete partition from a participant set and a group count"""

    def __init__(self,
                 participants: Sequence[Participant],
                 group_count: int,
                 rng: Optional[np.random.Generator] = None):
        """
        Initialize partitioner

        Args:
            participants: Every participant to place
            group_count: Requested number of groups
            rng: Random number generator used for the initial shuffle

        Raises:
            InvalidArgumentError: If group_count is not a positive integer,
                participant ids are not unique, or there are no participants
                while more than one group is requested
        """
        if isinstance(group_count, bool) or not isinstance(group_count, (int, np.integer)):
            raise InvalidArgumentError(f"group_count must be an integer, got: {group_count!r}")
        if group_count <= 0:
            raise InvalidArgumentError(f"group_count must be positive, got: {group_count}")
        if not participants and group_count > 1:
            raise InvalidArgumentError(
                f"Cannot split an empty participant set into {group_count} groups"
            )

        ids = [p.id for p in participants]
        if len(set(ids)) != len(ids):
            raise InvalidArgumentError("Participant ids must be unique")

        self.participants = list(participants)
        self.group_count = int(group_count)
        self.rng = rng if rng is not None else np.random.default_rng()

        total = len(self.participants)
        self.base_group_size = total // self.group_count
        self.max_group_size = self.base_group_size + (1 if total % self.group_count else 0)

    def partition(self) -> Solution:
        """
        Shuffle, match preference groups, then pack the leftovers

        Returns:
            Solution covering every participant exactly once
        """
        total = len(self.participants)
        order = self.rng.permutation(total)
        shuffled = [self.participants[i] for i in order]

        metadata = {
            "base_group_size": self.base_group_size,
            "max_group_size": self.max_group_size,
            "matched_groups": 0,
            "fallback_groups": 0,
            "fallback_participants": 0,
            "notes": [],
        }

        if total == 0:
            # group_count == 1: a single empty group
            metadata["notes"].append("no participants to partition")
            return Solution(groups=[[]], metadata=metadata)

        if self.group_count == 1:
            # Any connected cover and the fallback chunk both yield the whole set
            metadata["notes"].append("single group requested: all participants grouped together")
            return Solution(groups=[shuffled], metadata=metadata)

        graph = PreferenceGraph(shuffled)
        graph.depth_first_search()

        groups = self._match_preference_groups(graph, metadata)
        groups.extend(self._pack_fallback_groups(graph, metadata))

        solution = Solution(groups=groups, metadata=metadata)
        solution.validate(self.participants)
        return solution

    def _match_preference_groups(self, graph: PreferenceGraph, metadata: Dict) -> List[List[Participant]]:
        """Grow groups of base size along preference edges in reverse discovery order"""
        groups = []
        depth_limit = len(graph)

        for start in graph.discovery_order():
            if graph.is_claimed(start):
                continue

            members = graph.find_group(start, self.base_group_size, depth_limit)
            if not members:
                continue

            graph.claim(members)
            groups.append([graph.nodes[m].participant for m in members])

        metadata["matched_groups"] = len(groups)
        return groups

    def _pack_fallback_groups(self, graph: PreferenceGraph, metadata: Dict) -> List[List[Participant]]:
        """Chunk unclaimed participants, in remaining order, into groups of max size"""
        leftovers = graph.unclaimed()
        if not leftovers:
            return []

        chunk_size = max(1, self.max_group_size)
        groups = []
        for offset in range(0, len(leftovers), chunk_size):
            chunk = leftovers[offset:offset + chunk_size]
            graph.claim(chunk)
            groups.append([graph.nodes[i].participant for i in chunk])

        metadata["fallback_groups"] = len(groups)
        metadata["fallback_participants"] = len(leftovers)
        metadata["notes"].append(
            f"{len(leftovers)} participants packed into {len(groups)} fallback groups"
        )
        return groups


def build_initial_partition(participants: Sequence[Participant],
                            group_count: int,
                            rng: Optional[np.random.Generator] = None) -> Solution:
    """
    Build one initial partition from preference edges.

    Args:
        participants: Every participant to place
        group_count: Requested number of groups
        rng: Random number generator (a fresh unseeded one if omitted)

    Returns:
        Complete, non-overlapping Solution

    Raises:
        InvalidArgumentError: If group_count <= 0, ids are not unique, or the
            participant set is empty while more than one group is requested
    """
    return PreferencePartitioner(participants, group_count, rng).partition()
