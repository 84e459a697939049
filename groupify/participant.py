"""
Participant Entity Model

Immutable participant records with criteria normalized onto a common
0-100 scale and directed preferences for other participants.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, Iterable, List, Tuple


class ScaleKind(Enum):
    """Rating scales a criterion value can be expressed on"""
    UNIT = "0-1"
    DECILE = "0-10"
    PERCENT = "0-100"


# Multiplier that brings a raw value of each scale onto 0-100
SCALE_MULTIPLIERS = {
    ScaleKind.UNIT.value: 100.0,
    ScaleKind.DECILE.value: 10.0,
    ScaleKind.PERCENT.value: 1.0,
}


@dataclass(frozen=True)
class Criterion:
    """A single scored criterion of a participant"""
    scale_kind: str
    raw_value: float

    def is_known_scale(self) -> bool:
        return self.scale_kind in SCALE_MULTIPLIERS

    def normalized_value(self) -> float:
        """
        Raw value mapped onto the 0-100 scale.

        Unknown scale kinds contribute 0 rather than raising, so a participant
        with a misconfigured criterion is still groupable.
        """
        multiplier = SCALE_MULTIPLIERS.get(self.scale_kind)
        if multiplier is None:
            return 0.0
        return self.raw_value * multiplier

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Criterion":
        """Build from a ``{"type"|"scale", "value"}`` record"""
        scale_kind = data.get("type", data.get("scale"))
        if scale_kind is None:
            raise ValueError(f"Criterion record has no scale kind: {data}")
        return cls(scale_kind=str(scale_kind), raw_value=float(data.get("value", 0)))


@dataclass(frozen=True)
class Participant:
    """
    An entity to be grouped.

    Attributes:
        id: Stable identifier, shared with the ``preference_ids`` of others
        name: Display name
        criteria: Scored criteria, in input order
        preference_ids: Ids of participants this one wants to be grouped with
    """
    id: Hashable
    name: str = ""
    criteria: Tuple[Criterion, ...] = field(default_factory=tuple)
    preference_ids: Tuple[Hashable, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept lists from callers while keeping the record hashable
        if not isinstance(self.criteria, tuple):
            object.__setattr__(self, "criteria", tuple(self.criteria))
        if not isinstance(self.preference_ids, tuple):
            object.__setattr__(self, "preference_ids", tuple(self.preference_ids))

    def score(self) -> float:
        """Sum of all criteria normalized to the 0-100 scale"""
        return sum(criterion.normalized_value() for criterion in self.criteria)

    def unknown_scales(self) -> List[str]:
        return [c.scale_kind for c in self.criteria if not c.is_known_scale()]

    def prefers(self, other_id: Hashable) -> bool:
        return other_id in self.preference_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "preferences": list(self.preference_ids),
            "criteria": [
                {"type": c.scale_kind, "value": c.raw_value} for c in self.criteria
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        """
        Create a participant from a loaded participant record.

        Args:
            data: Mapping with ``id``, optional ``name``, ``preferences``
                (or ``preference_ids``) and ``criteria`` entries

        Returns:
            Participant instance

        Raises:
            ValueError: If the record has no id or a criterion lacks a scale
        """
        if "id" not in data or data["id"] is None:
            raise ValueError(f"Participant record has no id: {data}")

        preferences = data.get("preferences", data.get("preference_ids")) or []
        criteria = [Criterion.from_dict(c) for c in data.get("criteria") or []]

        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            criteria=tuple(criteria),
            preference_ids=tuple(preferences),
        )


def participants_from_records(records: Iterable[Dict[str, Any]]) -> List[Participant]:
    """Convert loaded records into participants, preserving order"""
    return [Participant.from_dict(record) for record in records]


def index_by_id(participants: Iterable[Participant]) -> Dict[Hashable, Participant]:
    """Map participant id to participant"""
    return {p.id: p for p in participants}
