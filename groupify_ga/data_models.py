"""
Data models for the grouping GA.

Core data structures representing the population, per-generation records
and the outcome of an optimization run.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from groupify.exceptions import InvalidArgumentError
from groupify.partition import Solution


@dataclass
class Population:
    """
    Candidate solutions with their cached fitness scores.

    ``solutions`` and ``fitness_scores`` are parallel lists and are only
    changed together.

    Attributes:
        solutions: Candidate partitions
        fitness_scores: Cached fitness of each solution (same length)
    """
    solutions: list[Solution]
    fitness_scores: list[float]

    def __post_init__(self):
        """Validate lockstep lengths."""
        if len(self.solutions) != len(self.fitness_scores):
            raise ValueError(
                f"Population has {len(self.solutions)} solutions but "
                f"{len(self.fitness_scores)} fitness scores"
            )

    def best_index(self) -> int:
        """
        Index of the highest fitness (first occurrence on ties).

        Raises:
            InvalidArgumentError: If the population is empty
        """
        self._require_members()
        best = max(self.fitness_scores)
        return self.fitness_scores.index(best)

    def worst_index(self) -> int:
        """
        Index of the lowest fitness (first occurrence on ties).

        Raises:
            InvalidArgumentError: If the population is empty
        """
        self._require_members()
        worst = min(self.fitness_scores)
        return self.fitness_scores.index(worst)

    def best(self) -> Solution:
        return self.solutions[self.best_index()]

    def best_fitness(self) -> float:
        return self.fitness_scores[self.best_index()]

    def min_fitness(self) -> float:
        return self.fitness_scores[self.worst_index()]

    def replace(self, index: int, solution: Solution, fitness: float) -> None:
        """
        Replace one member and its cached fitness together.

        Args:
            index: Slot to overwrite
            solution: New solution
            fitness: Fitness of the new solution
        """
        self.solutions[index] = solution
        self.fitness_scores[index] = fitness

    def _require_members(self):
        if not self.solutions:
            raise InvalidArgumentError("Population is empty")

    def __len__(self) -> int:
        """Number of solutions in the population."""
        return len(self.solutions)


@dataclass
class GenerationRecord:
    """
    What happened in one generation.

    Attributes:
        generation: Zero-based generation number
        parent_indices: Population slots used as parent1 and parent2
        mutation_ops: Operation log of the mutation step
        child_fitness: Fitness of the mutated child
        replaced_index: Slot the child replaced, or None if it was discarded
        best_fitness: Best population fitness after replacement
        worst_fitness: Worst population fitness after replacement
    """
    generation: int
    parent_indices: tuple[int, int]
    mutation_ops: list[str]
    child_fitness: float
    replaced_index: Optional[int]
    best_fitness: float
    worst_fitness: float

    @property
    def accepted(self) -> bool:
        return self.replaced_index is not None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert record to dictionary for CSV export.

        Returns:
            Dictionary with string-serializable values
        """
        return {
            "generation": self.generation,
            "parent_indices": ",".join(str(i) for i in self.parent_indices),
            "mutation_ops": "; ".join(self.mutation_ops),
            "child_fitness": self.child_fitness,
            "replaced_index": "" if self.replaced_index is None else self.replaced_index,
            "best_fitness": self.best_fitness,
            "worst_fitness": self.worst_fitness,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationRecord":
        """
        Create record from dictionary (e.g., from CSV).

        Args:
            data: Dictionary with generation information

        Returns:
            GenerationRecord instance
        """
        first, second = (int(i) for i in str(data["parent_indices"]).split(","))
        replaced = data.get("replaced_index")

        return cls(
            generation=int(data["generation"]),
            parent_indices=(first, second),
            mutation_ops=data["mutation_ops"].split("; ") if data.get("mutation_ops") else [],
            child_fitness=float(data["child_fitness"]),
            replaced_index=int(replaced) if replaced not in (None, "") else None,
            best_fitness=float(data["best_fitness"]),
            worst_fitness=float(data["worst_fitness"]),
        )


@dataclass
class OptimizationResult:
    """
    Outcome of one optimizer run.

    Attributes:
        solution: Best partition found
        fitness: Fitness of that partition
        seed: Random seed the run used (None if an external generator was passed)
        generations_run: Number of generations actually executed
        stopped_early: True if a stop request or time limit ended the run
        population_size: Size of the population used
        history: Per-generation records
        initial_best_fitness: Best fitness of the initial population
        metadata: Additional information (config snapshot, timings)
    """
    solution: Solution
    fitness: float
    seed: Optional[int]
    generations_run: int
    stopped_early: bool
    population_size: int
    history: list[GenerationRecord] = field(default_factory=list)
    initial_best_fitness: Optional[float] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def best_fitness_curve(self) -> list[float]:
        return [record.best_fitness for record in self.history]

    def worst_fitness_curve(self) -> list[float]:
        return [record.worst_fitness for record in self.history]

    def accepted_children(self) -> int:
        return sum(1 for record in self.history if record.accepted)
