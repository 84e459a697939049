"""
Visualization for Grouping Results

Plots optimizer progress and the score make-up of each group.
"""

import matplotlib.pyplot as plt
import numpy as np
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .fitness import analyze_solution
from .partition import Solution


class GroupingVisualizer:
    """Visualization of one optimization run"""

    def __init__(self, solution: Solution, dispersion: str = "legacy"):
        self.solution = solution
        self.analysis = analyze_solution(solution, dispersion)

    def plot_comprehensive_analysis(self,
                                    best_fitness: Sequence[float],
                                    worst_fitness: Sequence[float],
                                    figsize: Tuple[int, int] = (14, 10),
                                    save_path: Optional[str] = None,
                                    show: bool = False):
        """
        Create a multi-panel figure

        Args:
            best_fitness: Best population fitness per generation
            worst_fitness: Worst population fitness per generation
            figsize: Figure size (width, height)
            save_path: Optional path to save the figure
            show: Display the figure interactively
        """
        fig = plt.figure(figsize=figsize)
        gs = fig.add_gridspec(2, 2, height_ratios=[1, 1])

        ax_history = fig.add_subplot(gs[0, :])
        self.plot_fitness_history(best_fitness, worst_fitness, ax_history)

        ax_scores = fig.add_subplot(gs[1, 0])
        self.plot_group_scores(ax_scores)

        ax_terms = fig.add_subplot(gs[1, 1])
        self.plot_group_terms(ax_terms)

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        if show:
            plt.show()
        else:
            plt.close(fig)

    def plot_fitness_history(self,
                             best_fitness: Sequence[float],
                             worst_fitness: Sequence[float],
                             ax: plt.Axes = None):
        """Best and worst population fitness across generations"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(10, 4))

        generations = np.arange(len(best_fitness))
        ax.plot(generations, best_fitness, color="green", linewidth=2, label="best")
        ax.plot(generations, worst_fitness, color="red", linewidth=1, alpha=0.7, label="worst")
        ax.fill_between(generations, worst_fitness, best_fitness, color="gray", alpha=0.15)

        ax.set_xlabel("Generation")
        ax.set_ylabel("Fitness")
        ax.set_title("Population fitness")
        ax.grid(True, alpha=0.3)
        ax.legend(loc="lower right")

    def plot_group_scores(self, ax: plt.Axes = None):
        """Box plot of member scores per group"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 5))

        scores: List[List[float]] = [
            [member.score() for member in group] for group in self.solution.groups
        ]
        labels = [f"G{i + 1}" for i in range(len(scores))]

        if scores:
            ax.boxplot(scores, showmeans=True)
            ax.set_xticks(range(1, len(labels) + 1))
            ax.set_xticklabels(labels)

        ax.set_ylabel("Participant score")
        ax.set_title("Scores by group")
        ax.grid(True, axis="y", alpha=0.3)

    def plot_group_terms(self, ax: plt.Axes = None):
        """Diversity and satisfied members per group"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 5))

        details: List[Dict[str, Any]] = self.analysis['groups']
        x = np.arange(len(details))
        width = 0.4

        ax.bar(x - width / 2, [d['diversity'] for d in details], width,
               color="steelblue", label="diversity")
        ax.bar(x + width / 2, [d['satisfied'] for d in details], width,
               color="orange", label="satisfied members")

        ax.set_xticks(x)
        ax.set_xticklabels([f"G{d['group'] + 1}" for d in details])
        ax.set_title(
            f"Fitness {self.analysis['fitness']:.2f} "
            f"(satisfaction {self.analysis['preference_satisfaction']})"
        )
        ax.legend()
