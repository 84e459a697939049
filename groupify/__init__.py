"""
Groupify - Participant Grouping Core

Partitions participants into equally-sized groups that respect mutual
preferences and balance score diversity.
"""

__version__ = "1.0.0"
__author__ = "Groupify Team"

# Export main classes for easy importing
from .exceptions import (
    GroupifyException,
    InvalidArgumentError,
    InvariantViolationError
)

from .participant import Criterion, Participant, ScaleKind
from .partition import Solution
from .preference_graph import (
    PreferenceGraph,
    PreferencePartitioner,
    build_initial_partition
)
from .fitness import evaluate, analyze_solution, sample_std_dev
from .exporter import GroupingExporter, create_grouping_files
from .visualization import GroupingVisualizer
from .config_loader import load_config, get_optimizer_config
from .mock_data import generate_mock_participants

__all__ = [
    'GroupifyException',
    'InvalidArgumentError',
    'InvariantViolationError',
    'Criterion',
    'Participant',
    'ScaleKind',
    'Solution',
    'PreferenceGraph',
    'PreferencePartitioner',
    'build_initial_partition',
    'evaluate',
    'analyze_solution',
    'sample_std_dev',
    'GroupingExporter',
    'create_grouping_files',
    'GroupingVisualizer',
    'load_config',
    'get_optimizer_config',
    'generate_mock_participants'
]
