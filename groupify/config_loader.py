"""
Configuration Loading System

Loads YAML configuration files for the grouping optimizer and merges them
onto the built-in defaults.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .fitness import DISPERSION_MODES


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


DEFAULT_OPTIMIZER_CONFIG: Dict[str, Any] = {
    'generations': 180,
    'mutation_rate': 0.5,
    # None couples the population size to the group count
    'population_size': None,
    'random_seed': None,
    'workers': 1,
    'time_limit': None,
    'recompute_fitness': False,
    'dispersion': 'legacy',
}


def load_config(config_path: Union[str, Path] = "config.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file"""
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")
    return config


def resolve_random_seed(seed: Any) -> Optional[int]:
    """
    Normalize a configured random seed.

    Args:
        seed: None, an int, a digit string, or the string "random"

    Returns:
        Integer seed, or None when the run should draw its own seed

    Raises:
        ConfigurationError: If the value cannot be interpreted
    """
    if seed is None:
        return None
    if isinstance(seed, str):
        if seed == "random":
            return int(time.time() * 1000000) % 2147483647
        if seed.isdigit():
            return int(seed)
        raise ConfigurationError(f"Invalid random_seed: {seed!r}")
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise ConfigurationError(f"Invalid random_seed: {seed!r}")
    return seed


def get_optimizer_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge the ``optimization`` section onto the defaults.

    Args:
        config: Full configuration dictionary (or None for defaults only)

    Returns:
        Optimizer settings dictionary
    """
    merged = dict(DEFAULT_OPTIMIZER_CONFIG)
    if config:
        merged.update(config.get("optimization") or {})
    merged['random_seed'] = resolve_random_seed(merged.get('random_seed'))
    return merged


def get_grouping_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get grouping configuration"""
    return config.get("grouping") or {}


def get_visualization_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get visualization configuration"""
    return config.get("visualization") or {}


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of issues

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    grouping = config.get("grouping") or {}
    group_count = grouping.get("group_count")
    if group_count is not None:
        if isinstance(group_count, bool) or not isinstance(group_count, int) or group_count <= 0:
            issues.append(f"grouping.group_count must be a positive integer, got: {group_count}")

    optimization = config.get("optimization") or {}

    generations = optimization.get("generations", DEFAULT_OPTIMIZER_CONFIG['generations'])
    if isinstance(generations, bool) or not isinstance(generations, int) or generations < 0:
        issues.append(f"optimization.generations must be a non-negative integer, got: {generations}")

    mutation_rate = optimization.get("mutation_rate", DEFAULT_OPTIMIZER_CONFIG['mutation_rate'])
    if not isinstance(mutation_rate, (int, float)) or not 0.0 <= mutation_rate <= 1.0:
        issues.append(f"optimization.mutation_rate must be within [0, 1], got: {mutation_rate}")

    population_size = optimization.get("population_size")
    if population_size is not None:
        if isinstance(population_size, bool) or not isinstance(population_size, int) or population_size <= 0:
            issues.append(f"optimization.population_size must be a positive integer, got: {population_size}")

    workers = optimization.get("workers", 1)
    if isinstance(workers, bool) or not isinstance(workers, int) or workers <= 0:
        issues.append(f"optimization.workers must be a positive integer, got: {workers}")

    time_limit = optimization.get("time_limit")
    if time_limit is not None and (not isinstance(time_limit, (int, float)) or time_limit <= 0):
        issues.append(f"optimization.time_limit must be a positive number of seconds, got: {time_limit}")

    dispersion = optimization.get("dispersion", DEFAULT_OPTIMIZER_CONFIG['dispersion'])
    if dispersion not in DISPERSION_MODES:
        issues.append(f"optimization.dispersion must be one of {DISPERSION_MODES}, got: {dispersion}")

    try:
        resolve_random_seed(optimization.get("random_seed"))
    except ConfigurationError as e:
        issues.append(str(e))

    return issues


def print_config_summary(config_path: Union[str, Path] = "config.yaml"):
    """Print a summary of the configuration"""
    try:
        config = load_config(config_path)

        print("=" * 50)
        print("CONFIGURATION SUMMARY")
        print("=" * 50)

        grouping = get_grouping_config(config)
        print(f"Participants: {grouping.get('participants', 'N/A')}")
        print(f"Group count: {grouping.get('group_count', 'N/A')}")

        optimization = config.get("optimization") or {}
        print(f"\nOptimization:")
        for key, default in DEFAULT_OPTIMIZER_CONFIG.items():
            value = optimization.get(key, default)
            if key == 'population_size' and value is None:
                value = 'group count'
            print(f"  {key}: {value}")

        issues = validate_config(config)
        if issues:
            print(f"\nValidation Issues ({len(issues)}):")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print("\nConfiguration is valid ✓")

        print("=" * 50)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
