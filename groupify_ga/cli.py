"""
CLI module for batch grouping runs.

Handles run configuration loading, validation, and mode dispatching.
"""

from pathlib import Path
from typing import Any, Dict

import yaml

from groupify.config_loader import ConfigurationError, validate_config

RUN_MODES = ['single', 'trials']


class ConfigValidationError(Exception):
    """Raised when run configuration is invalid."""
    pass


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")

    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration root must be a mapping")

    return config


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    # Check mode field
    if 'mode' not in config:
        raise ConfigValidationError("Missing required field: 'mode'")

    mode = config['mode']
    if mode not in RUN_MODES:
        raise ConfigValidationError(
            f"Invalid mode: '{mode}'. Must be 'single' or 'trials'"
        )

    # Check common required fields
    for field in ['input', 'output', 'grouping']:
        if field not in config:
            raise ConfigValidationError(f"Missing required field: '{field}'")
        if not isinstance(config[field], dict):
            raise ConfigValidationError(f"'{field}' must be a dictionary")

    if 'participants' not in config['input']:
        raise ConfigValidationError("Missing required field: 'input.participants'")

    participants_path = Path(config['input']['participants'])
    if not participants_path.exists():
        raise ConfigValidationError(f"Participant file not found: {participants_path}")

    if 'root' not in config['output']:
        raise ConfigValidationError("Missing required field: 'output.root'")

    group_count = config['grouping'].get('group_count')
    if not _is_positive_int(group_count):
        raise ConfigValidationError(
            f"'grouping.group_count' must be a positive integer, got: {group_count}"
        )

    if config.get('config'):
        system_config = Path(config['config'])
        if not system_config.exists():
            raise ConfigValidationError(f"System config not found: {system_config}")

    # Optimizer overrides follow the same rules as the system config
    issues = validate_config({
        'optimization': config.get('optimization') or {},
    })
    if 'random_seed' in config:
        issues += validate_config({'optimization': {'random_seed': config['random_seed']}})
    if issues:
        raise ConfigValidationError("Invalid optimization settings: " + "; ".join(issues))

    # Mode-specific validation
    if mode == 'trials':
        _validate_trials_config(config)


def _validate_trials_config(config: Dict[str, Any]) -> None:
    """
    Validate trials mode configuration.

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    trials = config.get('trials')
    if not isinstance(trials, dict) or 'count' not in trials:
        raise ConfigValidationError("Trials mode requires 'trials.count' field")

    if not _is_positive_int(trials['count']):
        raise ConfigValidationError(
            f"'trials.count' must be a positive integer, got: {trials['count']}"
        )


def run_from_config(config_path: str) -> None:
    """
    Load run configuration and execute appropriate mode.

    This is the main entry point called by ga_cli.py.

    Args:
        config_path: Path to run configuration YAML file

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
        Various exceptions from mode implementations
    """
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)

    print(f"Validating configuration...")
    validate_run_config(config)

    mode = config['mode']
    print(f"Mode: {mode}\n")

    try:
        if mode == 'single':
            from .orchestration import run_single_mode
            run_single_mode(config)
        elif mode == 'trials':
            from .orchestration import run_trials_mode
            run_trials_mode(config)
        else:
            # Should never reach here due to validation
            raise ConfigValidationError(f"Invalid mode: {mode}")
    except ConfigurationError as e:
        raise ConfigValidationError(str(e))

    print("\n✅ Run completed successfully!")
