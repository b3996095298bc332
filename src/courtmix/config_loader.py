"""Configuration loader and validator."""

from pathlib import Path
from typing import Any

import yaml

from courtmix.engine import MAX_COURTS, MIN_COURTS
from courtmix.formats import ROUND_GENERATORS
from courtmix.models import Mode
from courtmix.pairing import DEFAULT_MAX_RETRIES


class ConfigError(Exception):
    """Configuration validation error."""

    pass


def load_config(path: str) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        Dictionary with configuration values

    Raises:
        ConfigError: If file not found or invalid YAML
    """
    config_file = Path(path)

    if not config_file.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")

    if config is None:
        raise ConfigError("Config file is empty")

    if not isinstance(config, dict):
        raise ConfigError("Config file must contain a mapping")

    return config


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Validate configuration values.

    Args:
        config: Configuration dictionary

    Returns:
        Validated and normalized configuration

    Raises:
        ConfigError: If validation fails
    """
    validated = {}

    # Courts (optional, default 6)
    courts = config.get("courts", MAX_COURTS)
    if not isinstance(courts, int) or isinstance(courts, bool):
        raise ConfigError("courts must be an integer")
    if not MIN_COURTS <= courts <= MAX_COURTS:
        raise ConfigError(f"courts must be between {MIN_COURTS} and {MAX_COURTS}, got {courts}")
    validated["courts"] = courts

    # Mode (optional, default random)
    mode = config.get("mode", Mode.RANDOM.value)
    if mode not in ROUND_GENERATORS:
        raise ConfigError(f"mode must be one of {sorted(ROUND_GENERATORS)}, got '{mode}'")
    validated["mode"] = mode

    # Retry budget for pairing searches (optional, default 800)
    max_retries = config.get("max_retries", DEFAULT_MAX_RETRIES)
    if not isinstance(max_retries, int) or isinstance(max_retries, bool) or max_retries < 1:
        raise ConfigError("max_retries must be a positive integer")
    validated["max_retries"] = max_retries

    # Random seed (optional, default None = not reproducible)
    random_seed = config.get("random_seed")
    if random_seed is not None and (not isinstance(random_seed, int) or isinstance(random_seed, bool)):
        raise ConfigError("random_seed must be an integer")
    validated["random_seed"] = random_seed

    # Database path (optional, None = default data directory)
    database = config.get("database")
    if database is not None and not isinstance(database, str):
        raise ConfigError("database must be a path string")
    validated["database"] = database

    return validated


def load_and_validate_config(path: str) -> dict[str, Any]:
    """Load and validate configuration in one step.

    Args:
        path: Path to YAML config file

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigError: If loading or validation fails
    """
    config = load_config(path)
    return validate_config(config)
