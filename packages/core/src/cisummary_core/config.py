import os
from pathlib import Path
from typing import Optional

import yaml

from cisummary_core.errors import ConfigurationError

DEFAULT_CONFIG: dict = {
    "title": "CI Summary",
    "max_attempts": 5,
    "retry_delay": 5.0,  # seconds; the nth retry waits retry_delay * n
    "max_jitter": 30.0,  # seconds; upper bound of the random pre-write delay
}

_POSITIVE_INT_KEYS = ("max_attempts",)
_NON_NEGATIVE_FLOAT_KEYS = ("retry_delay", "max_jitter")


def load_config(config_path: str = ".ci-summary.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .ci-summary.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Could not parse {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping of settings.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    _validate(config)

    # Resolve credentials and the Actions run context from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["repository"] = config.get("repository") or os.environ.get("GITHUB_REPOSITORY")

    return config


def _validate(config: dict) -> None:
    for key in _POSITIVE_INT_KEYS:
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(f"{key} must be a positive integer, got {value!r}.")
    for key in _NON_NEGATIVE_FLOAT_KEYS:
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ConfigurationError(f"{key} must be a non-negative number of seconds, got {value!r}.")
        config[key] = float(value)
