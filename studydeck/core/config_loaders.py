"""
Configuration Loading and Management Functions.

Handles loading, saving, and applying environment overrides to StudyDeck
configuration.
"""

import os
import re
from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING

import yaml

from studydeck.core.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from studydeck.core.config import Config

CONFIG_FILENAMES = ("studydeck.yaml", "config.yaml")
ENV_PREFIX = "STUDYDECK_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class _Logger:
    """Lazy logger holder.

    Avoids configuring handlers at import time.
    """

    _instance = None

    @classmethod
    def get(cls) -> Any:
        """Get logger (lazy-loaded)."""
        if cls._instance is None:
            from studydeck.core.logging import get_logger

            cls._instance = get_logger(__name__)
        return cls._instance


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Handles strings with ${VAR_NAME} or ${VAR_NAME:default} syntax inside
    nested dictionaries and lists.

    Args:
        value: Configuration value (string, dict, list, or primitive)

    Returns:
        Value with all environment variables expanded
    """
    if isinstance(value, str):
        pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

        def replace_env_var(match: re.Match) -> str:
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def _get_env_whitelist(name: str, allowed: frozenset) -> Optional[str]:
    """Read an environment variable restricted to a set of values."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value not in allowed:
        _Logger.get().warning(
            "Ignoring invalid environment override", variable=name, value=raw
        )
        return None
    return value


def _get_env_bool(name: str) -> Optional[bool]:
    """Read a boolean environment variable."""
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    _Logger.get().warning(
        "Ignoring invalid environment override", variable=name, value=raw
    )
    return None


def _get_env_str(name: str) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip()


def _apply_env_overrides(config: "Config") -> "Config":
    """
    Apply environment variable overrides to configuration.

    Environment variables take precedence over config file values.
    """
    from studydeck.core.config.config import LOG_LEVELS, STORAGE_BACKENDS

    backend = _get_env_whitelist(f"{ENV_PREFIX}STORAGE_BACKEND", STORAGE_BACKENDS)
    if backend:
        config.storage.backend = backend

    data_dir = _get_env_str(f"{ENV_PREFIX}DATA_DIR")
    if data_dir:
        config.project.data_dir = data_dir

    database_file = _get_env_str(f"{ENV_PREFIX}DATABASE_FILE")
    if database_file:
        config.storage.sqlite.filename = database_file

    legacy_file = _get_env_str(f"{ENV_PREFIX}LEGACY_FILE")
    if legacy_file:
        config.storage.legacy.filename = legacy_file

    log_level = _get_env_whitelist(
        f"{ENV_PREFIX}LOG_LEVEL", frozenset(level.lower() for level in LOG_LEVELS)
    )
    if log_level:
        config.logging.level = log_level.upper()

    ease_on_failure = _get_env_bool(f"{ENV_PREFIX}UPDATE_EASE_ON_FAILURE")
    if ease_on_failure is not None:
        config.scheduler.update_ease_on_failure = ease_on_failure

    return config


def find_config_file(base_path: Path) -> Optional[Path]:
    """Return the first known config file in base_path, if any."""
    for filename in CONFIG_FILENAMES:
        candidate = base_path / filename
        if candidate.exists():
            return candidate
    return None


def load_config(
    config_path: Optional[Path] = None,
    base_path: Optional[Path] = None,
) -> "Config":
    """
    Load configuration from a YAML file.

    Args:
        config_path: Explicit path to a config file. When omitted,
            studydeck.yaml or config.yaml in base_path is used if present.
        base_path: Directory relative paths resolve against (default: cwd).

    Returns:
        Config with environment overrides applied.

    Raises:
        ConfigValidationError: If the file exists but is not valid YAML
            or contains invalid values.
    """
    from studydeck.core.config import Config

    if base_path is None:
        base_path = Path(config_path).parent if config_path else Path.cwd()

    if config_path is None:
        config_path = find_config_file(base_path)
        if config_path is None:
            return _create_default_config(base_path)
    elif not config_path.exists():
        raise ConfigValidationError(
            f"Config file not found: {config_path}",
            field="config_path",
            value=str(config_path),
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigValidationError(
            f"Could not parse {config_path}: {e}", field="config_path"
        ) from e

    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"Top level of {config_path} must be a mapping",
            field="config_path",
            value=type(data).__name__,
        )

    try:
        config = Config.from_dict(data, base_path)
    except TypeError as e:
        raise ConfigValidationError(
            f"Invalid value in {config_path}: {e}", field="config_path"
        ) from e

    _Logger.get().debug("Loaded configuration", path=config_path)
    return _apply_env_overrides(config)


def _create_default_config(base_path: Path) -> "Config":
    """Create default configuration with environment overrides."""
    from studydeck.core.config import Config

    config = Config()
    config._base_path = base_path
    return _apply_env_overrides(config)


def save_config(config: "Config", config_path: Optional[Path] = None) -> Path:
    """Save configuration to a YAML file.

    Returns:
        Path the configuration was written to
    """
    if config_path is None:
        config_path = config.base_path / CONFIG_FILENAMES[0]

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(
            config.to_dict(),
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    return config_path
