"""
Configuration Management for StudyDeck.

Dataclass hierarchy mapped onto a YAML file (``studydeck.yaml``), with
environment variable expansion and overrides.

    from studydeck.core.config import Config, load_config
    from studydeck.core.config import SchedulerConfig

Architecture
------------
    config/
    ├── base.py          # ProjectConfig, LoggingConfig
    ├── scheduler.py     # SchedulerConfig
    ├── storage.py       # StorageConfig, SQLiteConfig, LegacyConfig
    ├── importer.py      # ImportConfig
    └── config.py        # Main Config class
"""

from studydeck.core.config.config import Config, STORAGE_BACKENDS
from studydeck.core.config.base import LoggingConfig, ProjectConfig
from studydeck.core.config.importer import ImportConfig
from studydeck.core.config.scheduler import SchedulerConfig
from studydeck.core.config.storage import (
    DEFAULT_LEGACY_MAX_BYTES,
    LegacyConfig,
    SQLiteConfig,
    StorageConfig,
)
from studydeck.core.config_loaders import expand_env_vars, load_config, save_config

__all__ = [
    "Config",
    "STORAGE_BACKENDS",
    "ProjectConfig",
    "LoggingConfig",
    "SchedulerConfig",
    "StorageConfig",
    "SQLiteConfig",
    "LegacyConfig",
    "DEFAULT_LEGACY_MAX_BYTES",
    "ImportConfig",
    "expand_env_vars",
    "load_config",
    "save_config",
]
