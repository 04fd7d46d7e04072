"""
Main configuration class for StudyDeck.

This module provides the Config dataclass that aggregates all sub-configs
and handles validation, path management, and dictionary parsing.

Configuration Hierarchy
-----------------------
    Config
    ├── ProjectConfig      # Project name, data directory
    ├── LoggingConfig      # Level, optional log file
    ├── SchedulerConfig    # SM-2 parameters, rating -> quality map
    ├── StorageConfig      # Backend selection, SQLite file, legacy slot
    └── ImportConfig       # Bulk import header detection

Environment Variables
---------------------
String values may use ${VAR_NAME} or ${VAR_NAME:default}; see
studydeck.core.config_loaders.expand_env_vars().

Usage Example
-------------
    config = load_config()
    config.scheduler.update_ease_on_failure
    config.database_path  # absolute Path to the SQLite deck
"""

from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from studydeck.core.config.base import LoggingConfig, ProjectConfig
from studydeck.core.config.importer import ImportConfig
from studydeck.core.config.scheduler import SchedulerConfig
from studydeck.core.config.storage import LegacyConfig, SQLiteConfig, StorageConfig
from studydeck.core.exceptions import ConfigValidationError

STORAGE_BACKENDS = frozenset({"sqlite", "memory"})
LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
RATING_NAMES = ("again", "hard", "good", "easy")


@dataclass
class Config:
    """Main StudyDeck configuration."""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    importer: ImportConfig = field(default_factory=ImportConfig)

    # Runtime paths (set after loading)
    _base_path: Path = field(default_factory=Path.cwd, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_scheduler()
        self._validate_storage()

        if self.project.data_dir in ("/", "\\", ""):
            raise ConfigValidationError(
                f"data_dir must not be root or empty: {self.project.data_dir!r}",
                field="project.data_dir",
                value=self.project.data_dir,
            )
        if self.logging.level.upper() not in LOG_LEVELS:
            raise ConfigValidationError(
                f"logging.level must be one of {sorted(LOG_LEVELS)}",
                field="logging.level",
                value=self.logging.level,
            )

    def _validate_scheduler(self) -> None:
        sched = self.scheduler
        if sched.min_ease_factor <= 0:
            raise ConfigValidationError(
                "scheduler.min_ease_factor must be positive",
                field="scheduler.min_ease_factor",
                value=sched.min_ease_factor,
            )
        if sched.initial_ease_factor < sched.min_ease_factor:
            raise ConfigValidationError(
                "scheduler.initial_ease_factor must not be below min_ease_factor",
                field="scheduler.initial_ease_factor",
                value=sched.initial_ease_factor,
            )
        for name in (
            "first_interval_days",
            "second_interval_days",
            "fail_interval_days",
        ):
            if getattr(sched, name) < 0:
                raise ConfigValidationError(
                    f"scheduler.{name} must be >= 0",
                    field=f"scheduler.{name}",
                    value=getattr(sched, name),
                )
        if not 0 <= sched.pass_threshold <= 5:
            raise ConfigValidationError(
                "scheduler.pass_threshold must be between 0 and 5",
                field="scheduler.pass_threshold",
                value=sched.pass_threshold,
            )
        missing = [name for name in RATING_NAMES if name not in sched.rating_qualities]
        if missing:
            raise ConfigValidationError(
                f"scheduler.rating_qualities is missing {missing}",
                field="scheduler.rating_qualities",
                value=sched.rating_qualities,
            )
        for name, quality in sched.rating_qualities.items():
            if not isinstance(quality, int) or not 0 <= quality <= 5:
                raise ConfigValidationError(
                    f"scheduler.rating_qualities.{name} must be an integer 0-5",
                    field=f"scheduler.rating_qualities.{name}",
                    value=quality,
                )

    def _validate_storage(self) -> None:
        if self.storage.backend not in STORAGE_BACKENDS:
            raise ConfigValidationError(
                f"storage.backend must be one of {sorted(STORAGE_BACKENDS)}",
                field="storage.backend",
                value=self.storage.backend,
            )
        if self.storage.legacy.max_bytes <= 0:
            raise ConfigValidationError(
                "storage.legacy.max_bytes must be positive",
                field="storage.legacy.max_bytes",
                value=self.storage.legacy.max_bytes,
            )

    @property
    def base_path(self) -> Path:
        """Directory that relative paths resolve against."""
        return self._base_path

    @property
    def data_path(self) -> Path:
        """Get absolute path to data directory."""
        data_dir = Path(self.project.data_dir).expanduser()
        if data_dir.is_absolute():
            return data_dir
        return self._base_path / data_dir

    @property
    def database_path(self) -> Path:
        """Get path to the SQLite deck database."""
        return self.data_path / self.storage.sqlite.filename

    @property
    def legacy_path(self) -> Path:
        """Get path to the legacy deck slot."""
        return self.data_path / self.storage.legacy.filename

    @property
    def log_path(self) -> Optional[Path]:
        """Get path to the log file, if file logging is enabled."""
        if not self.logging.file:
            return None
        log_file = Path(self.logging.file).expanduser()
        if log_file.is_absolute():
            return log_file
        return self.data_path / log_file

    def ensure_directories(self) -> None:
        """Create the data directory."""
        self.data_path.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        result: dict[str, Any] = {}
        for key, value in asdict(self).items():
            if key.startswith("_"):
                continue
            result[key] = value
        return result

    @staticmethod
    def _filter_fields(cls_type: Any, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Filter dict to only keys that match dataclass fields, handling None."""
        if not data:
            return {}
        valid_keys = {f.name for f in fields(cls_type)}
        return {k: v for k, v in data.items() if k in valid_keys}

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], base_path: Optional[Path] = None
    ) -> "Config":
        """Create Config from dictionary."""
        # Import here to avoid circular dependency
        from studydeck.core.config_loaders import expand_env_vars

        data = expand_env_vars(data or {})

        config = cls(
            project=ProjectConfig(**cls._filter_fields(ProjectConfig, data.get("project"))),
            logging=LoggingConfig(**cls._filter_fields(LoggingConfig, data.get("logging"))),
            scheduler=cls._parse_scheduler_config(data),
            storage=cls._parse_storage_config(data),
            importer=ImportConfig(**cls._filter_fields(ImportConfig, data.get("importer"))),
        )

        if base_path:
            config._base_path = base_path

        return config

    @classmethod
    def _parse_scheduler_config(cls, data: Dict[str, Any]) -> SchedulerConfig:
        """Parse scheduler config, merging partial rating maps over the defaults."""
        scheduler_data = dict(cls._filter_fields(SchedulerConfig, data.get("scheduler")))
        ratings = scheduler_data.pop("rating_qualities", None) or {}
        scheduler = SchedulerConfig(**scheduler_data)
        scheduler.rating_qualities.update(
            {str(k).lower(): v for k, v in ratings.items()}
        )
        return scheduler

    @classmethod
    def _parse_storage_config(cls, data: Dict[str, Any]) -> StorageConfig:
        """Parse storage config with nested sqlite and legacy configs."""
        storage_data = data.get("storage") or {}
        return StorageConfig(
            backend=storage_data.get("backend", "sqlite"),
            sqlite=SQLiteConfig(
                **cls._filter_fields(SQLiteConfig, storage_data.get("sqlite"))
            ),
            legacy=LegacyConfig(
                **cls._filter_fields(LegacyConfig, storage_data.get("legacy"))
            ),
        )
