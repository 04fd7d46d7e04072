"""
Tests for Configuration Management.

This module tests the dataclass configuration and the YAML loader.

Test Strategy
-------------
- Focus on public API: expand_env_vars(), Config, load_config(), save_config()
- Environment overrides are applied after the file is read
- Invalid values raise ConfigValidationError naming the field

Organization
------------
- TestExpandEnvVars: Environment variable expansion
- TestConfigDefaults: Default values and derived paths
- TestConfigValidation: Rejected values
- TestLoadConfig: YAML loading and env overrides
- TestSaveConfig: Writing configuration back out
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from studydeck.core.config import (
    Config,
    SchedulerConfig,
    StorageConfig,
    expand_env_vars,
    load_config,
    save_config,
)
from studydeck.core.exceptions import ConfigValidationError


# ============================================================================
# Test Classes
# ============================================================================


class TestExpandEnvVars:
    """Tests for environment variable expansion."""

    def test_simple_expansion(self):
        with patch.dict(os.environ, {"DECK_HOME": "/data/deck"}):
            assert expand_env_vars("${DECK_HOME}") == "/data/deck"

    def test_default_used_when_unset(self):
        assert expand_env_vars("${STUDYDECK_TEST_UNSET:fallback}") == "fallback"

    def test_unset_without_default_is_empty(self):
        assert expand_env_vars("x${STUDYDECK_TEST_UNSET}y") == "xy"

    def test_nested_structures(self):
        with patch.dict(os.environ, {"DECK_NAME": "n5"}):
            result = expand_env_vars(
                {"project": {"name": "${DECK_NAME}"}, "tags": ["${DECK_NAME}", 3]}
            )

        assert result == {"project": {"name": "n5"}, "tags": ["n5", 3]}

    def test_non_strings_unchanged(self):
        assert expand_env_vars(42) == 42
        assert expand_env_vars(None) is None


class TestConfigDefaults:
    """Tests for default values and derived paths."""

    def test_scheduler_defaults(self):
        sched = Config().scheduler

        assert sched.initial_ease_factor == 2.5
        assert sched.min_ease_factor == 1.3
        assert sched.update_ease_on_failure is False
        assert sched.rating_qualities == {"again": 1, "hard": 3, "good": 4, "easy": 5}

    def test_storage_defaults(self):
        storage = Config().storage

        assert storage.backend == "sqlite"
        assert storage.legacy.enabled is True

    def test_paths_under_data_dir(self, config: Config, temp_dir: Path):
        assert config.data_path == temp_dir / ".studydeck"
        assert config.database_path == temp_dir / ".studydeck" / "deck.db"
        assert config.legacy_path == temp_dir / ".studydeck" / "flashcards.json"

    def test_log_path(self, config: Config, temp_dir: Path):
        assert config.log_path is None
        config.logging.file = "studydeck.log"
        assert config.log_path == temp_dir / ".studydeck" / "studydeck.log"

    def test_to_dict_omits_runtime_fields(self):
        data = Config().to_dict()

        assert "_base_path" not in data
        assert data["scheduler"]["pass_threshold"] == 3


class TestConfigValidation:
    """Tests for rejected configuration values."""

    def test_unknown_backend(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            Config(storage=StorageConfig(backend="redis"))
        assert exc_info.value.field == "storage.backend"

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"min_ease_factor": 0}, "scheduler.min_ease_factor"),
            ({"initial_ease_factor": 1.0}, "scheduler.initial_ease_factor"),
            ({"first_interval_days": -1}, "scheduler.first_interval_days"),
            ({"pass_threshold": 6}, "scheduler.pass_threshold"),
        ],
    )
    def test_invalid_scheduler_values(self, overrides, field):
        with pytest.raises(ConfigValidationError) as exc_info:
            Config(scheduler=SchedulerConfig(**overrides))
        assert exc_info.value.field == field

    def test_rating_quality_out_of_range(self):
        ratings = {"again": 1, "hard": 3, "good": 4, "easy": 7}
        with pytest.raises(ConfigValidationError):
            Config(scheduler=SchedulerConfig(rating_qualities=ratings))

    def test_rating_missing(self):
        with pytest.raises(ConfigValidationError, match="easy"):
            Config(scheduler=SchedulerConfig(rating_qualities={"again": 1}))

    def test_root_data_dir_rejected(self):
        with pytest.raises(ConfigValidationError):
            Config.from_dict({"project": {"data_dir": "/"}})


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults_without_file(self, temp_dir: Path):
        config = load_config(base_path=temp_dir)

        assert config.base_path == temp_dir
        assert config.storage.backend == "sqlite"

    def test_reads_studydeck_yaml(self, temp_dir: Path):
        (temp_dir / "studydeck.yaml").write_text(
            yaml.safe_dump(
                {
                    "project": {"data_dir": "decks"},
                    "scheduler": {
                        "update_ease_on_failure": True,
                        "rating_qualities": {"hard": 2},
                    },
                    "storage": {"backend": "memory", "legacy": {"enabled": False}},
                }
            ),
            encoding="utf-8",
        )

        config = load_config(base_path=temp_dir)

        assert config.data_path == temp_dir / "decks"
        assert config.scheduler.update_ease_on_failure is True
        assert config.scheduler.rating_qualities["hard"] == 2
        assert config.scheduler.rating_qualities["easy"] == 5
        assert config.storage.backend == "memory"
        assert config.storage.legacy.enabled is False

    def test_unknown_keys_ignored(self, temp_dir: Path):
        path = temp_dir / "studydeck.yaml"
        path.write_text("project:\n  name: n5\n  colour: blue\n", encoding="utf-8")

        assert load_config(path).project.name == "n5"

    def test_missing_explicit_file(self, temp_dir: Path):
        with pytest.raises(ConfigValidationError, match="not found"):
            load_config(temp_dir / "nope.yaml")

    def test_invalid_yaml(self, temp_dir: Path):
        path = temp_dir / "studydeck.yaml"
        path.write_text("project: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_top_level_must_be_mapping(self, temp_dir: Path):
        path = temp_dir / "studydeck.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError, match="mapping"):
            load_config(path)

    def test_env_overrides(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("STUDYDECK_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("STUDYDECK_DATA_DIR", "elsewhere")
        monkeypatch.setenv("STUDYDECK_LOG_LEVEL", "debug")
        monkeypatch.setenv("STUDYDECK_UPDATE_EASE_ON_FAILURE", "yes")

        config = load_config(base_path=temp_dir)

        assert config.storage.backend == "memory"
        assert config.data_path == temp_dir / "elsewhere"
        assert config.logging.level == "DEBUG"
        assert config.scheduler.update_ease_on_failure is True

    def test_invalid_env_override_ignored(
        self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("STUDYDECK_STORAGE_BACKEND", "redis")
        monkeypatch.setenv("STUDYDECK_UPDATE_EASE_ON_FAILURE", "maybe")

        config = load_config(base_path=temp_dir)

        assert config.storage.backend == "sqlite"
        assert config.scheduler.update_ease_on_failure is False


class TestSaveConfig:
    """Tests for save_config()."""

    def test_save_then_load(self, config: Config, temp_dir: Path):
        config.project.name = "jlpt-n4"
        config.scheduler.update_ease_on_failure = True

        path = save_config(config)
        assert path == temp_dir / "studydeck.yaml"

        loaded = load_config(base_path=temp_dir)
        assert loaded.project.name == "jlpt-n4"
        assert loaded.scheduler.update_ease_on_failure is True
