"""
Base configuration classes for project and logging settings.

Provides the project layout (where deck data lives) and the logging
options consumed by the CLI at startup.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ProjectConfig:
    """Project-level configuration."""

    name: str = "my-deck"
    data_dir: str = ".studydeck"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    file: Optional[str] = None  # Relative paths resolve against data_dir
    console: bool = True
