"""
Bulk import configuration.

Controls how pasted or file-based tabular vocabulary is turned into
study items.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class ImportConfig:
    """Bulk import configuration."""

    # A first line containing this word (case-insensitive) is a header
    header_keyword: str = "kanji"
    delimiter: str = ","
    min_columns: int = 2
    default_tags: List[str] = field(default_factory=list)
