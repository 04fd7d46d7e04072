"""Bulk vocabulary import.

Parses pasted or file-based comma-separated text into new study items.
Columns, in order:

    primary, reading, romanized, meaning, tags

Tags are separated by ``;``, ``|`` or whitespace inside the tags field.
Fields may be double-quoted to embed commas; ``""`` inside quotes is a
literal quote.

The import is best effort: blank lines, a leading header line and
malformed rows are dropped without raising. parse_bulk_import_detailed()
reports how many rows were dropped."""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass, field
from typing import List, Optional

from studydeck.core.config.importer import ImportConfig
from studydeck.core.config.scheduler import SchedulerConfig
from studydeck.core.logging import get_logger
from studydeck.study.models import PromptContent, StudyItem
from studydeck.study.scheduler import create_item, now_ms

logger = get_logger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")
_TAG_SPLIT = re.compile(r"[;|\s]+")

_DEFAULT_CONFIG = ImportConfig()


@dataclass
class ImportResult:
    """Outcome of a bulk import.

    Attributes:
        items: Newly created items, in input order
        skipped: Number of non-blank rows that were dropped
        skipped_lines: 1-based line numbers of the dropped rows
    """

    items: List[StudyItem] = field(default_factory=list)
    skipped: int = 0
    skipped_lines: List[int] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return len(self.items)

    def _skip(self, line_number: int) -> None:
        self.skipped += 1
        self.skipped_lines.append(line_number)


def split_tags(raw: str) -> List[str]:
    """Split a tags field on ``;``, ``|`` and whitespace."""
    return [tag for tag in _TAG_SPLIT.split(raw) if tag]


def _is_header(line: str, config: ImportConfig) -> bool:
    return bool(config.header_keyword) and config.header_keyword.lower() in line.lower()


def _parse_fields(line: str, config: ImportConfig) -> Optional[List[str]]:
    """Parse one line as a CSV record, or None if the quoting is broken."""
    try:
        rows = list(
            csv.reader(
                [line],
                delimiter=config.delimiter,
                quotechar='"',
                doublequote=True,
                skipinitialspace=True,
                strict=True,
            )
        )
    except csv.Error:
        return None
    if len(rows) != 1:
        return None
    return [value.strip() for value in rows[0]]


def _build_item(
    parts: List[str],
    config: ImportConfig,
    now: int,
    scheduler_config: Optional[SchedulerConfig],
) -> Optional[StudyItem]:
    if len(parts) < config.min_columns:
        return None

    padded = parts + [""] * (5 - len(parts))
    content = PromptContent(
        primary=padded[0],
        reading=padded[1],
        romanized=padded[2],
        meaning=padded[3],
    )
    if not content.primary:
        return None

    tags = list(config.default_tags) + split_tags(padded[4])
    return create_item(content, tags, now=now, config=scheduler_config)


def parse_bulk_import_detailed(
    text: str,
    config: Optional[ImportConfig] = None,
    now: Optional[int] = None,
    scheduler_config: Optional[SchedulerConfig] = None,
) -> ImportResult:
    """Parse delimited text into new study items and report dropped rows.

    Args:
        text: Raw text (clipboard paste or file contents)
        config: Import options (header keyword, delimiter)
        now: Creation time for the new items (default: wall clock)
        scheduler_config: Scheduling parameters for the new items

    Returns:
        ImportResult with the created items and the dropped-row count
    """
    config = config or _DEFAULT_CONFIG
    now = now_ms() if now is None else now
    result = ImportResult()

    for index, line in enumerate(_LINE_SPLIT.split(text or "")):
        if not line.strip():
            continue
        if index == 0 and _is_header(line, config):
            continue

        parts = _parse_fields(line, config)
        item = None
        if parts is not None:
            item = _build_item(parts, config, now, scheduler_config)

        if item is None:
            result._skip(index + 1)
            continue
        result.items.append(item)

    if result.skipped:
        logger.debug(
            "Dropped malformed import rows",
            skipped=result.skipped,
            imported=result.imported,
        )
    return result


def parse_bulk_import(
    text: str,
    config: Optional[ImportConfig] = None,
    now: Optional[int] = None,
    scheduler_config: Optional[SchedulerConfig] = None,
) -> List[StudyItem]:
    """Parse delimited text into new study items.

    Malformed rows are dropped silently.

    Examples:
        >>> items = parse_bulk_import("食べる,たべる,taberu,To eat,verb;n5")
        >>> items[0].content.primary, items[0].tags
        ('食べる', ['verb', 'n5'])
    """
    return parse_bulk_import_detailed(text, config, now, scheduler_config).items
