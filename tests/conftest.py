"""
Shared pytest fixtures and configuration for StudyDeck tests.

This file is automatically discovered by pytest and provides fixtures
that can be used across all test files.

Fixture Organization
--------------------
- **temp_dir**: Temporary directory for file operations
- **config**: Config rooted in a temporary directory
- **make_item**: StudyItem builder with fixed scheduling state
- **memory_deck_store**: DeckStore on the in-memory backends
- **isolated_env**: Clears STUDYDECK_* environment overrides
"""

import os
from pathlib import Path
from typing import Any, Callable, Generator, List, Optional

import pytest

from studydeck.core.config import Config
from studydeck.storage.deck_store import DeckStore
from studydeck.storage.factory import set_deck_store
from studydeck.storage.memory import InMemoryDurableStore, InMemoryLegacyStore
from studydeck.study.models import PromptContent, StudyItem

# Fixed clock used across tests (2024-01-01T00:00:00Z)
NOW = 1_704_067_200_000


# ============================================================================
# Path and Environment Fixtures
# ============================================================================


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Temporary directory for test files (cleaned up by pytest)."""
    return tmp_path


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove STUDYDECK_* overrides so the host environment cannot leak in."""
    for name in list(os.environ):
        if name.startswith("STUDYDECK_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_deck_store() -> Generator[None, None, None]:
    """Drop the process-wide DeckStore after each test."""
    yield
    set_deck_store(None)


# ============================================================================
# Config Fixtures
# ============================================================================


@pytest.fixture
def config(temp_dir: Path) -> Config:
    """Default Config with data under temp_dir."""
    cfg = Config()
    cfg._base_path = temp_dir
    return cfg


# ============================================================================
# Study Item Fixtures
# ============================================================================


@pytest.fixture
def make_item() -> Callable[..., StudyItem]:
    """Build StudyItems with explicit scheduling state.

    Example:
        def test_due(make_item):
            item = make_item("a", next_review_at=0)
    """

    def _make(
        item_id: str = "item-1",
        primary: str = "食べる",
        reading: str = "たべる",
        romanized: str = "taberu",
        meaning: str = "To eat",
        interval: int = 0,
        repetition_count: int = 0,
        ease_factor: float = 2.5,
        next_review_at: int = NOW,
        tags: Optional[List[str]] = None,
    ) -> StudyItem:
        return StudyItem(
            id=item_id,
            content=PromptContent(primary, reading, romanized, meaning),
            interval=interval,
            repetition_count=repetition_count,
            ease_factor=ease_factor,
            next_review_at=next_review_at,
            tags=list(tags or []),
        )

    return _make


@pytest.fixture
def sample_items(make_item: Callable[..., StudyItem]) -> List[StudyItem]:
    """Small deck: one new, one due review, one scheduled in the future."""
    return [
        make_item("new-1", primary="食べる", next_review_at=NOW - 1000),
        make_item(
            "due-1",
            primary="飲む",
            reading="のむ",
            romanized="nomu",
            meaning="To drink",
            interval=6,
            repetition_count=2,
            next_review_at=NOW - 5000,
            tags=["verb"],
        ),
        make_item(
            "later-1",
            primary="水",
            reading="みず",
            romanized="mizu",
            meaning="Water",
            interval=20,
            repetition_count=4,
            next_review_at=NOW + 86_400_000,
            tags=["noun", "n5"],
        ),
    ]


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def memory_durable() -> InMemoryDurableStore:
    return InMemoryDurableStore()


@pytest.fixture
def memory_legacy() -> InMemoryLegacyStore:
    return InMemoryLegacyStore()


@pytest.fixture
def memory_deck_store(
    memory_durable: InMemoryDurableStore, memory_legacy: InMemoryLegacyStore
) -> DeckStore:
    """DeckStore on in-memory backends, also installed as the process-wide store."""
    store = DeckStore(memory_durable, memory_legacy)
    set_deck_store(store)
    return store


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
