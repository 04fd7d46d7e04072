"""
Tests for the StudyDeck command-line interface.

Commands run through typer's CliRunner against the in-memory deck store
installed by the memory_deck_store fixture, except where a test exercises
the SQLite backend end to end.

Organization
------------
- TestMainCallback: --version and help
- TestAddCommand / TestImportCommand: Adding items
- TestEditDeleteSearch: Managing existing items
- TestDueStats: Read-only reports
- TestMigrateCommand: Legacy deck migration
- TestReviewCommand: Interactive review through the CLI
- TestSQLiteBackend: Commands against a real database file
"""

import asyncio
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from studydeck import __version__
from studydeck.cli.main import app
from studydeck.storage.deck_store import DeckStore
from studydeck.storage.memory import InMemoryDurableStore, InMemoryLegacyStore
from studydeck.study.progress import StudyProgress

runner = CliRunner()


@pytest.fixture(autouse=True)
def work_dir(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty directory (no studydeck.yaml)."""
    monkeypatch.chdir(temp_dir)
    return temp_dir


def stored(store: DeckStore):
    return asyncio.run(store.load())


def add(*args: str):
    return runner.invoke(app, ["add", *args])


class TestMainCallback:
    """Tests for global options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_shows_help(self, memory_deck_store):
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert "review" in result.output

    def test_bad_config_file(self, work_dir: Path):
        (work_dir / "broken.yaml").write_text("storage: [oops\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", "broken.yaml", "stats"])

        assert result.exit_code == 1


class TestAddCommand:
    """Tests for `studydeck add`."""

    def test_add(self, memory_deck_store):
        result = add("食べる", "-r", "たべる", "--romaji", "taberu", "-m", "To eat", "-t", "verb")

        assert result.exit_code == 0, result.output
        assert "Added" in result.output
        (item,) = stored(memory_deck_store)
        assert item.content.primary == "食べる"
        assert item.content.reading == "たべる"
        assert item.content.meaning == "To eat"
        assert item.tags == ["verb"]
        assert item.repetition_count == 0

    def test_duplicate_primary(self, memory_deck_store):
        add("水", "-m", "Water")
        result = add("水", "-m", "Water again")

        assert result.exit_code == 0
        assert "already in the deck" in result.output
        assert len(stored(memory_deck_store)) == 1

    def test_empty_primary(self, memory_deck_store):
        result = add("   ")

        assert result.exit_code == 1
        assert stored(memory_deck_store) == []

    def test_failed_read_does_not_overwrite_deck(
        self, memory_deck_store, memory_durable: InMemoryDurableStore
    ):
        add("水")
        add("火")
        add("木")
        memory_durable.fail_next_reads = 1

        result = add("猫", "--meaning", "cat")

        assert result.exit_code == 1
        primaries = {item.content.primary for item in stored(memory_deck_store)}
        assert primaries == {"水", "火", "木"}


class TestImportCommand:
    """Tests for `studydeck import`."""

    CSV = "kanji,kana,romaji,meaning,tags\n水,みず,mizu,Water,noun\n火\n木,き,ki,Tree,noun;n5\n"

    def test_import(self, memory_deck_store, work_dir: Path):
        path = work_dir / "words.csv"
        path.write_text(self.CSV, encoding="utf-8")

        result = runner.invoke(app, ["import", str(path)])

        assert result.exit_code == 0, result.output
        assert "Imported 2 item(s)" in result.output
        assert "Skipped 1 malformed row(s)" in result.output
        primaries = {item.content.primary for item in stored(memory_deck_store)}
        assert primaries == {"水", "木"}

    def test_dry_run(self, memory_deck_store, work_dir: Path):
        path = work_dir / "words.csv"
        path.write_text(self.CSV, encoding="utf-8")

        result = runner.invoke(app, ["import", str(path), "--dry-run"])

        assert result.exit_code == 0
        assert "Would import 2 item(s)" in result.output
        assert stored(memory_deck_store) == []

    def test_missing_file(self, memory_deck_store, work_dir: Path):
        result = runner.invoke(app, ["import", str(work_dir / "nope.csv")])
        assert result.exit_code != 0

    def test_import_after_failed_read(
        self, memory_deck_store, memory_durable: InMemoryDurableStore, work_dir: Path
    ):
        add("猫")
        path = work_dir / "words.csv"
        path.write_text(self.CSV, encoding="utf-8")
        memory_durable.fail_next_reads = 1

        result = runner.invoke(app, ["import", str(path)])

        assert result.exit_code == 1
        assert [item.content.primary for item in stored(memory_deck_store)] == ["猫"]


class TestEditDeleteSearch:
    """Tests for edit, delete and search."""

    def test_edit_meaning(self, memory_deck_store):
        add("食べる", "-m", "To eat")
        (item,) = stored(memory_deck_store)

        result = runner.invoke(app, ["edit", item.id, "-m", "To consume"])

        assert result.exit_code == 0, result.output
        (edited,) = stored(memory_deck_store)
        assert edited.content.meaning == "To consume"
        assert edited.next_review_at == item.next_review_at

    def test_edit_unknown_id(self, memory_deck_store):
        result = runner.invoke(app, ["edit", "missing", "-m", "x"])

        assert result.exit_code == 1
        assert "SD-VAL-002" in result.output

    def test_delete_with_yes(self, memory_deck_store):
        add("水")
        (item,) = stored(memory_deck_store)

        result = runner.invoke(app, ["delete", item.id, "--yes"])

        assert result.exit_code == 0
        assert "Deleted" in result.output
        assert stored(memory_deck_store) == []

    def test_delete_declined(self, memory_deck_store):
        add("水")
        (item,) = stored(memory_deck_store)

        result = runner.invoke(app, ["delete", item.id], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert len(stored(memory_deck_store)) == 1

    def test_edit_and_delete_after_failed_read(
        self, memory_deck_store, memory_durable: InMemoryDurableStore
    ):
        add("水", "-m", "Water")
        add("火", "-m", "Fire")
        item = stored(memory_deck_store)[0]

        memory_durable.fail_next_reads = 1
        edited = runner.invoke(app, ["edit", item.id, "-m", "x"])
        memory_durable.fail_next_reads = 1
        deleted = runner.invoke(app, ["delete", item.id, "--yes"])

        assert edited.exit_code == 1
        assert deleted.exit_code == 1
        items = stored(memory_deck_store)
        assert len(items) == 2
        assert {i.content.meaning for i in items} == {"Water", "Fire"}

    def test_search(self, memory_deck_store):
        add("水", "-r", "みず", "-m", "Water")
        add("火", "-r", "ひ", "-m", "Fire")

        result = runner.invoke(app, ["search", "water"])

        assert result.exit_code == 0
        assert "水" in result.output
        assert "火" not in result.output

    def test_search_no_match(self, memory_deck_store):
        result = runner.invoke(app, ["search", "nothing"])

        assert result.exit_code == 0
        assert "No items match" in result.output


class TestDueStats:
    """Tests for due and stats."""

    def test_due_lists_new_items(self, memory_deck_store):
        add("水", "-t", "noun")
        add("食べる", "-t", "verb")

        result = runner.invoke(app, ["due"])

        assert result.exit_code == 0
        assert "Due for Review: 2" in result.output
        assert "2 cards are due" in result.output

    def test_due_filtered_by_tag(self, memory_deck_store):
        add("水", "-t", "noun")
        add("食べる", "-t", "verb")

        result = runner.invoke(app, ["due", "--tag", "verb"])

        assert "Due for Review: 1" in result.output
        assert "食べる" in result.output

    def test_nothing_due(self, memory_deck_store):
        result = runner.invoke(app, ["due"])

        assert result.exit_code == 0
        assert "All caught up" in result.output

    def test_stats(self, memory_deck_store):
        add("水")

        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        assert "Deck Statistics" in result.output
        assert "Total: 1" in result.output
        assert "New: 1" in result.output

    def test_stats_shows_progress(self, memory_deck_store):
        add("水")
        assert runner.invoke(app, ["review"], input="\n3\n").exit_code == 0

        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        assert "Reviewed: 1" in result.output
        assert "Streak: 1 day(s)" in result.output

    def test_stats_broken_streak(self, memory_deck_store):
        asyncio.run(
            memory_deck_store.save(
                [],
                progress=StudyProgress(
                    cards_reviewed=30, current_streak=6, last_active_date="2020-01-01"
                ),
            )
        )

        result = runner.invoke(app, ["stats"])

        assert "Reviewed: 30" in result.output
        assert "Streak: 0 day(s)" in result.output

    def test_stats_lists_achievements(self, memory_deck_store):
        asyncio.run(
            memory_deck_store.save(
                [], progress=StudyProgress(unlocked_achievements=["on_fire"])
            )
        )

        result = runner.invoke(app, ["stats"])

        assert "Achievements: On Fire" in result.output


class TestMigrateCommand:
    """Tests for `studydeck migrate`."""

    def test_migrates_legacy_deck(
        self, memory_deck_store, memory_legacy: InMemoryLegacyStore
    ):
        memory_legacy.write(json.dumps([{"id": "1", "kanji": "水", "meanings": "Water"}]))

        result = runner.invoke(app, ["migrate"])

        assert result.exit_code == 0, result.output
        assert "Migrated 1 item(s)" in result.output
        assert memory_legacy.read() is None
        assert [item.content.primary for item in stored(memory_deck_store)] == ["水"]

    def test_no_legacy_deck(self, memory_deck_store):
        result = runner.invoke(app, ["migrate"])

        assert result.exit_code == 0
        assert "No legacy deck found" in result.output

    def test_unparseable_legacy_deck(
        self, memory_deck_store, memory_legacy: InMemoryLegacyStore
    ):
        memory_legacy.write("{not json")

        result = runner.invoke(app, ["migrate"])

        assert result.exit_code == 1
        assert "left untouched" in result.output
        assert memory_legacy.read() == "{not json"

    def test_partial_migration_keeps_legacy_deck(
        self, memory_deck_store, memory_legacy: InMemoryLegacyStore
    ):
        text = json.dumps(
            [
                {"id": "1", "kanji": "食べる", "nextReview": 0},
                {"id": "2", "kanji": "飲む", "nextReview": "soon"},
            ]
        )
        memory_legacy.write(text)

        result = runner.invoke(app, ["migrate"])

        assert result.exit_code == 0, result.output
        assert "Migrated 1 item(s)" in result.output
        assert "1 unreadable record(s) kept in the legacy deck" in result.output
        assert memory_legacy.read() == text
        assert [item.content.primary for item in stored(memory_deck_store)] == ["食べる"]


class TestReviewCommand:
    """Tests for `studydeck review`."""

    def test_review_one_item(self, memory_deck_store):
        add("水", "-m", "Water")

        result = runner.invoke(app, ["review"], input="\n3\n")

        assert result.exit_code == 0, result.output
        assert "Session complete" in result.output
        (item,) = stored(memory_deck_store)
        assert item.repetition_count == 1
        assert item.interval == 1

    def test_review_nothing_due(self, memory_deck_store):
        result = runner.invoke(app, ["review"])

        assert result.exit_code == 0
        assert "All caught up" in result.output

    def test_review_after_failed_read(
        self, memory_deck_store, memory_durable: InMemoryDurableStore
    ):
        add("水", "-m", "Water")
        memory_durable.fail_next_reads = 1

        result = runner.invoke(app, ["review"], input="\n3\n")

        assert result.exit_code == 1
        (item,) = stored(memory_deck_store)
        assert item.repetition_count == 0


class TestSQLiteBackend:
    """Commands against the default SQLite backend."""

    def test_data_persists_between_commands(
        self, work_dir: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("STUDYDECK_DATA_DIR", str(work_dir / "data"))

        assert add("水", "-m", "Water").exit_code == 0
        result = runner.invoke(app, ["search", "水"])

        assert result.exit_code == 0
        assert "Water" in result.output
        assert (work_dir / "data" / "deck.db").exists()
