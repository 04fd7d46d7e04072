"""Tests for study item model and record codec.

Tests:
- ReviewRating key resolution
- to_record / from_record field mapping
- Legacy record layout
- Rejection of incomplete records
"""

from typing import Callable

import pytest

from studydeck.study.models import (
    PromptContent,
    ReviewRating,
    StudyItem,
    from_record,
    to_record,
)


class TestReviewRating:
    """Test rating lookup."""

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("1", ReviewRating.AGAIN),
            ("4", ReviewRating.EASY),
            ("good", ReviewRating.GOOD),
            (" Hard ", ReviewRating.HARD),
        ],
    )
    def test_from_key(self, key: str, expected: ReviewRating) -> None:
        assert ReviewRating.from_key(key) is expected

    def test_unknown_key(self) -> None:
        with pytest.raises(ValueError):
            ReviewRating.from_key("5")

    def test_label(self) -> None:
        assert ReviewRating.AGAIN.label == "Again"


class TestStudyItem:
    """Test StudyItem properties."""

    def test_is_due_inclusive(self, make_item: Callable[..., StudyItem]) -> None:
        item = make_item(next_review_at=100)
        assert item.is_due(100)
        assert not item.is_due(99)

    def test_is_new(self, make_item: Callable[..., StudyItem]) -> None:
        assert make_item(repetition_count=0).is_new
        assert not make_item(repetition_count=1).is_new


class TestRecordCodec:
    """Test record serialization."""

    def test_record_keys(self, make_item: Callable[..., StudyItem]) -> None:
        record = to_record(make_item(tags=["verb"]))
        assert record == {
            "id": "item-1",
            "primary": "食べる",
            "reading": "たべる",
            "romanized": "taberu",
            "meaning": "To eat",
            "interval": 0,
            "repetition_count": 0,
            "ease_factor": 2.5,
            "next_review_at": 1_704_067_200_000,
            "tags": ["verb"],
        }

    def test_decode_encoded(self, make_item: Callable[..., StudyItem]) -> None:
        item = make_item(interval=6, repetition_count=2, ease_factor=2.36, tags=["a"])
        assert from_record(to_record(item)) == item

    def test_legacy_layout(self) -> None:
        legacy = {
            "id": "1700000000000abc",
            "kanji": "水",
            "kana": "みず",
            "romaji": "mizu",
            "meanings": "Water",
            "interval": 6,
            "repetition": 2,
            "ef": 2.6,
            "nextReview": 1700000000000,
            "tags": ["noun"],
        }
        item = from_record(legacy)
        assert item == StudyItem(
            id="1700000000000abc",
            content=PromptContent("水", "みず", "mizu", "Water"),
            interval=6,
            repetition_count=2,
            ease_factor=2.6,
            next_review_at=1700000000000,
            tags=["noun"],
        )

    @pytest.mark.parametrize(
        "record",
        [
            {"primary": "水"},
            {"id": "x"},
            {"id": "", "primary": "水"},
            {"id": "x", "primary": "水", "interval": "soon"},
            ["not", "a", "mapping"],
        ],
    )
    def test_invalid_records(self, record: object) -> None:
        assert from_record(record) is None  # type: ignore[arg-type]

    def test_missing_scheduling_defaults(self) -> None:
        item = from_record({"id": "x", "primary": "水"})
        assert item is not None
        assert item.ease_factor == 2.5
        assert item.interval == 0
        assert item.tags == []
