"""Tests for text normalization, tokenization, dates and hashed vectors."""

from datetime import datetime, timezone

import pytest

from analyst.core.vectors import cosine, hashed_vector, term_hash
from analyst.utils import iso, median, normalize_text, parse_utc_datetime, tokenize


class TestNormalizeText:
    """Tests for normalize_text."""

    def test_lowercases_and_strips_punctuation(self):
        assert normalize_text("Газпром: Transit-Talks, RESUME!") == "газпром transit talks resume"

    def test_folds_yo(self):
        assert normalize_text("Ёлка и всё") == "елка и все"

    def test_collapses_whitespace(self):
        assert normalize_text("  a \t\n b   c ") == "a b c"

    def test_none_and_empty(self):
        assert normalize_text(None) == ""
        assert normalize_text("") == ""

    @pytest.mark.parametrize(
        "text",
        ["Подробно.uz", "Кавказский   узел!!", "Ёжик — в тумане", "civil.ge/news?id=1", "  "],
    )
    def test_idempotent(self, text):
        once = normalize_text(text)
        assert normalize_text(once) == once


class TestTokenize:
    """Tests for tokenize."""

    def test_drops_single_characters(self):
        assert tokenize("Газ и транзит в ЕС") == ["газ", "транзит", "ес"]

    def test_empty(self):
        assert tokenize(None) == []


class TestDates:
    """Tests for date helpers."""

    def test_parse_iso_with_zone(self):
        parsed = parse_utc_datetime("2026-02-12T11:00:00+03:00")
        assert parsed == datetime(2026, 2, 12, 8, 0, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        parsed = parse_utc_datetime("2026-02-12T08:00:00")
        assert parsed.tzinfo == timezone.utc
        assert parsed.hour == 8

    @pytest.mark.parametrize("value", [None, "", "garbage", "12:00", "Feb 2026"])
    def test_unparsable_is_none(self, value):
        assert parse_utc_datetime(value) is None

    def test_date_only_is_midnight_utc(self):
        assert parse_utc_datetime("2026-02-01") == datetime(2026, 2, 1, tzinfo=timezone.utc)

    def test_iso_has_millis_and_z(self):
        assert iso(datetime(2026, 2, 12, 8, 0, tzinfo=timezone.utc)) == "2026-02-12T08:00:00.000Z"

    def test_median(self):
        assert median([]) == 0.0
        assert median([3, 1, 2]) == 2
        assert median([1, 2, 3, 4]) == 2.5


class TestHashedVector:
    """Tests for the hashed bag-of-terms encoder."""

    def test_hash_matches_rolling_hash(self):
        # "ab" -> 97 * 31 + 98
        assert term_hash("ab") == 3105

    def test_hash_wraps_to_signed_32_bit(self):
        h = term_hash("a much longer term that overflows")
        assert -(2 ** 31) <= h < 2 ** 31

    def test_vector_shape_and_counts(self):
        vec = hashed_vector("газ газ транзит")
        assert len(vec) == 64
        assert sum(vec) == 3
        assert max(vec) >= 2

    def test_deterministic(self):
        assert hashed_vector("Газпром transit talks") == hashed_vector("Газпром transit talks")

    def test_custom_dims(self):
        assert len(hashed_vector("газ", dims=16)) == 16

    def test_cosine_identical(self):
        vec = hashed_vector("газ транзит")
        assert cosine(vec, vec) == pytest.approx(1.0)

    def test_cosine_degenerate(self):
        assert cosine([0.0] * 4, [1.0] * 4) == 0.0
        assert cosine([1.0], [1.0, 2.0]) == 0.0
        assert cosine([], []) == 0.0

    def test_disjoint_buckets(self):
        a = hashed_vector("Газпром")
        b = hashed_vector("Unrelated local sports news Local Daily")
        assert cosine(a, b) == 0.0
