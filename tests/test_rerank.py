"""Tests for reranking, deduplication and explanations."""

from datetime import timedelta

import pytest

from analyst.core.query_parser import parse_temporal_query
from analyst.core.rerank import dedupe, fuse, rerank
from analyst.models import TemporalCandidate
from analyst.services.explain import build_why, stance_from_sentiment
from analyst.utils import parse_utc_datetime

from conftest import NOW, make_doc


def make_candidate(article_id, title="Газ транзит", source="Tengrinews", age=timedelta(hours=2), sentiment=0.0, **scores):
    doc = make_doc(article_id, title, source=source, age=age, sentiment=sentiment)
    values = dict(
        lexical_score=0.5,
        vector_score=0.5,
        graph_score=0.0,
        temporal_score=1.0,
        centrality_score=0.0,
        trust_score=0.6,
    )
    values.update(scores)
    return TemporalCandidate(document=doc, published=parse_utc_datetime(doc.published_at), **values)


class TestRerank:
    """Tests for rerank."""

    def test_consistency_against_pool(self):
        pool = [
            make_candidate(1, "a", source="S1", sentiment=0.0),
            make_candidate(2, "b", source="S1", sentiment=0.5),
            make_candidate(3, "c", source="S2", sentiment=1.0),
        ]
        by_id = {c.article_id: c for c in rerank(pool)}

        assert by_id[1].consistency_score == pytest.approx(0.7 * 0.5 + 0.3 * 0.5)
        assert by_id[2].consistency_score == pytest.approx(0.7 * 1.0 + 0.3 * 0.5)
        assert by_id[3].consistency_score == pytest.approx(0.7 * 0.5 + 0.3 * 0.25)

    def test_source_frequency_saturates(self):
        pool = [make_candidate(i, f"t{i}", source="Same") for i in range(6)]
        for c in rerank(pool):
            assert c.consistency_score == pytest.approx(1.0)

    def test_fused_score_uses_all_weights(self):
        c = make_candidate(
            1,
            lexical_score=1.0,
            vector_score=1.0,
            graph_score=1.0,
            temporal_score=1.0,
            centrality_score=1.0,
            trust_score=1.0,
        )
        assert fuse(c, 1.0) == pytest.approx(1.0)
        assert fuse(c, 0.0) == pytest.approx(0.9)

    def test_recency_first(self):
        old_but_strong = make_candidate(1, "a", age=timedelta(days=3), lexical_score=1.0)
        new_but_weak = make_candidate(2, "b", age=timedelta(hours=1), lexical_score=0.2)
        ranked = rerank([old_but_strong, new_but_weak])
        assert [c.article_id for c in ranked] == [2, 1]

    def test_score_breaks_timestamp_ties(self):
        weak = make_candidate(1, "a", lexical_score=0.2)
        strong = make_candidate(2, "b", lexical_score=0.9)
        ranked = rerank([weak, strong])
        assert [c.article_id for c in ranked] == [2, 1]
        assert ranked[0].rerank_score > ranked[1].rerank_score

    def test_returns_new_records(self):
        original = make_candidate(1)
        ranked = rerank([original])
        assert original.rerank_score == 0.0
        assert ranked[0] is not original
        assert ranked[0].rerank_score > 0

    def test_malformed_sentiment_is_neutral(self):
        ranked = rerank([make_candidate(1, sentiment="n/a"), make_candidate(2, "b", sentiment=0.0)])
        assert len(ranked) == 2

    def test_empty(self):
        assert rerank([]) == []


class TestDedupe:
    """Tests for dedupe."""

    def test_keeps_first_occurrence(self):
        first = make_candidate(1, "Газ: транзит!", lexical_score=0.9)
        repeat = make_candidate(2, "газ транзит", lexical_score=0.1)
        other_source = make_candidate(3, "газ транзит", source="Zakon.kz")
        assert [c.article_id for c in dedupe([first, repeat, other_source])] == [1, 3]

    def test_best_ranked_duplicate_survives(self):
        # Same document matched under a boosted and a damped subquery
        damped = make_candidate(1, lexical_score=0.45)
        boosted = make_candidate(1, lexical_score=0.55)
        survivor = dedupe(rerank([damped, boosted]))
        assert len(survivor) == 1
        assert survivor[0].lexical_score == 0.55


class TestExplain:
    """Tests for build_why and stance labels."""

    def _parsed(self, snapshot, **kwargs):
        return parse_temporal_query("газ", "country", now=NOW, snapshot=snapshot, **kwargs)

    def test_all_clauses_in_order(self, snapshot):
        c = rerank([make_candidate(1, lexical_score=0.4, vector_score=0.35, graph_score=0.33)])[0]
        why = build_why(c, self._parsed(snapshot, time_from="2026-02-01"))
        parts = why.split(" · ")
        assert parts[:4] == [
            "Matches the query wording",
            "Semantically close to the query",
            "Supported by graph links",
            "Falls inside the selected period",
        ]
        assert parts[4].startswith("Rank ")

    def test_only_summary_when_weak(self, snapshot):
        c = rerank([make_candidate(1, lexical_score=0.2, vector_score=0.1)])[0]
        why = build_why(c, self._parsed(snapshot))
        assert why.startswith("Rank ")
        assert " · " not in why

    def test_summary_two_decimals(self, snapshot):
        c = make_candidate(1, centrality_score=0.375, trust_score=0.78)
        c = rerank([c])[0]
        why = build_why(c, self._parsed(snapshot))
        assert f"Rank {c.rerank_score:.2f}" in why
        assert "centrality 0.38" in why or "centrality 0.37" in why
        assert "trust 0.78" in why

    @pytest.mark.parametrize(
        "sentiment,expected",
        [(0.5, "pro_russia"), (0.21, "pro_russia"), (0.2, "neutral"), (-0.2, "neutral"), (-0.7, "anti_russia"), (None, "neutral")],
    )
    def test_stance(self, sentiment, expected):
        assert stance_from_sentiment(sentiment) == expected
