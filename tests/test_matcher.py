"""
Unit tests for two-tier similarity matching.
"""
import pytest

from slidetiming.core.errors import ValidationError
from slidetiming.services.suggestion import SimilarityMatcher

from conftest import ML_CONTENT, ML_TITLE, make_fingerprint


@pytest.fixture
def matcher(memory_store):
    store = memory_store
    store.create("owner-1", make_fingerprint(document_id="d1", slide_id="exact"))
    store.create("owner-1", make_fingerprint(
        document_id="d1", slide_id="other-content", content="Supervised learning recap and quarterly revenue",
    ))
    store.create("owner-1", make_fingerprint(
        document_id="d2", slide_id="near-title", title="Introduction to Machine Learnings",
    ))
    store.create("owner-1", make_fingerprint(document_id="d3", slide_id="unrelated", title="Quarterly Results"))
    store.create("owner-2", make_fingerprint(owner_id="owner-2", document_id="d9", slide_id="foreign"))
    return SimilarityMatcher(store)


class TestSimilarityMatcher:
    """Tests for SimilarityMatcher.match()."""

    def test_both_tiers_must_pass(self, matcher):
        """Title matches with different content are dropped in tier 2."""
        candidates = matcher.match("owner-1", ML_TITLE, ML_CONTENT)

        assert [c.fingerprint.source_slide_id for c in candidates] == ["exact"]
        assert candidates[0].title_similarity == pytest.approx(1.0)
        assert candidates[0].content_similarity == pytest.approx(1.0)

    def test_normalization_equivalent_query(self, matcher):
        candidates = matcher.match("owner-1", "INTRODUCTION TO MACHINE LEARNING!!!", ML_CONTENT.upper())
        assert [c.fingerprint.source_slide_id for c in candidates] == ["exact"]

    def test_owner_scoping(self, matcher):
        """Another owner's identical slide is never a candidate."""
        candidates = matcher.match("owner-2", ML_TITLE, ML_CONTENT)
        assert [c.fingerprint.owner_id for c in candidates] == ["owner-2"]
        assert matcher.match("owner-3", ML_TITLE, ML_CONTENT) == []

    def test_no_title_matches(self, matcher):
        """Zero tier-1 matches short-circuit without a looser fallback."""
        assert matcher.match("owner-1", "Completely different topic", ML_CONTENT) == []

    def test_thresholds_are_monotonic(self, matcher):
        """Raising either threshold never adds candidates."""
        previous = None
        for threshold in (0.0, 0.3, 0.6, 0.9, 0.99):
            count = len(matcher.match("owner-1", ML_TITLE, ML_CONTENT, title_threshold=threshold, content_threshold=0.0))
            if previous is not None:
                assert count <= previous
            previous = count

        previous = None
        for threshold in (0.0, 0.3, 0.6, 0.9, 0.99):
            count = len(matcher.match("owner-1", ML_TITLE, ML_CONTENT, title_threshold=0.0, content_threshold=threshold))
            if previous is not None:
                assert count <= previous
            previous = count

    def test_ordering(self, matcher):
        """Candidates are ordered by title then content similarity."""
        candidates = matcher.match("owner-1", ML_TITLE, ML_CONTENT, title_threshold=0.5, content_threshold=0.0)
        keys = [(c.title_similarity, c.content_similarity) for c in candidates]

        assert keys == sorted(keys, key=lambda k: (-k[0], -k[1]))
        assert candidates[0].fingerprint.source_slide_id == "exact"
        assert {c.fingerprint.source_slide_id for c in candidates} == {"exact", "other-content", "near-title"}

    def test_invalid_threshold(self, matcher):
        with pytest.raises(ValidationError):
            matcher.match("owner-1", ML_TITLE, ML_CONTENT, title_threshold=2.0)
