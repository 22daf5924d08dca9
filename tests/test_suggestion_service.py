"""
Unit tests for the duration suggestion service.
"""
from unittest.mock import Mock, patch

import pytest

from slidetiming.core import Settings
from slidetiming.core.errors import StoreUnavailableError, UnknownOwnerError, ValidationError
from slidetiming.models import Confidence
from slidetiming.services import get_duration_suggestion_service, get_indexer, reset_services
from slidetiming.services.fingerprints import InMemoryFingerprintStore
from slidetiming.services.suggestion import DurationSuggestionService

from conftest import ML_CONTENT, ML_DURATIONS, make_fingerprint, make_slide


@pytest.fixture
def service(ml_store, settings):
    return DurationSuggestionService(ml_store, settings)


class TestSuggest:
    """Tests for DurationSuggestionService.suggest()."""

    def test_end_to_end(self, service):
        """Eight matching slides give a high-confidence suggestion around 13 minutes."""
        suggestion = service.suggest(
            "owner-1",
            "INTRODUCTION TO MACHINE LEARNING!!!",
            ["What is ML?", "Supervised learning.", "Unsupervised learning."],
        )

        assert suggestion.sample_size == 8
        assert suggestion.average_duration == pytest.approx(13.125)
        assert suggestion.median_duration == 13.5
        assert suggestion.confidence == Confidence.HIGH

        response = suggestion.to_response()
        assert response["averageDuration"] == 13
        assert response["durationRange"]["median"] == 14

    def test_abbreviated_title_needs_lower_threshold(self, ml_store, settings):
        """'Introduction to ML' is too far from the full title at the default threshold."""
        default = DurationSuggestionService(ml_store, settings)
        assert default.suggest("owner-1", "Introduction to ML", [ML_CONTENT]) is None

        relaxed = DurationSuggestionService(ml_store, settings.model_copy(update={"title_threshold": 0.4}))
        suggestion = relaxed.suggest("owner-1", "Introduction to ML", [ML_CONTENT])
        assert suggestion.sample_size == len(ML_DURATIONS)
        assert suggestion.avg_title_similarity < 0.95

    def test_outlier_removed(self, ml_store, settings):
        ml_store.create("owner-1", make_fingerprint(document_id="doc-outlier", duration=120))
        suggestion = DurationSuggestionService(ml_store, settings).suggest(
            "owner-1", "Introduction to Machine Learning", [ML_CONTENT]
        )

        assert suggestion.sample_size == 8
        assert suggestion.average_duration == pytest.approx(13.125)

    def test_no_similar_slides(self, service):
        assert service.suggest("owner-1", "Quarterly Results", ["Revenue"]) is None

    def test_other_owner_sees_nothing(self, service):
        """Suggestions only ever use the caller's own history."""
        assert service.suggest("owner-2", "Introduction to Machine Learning", [ML_CONTENT]) is None

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_blank_title(self, service, title):
        with pytest.raises(ValidationError):
            service.suggest("owner-1", title, [])

    @pytest.mark.parametrize("content", ["a string", None, 7])
    def test_content_must_be_sequence(self, service, content):
        with pytest.raises(ValidationError):
            service.suggest("owner-1", "Title", content)

    @pytest.mark.parametrize("owner", ["", "  ", None])
    def test_blank_owner(self, service, owner):
        with pytest.raises(UnknownOwnerError):
            service.suggest(owner, "Title", [])

    def test_owner_resolver(self, ml_store, settings):
        """Owners the resolver does not know are rejected."""
        resolver = Mock(side_effect=lambda owner_id: owner_id if owner_id == "owner-1" else None)
        service = DurationSuggestionService(ml_store, settings, owner_resolver=resolver)

        assert service.suggest("owner-1", "Introduction to Machine Learning", [ML_CONTENT]) is not None
        with pytest.raises(UnknownOwnerError):
            service.suggest("ghost", "Introduction to Machine Learning", [ML_CONTENT])

    def test_store_unavailable_degrades(self, settings, caplog):
        """A store outage means no suggestion, not an error."""
        store = Mock(spec=InMemoryFingerprintStore)
        store.find_similar.side_effect = StoreUnavailableError("database locked")
        service = DurationSuggestionService(store, settings)

        assert service.suggest("owner-1", "Introduction to Machine Learning", [ML_CONTENT]) is None
        assert "store unavailable" in caplog.text

    def test_unexpected_failure_degrades(self, settings):
        store = Mock(spec=InMemoryFingerprintStore)
        store.find_similar.side_effect = RuntimeError("boom")
        service = DurationSuggestionService(store, settings)

        assert service.suggest("owner-1", "Introduction to Machine Learning", [ML_CONTENT]) is None

    def test_is_available(self, settings):
        store = Mock(spec=InMemoryFingerprintStore)
        service = DurationSuggestionService(store, settings)
        assert service.is_available is True

        store.ping.side_effect = StoreUnavailableError("gone")
        assert service.is_available is False


class TestIndexAndSuggest:
    """The indexer and the service agree on content flattening."""

    def test_structured_content_round_trip(self, memory_store, settings):
        from slidetiming.services.indexer import IncrementalIndexer

        indexer = IncrementalIndexer(memory_store)
        content = [{"type": "bullet", "text": "Agenda", "subItems": ["Goals", "Timeline"]}]
        for i, duration in enumerate([4, 5, 5, 6, 5]):
            indexer.on_document_created(
                "owner-1", f"doc-{i}", [make_slide("s1", title="Project Kickoff", content=content, duration=duration)]
            )

        suggestion = DurationSuggestionService(memory_store, settings).suggest(
            "owner-1", "Project kickoff", ["Agenda", "Goals", "Timeline"]
        )

        assert suggestion.sample_size == 5
        assert suggestion.average_duration == 5
        assert suggestion.confidence == Confidence.HIGH


class TestSingletons:
    """Tests for process-wide service wiring."""

    def test_memory_backend_from_settings(self, clean_services):
        service = get_duration_suggestion_service()

        assert service is get_duration_suggestion_service()
        assert service.store.backend_name == "memory"
        assert get_indexer().store is service.store

    def test_reset(self, clean_services):
        first = get_duration_suggestion_service()
        reset_services()
        assert get_duration_suggestion_service() is not first

    def test_sqlite_backend(self, clean_services, monkeypatch, tmp_path):
        from slidetiming.core import get_settings

        monkeypatch.setenv("STORE_BACKEND", "sqlite")
        get_settings.cache_clear()
        reset_services()

        with patch("slidetiming.services.suggestion.service.SQLiteFingerprintStore") as store_cls:
            store_cls.return_value.backend_name = "sqlite"
            service = get_duration_suggestion_service()

        store_cls.assert_called_once_with(tmp_path / "data" / "fingerprints.db")
        assert service.store.backend_name == "sqlite"
