"""
Duration Suggestion Service

Orchestrates matching, outlier filtering, aggregation and confidence scoring
into one synchronous query. Suggestions are advisory: store outages and
unexpected failures degrade to "no suggestion" instead of surfacing to users.
"""
import logging
import time
from collections.abc import Sequence
from typing import Any, Callable, Optional

from slidetiming.core import get_settings
from slidetiming.core.config import Settings
from slidetiming.core.errors import StoreUnavailableError, UnknownOwnerError, ValidationError
from slidetiming.models.suggestion import DurationSuggestion
from slidetiming.services.fingerprints import (
    FingerprintStore,
    InMemoryFingerprintStore,
    SQLiteFingerprintStore,
)
from slidetiming.services.indexer import IncrementalIndexer, flatten_content

from .aggregation import aggregate, filter_candidates
from .confidence import ConfidencePolicy
from .matcher import SimilarityMatcher

logger = logging.getLogger(__name__)

OwnerResolver = Callable[[str], Optional[str]]


def accept_any_owner(owner_id: str) -> Optional[str]:
    """Default resolver: authentication upstream already vouched for the id."""
    return owner_id


class DurationSuggestionService:
    """
    Suggests a slide duration from the owner's similar, already-timed slides.

    Stateless per request; the only shared state is the injected store.
    """

    def __init__(
        self,
        store: FingerprintStore,
        settings: Optional[Settings] = None,
        owner_resolver: OwnerResolver = accept_any_owner,
    ):
        self._store = store
        self._settings = settings or get_settings()
        self._owner_resolver = owner_resolver
        self._matcher = SimilarityMatcher(store)
        self._policy = ConfidencePolicy.from_settings(self._settings)

    @property
    def store(self) -> FingerprintStore:
        return self._store

    @property
    def is_available(self) -> bool:
        """Check if the fingerprint store answers."""
        try:
            self._store.ping()
        except StoreUnavailableError as e:
            logger.warning(f"Fingerprint store unavailable: {e}")
            return False
        return True

    def _resolve_owner(self, owner_id: Optional[str]) -> str:
        if not owner_id or not owner_id.strip():
            raise UnknownOwnerError(owner_id)
        resolved = self._owner_resolver(owner_id)
        if not resolved:
            raise UnknownOwnerError(owner_id)
        return resolved

    @staticmethod
    def _validate(title: Any, content: Any) -> str:
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("A non-empty slide title is required")
        if isinstance(content, (str, bytes)) or not isinstance(content, Sequence):
            raise ValidationError("Slide content must be a sequence of text fragments")
        return flatten_content(content)

    def suggest(
        self,
        owner_id: Optional[str],
        title: str,
        content: Sequence[Any],
    ) -> Optional[DurationSuggestion]:
        """
        Suggest a duration for a slide.

        Args:
            owner_id: Author whose history is searched
            title: Slide title
            content: Ordered content fragments (strings or content items)

        Returns:
            DurationSuggestion, or None when nothing similar was found or the
            store could not answer

        Raises:
            ValidationError: blank title or non-sequence content
            UnknownOwnerError: owner id could not be resolved
        """
        content_text = self._validate(title, content)
        owner = self._resolve_owner(owner_id)
        start_time = time.time()

        try:
            candidates = self._matcher.match(
                owner,
                title,
                content_text,
                title_threshold=self._settings.title_threshold,
                content_threshold=self._settings.content_threshold,
            )
            kept = filter_candidates(candidates, self._settings.iqr_multiplier)
            suggestion = aggregate([c.duration_minutes for c in kept], kept, self._policy)
        except StoreUnavailableError as e:
            logger.error(f"Duration suggestion skipped, store unavailable: {e}")
            return None
        except (ValidationError, UnknownOwnerError):
            raise
        except Exception as e:
            logger.exception(f"Duration suggestion failed unexpectedly: {e}")
            return None

        elapsed_ms = round((time.time() - start_time) * 1000, 2)
        if suggestion is None:
            logger.info(f"No similar slides for '{title[:30]}' ({elapsed_ms}ms)")
        else:
            logger.info(
                f"'{title[:30]}' -> sample_size: {suggestion.sample_size}, "
                f"avg: {suggestion.average_duration:.2f}, "
                f"confidence: {suggestion.confidence.value} ({elapsed_ms}ms)"
            )
        return suggestion


def create_store(settings: Settings) -> FingerprintStore:
    """Build the configured fingerprint store backend."""
    if settings.store_backend == "sqlite":
        settings.ensure_directories()
        return SQLiteFingerprintStore(settings.database_path)
    return InMemoryFingerprintStore()


# Singleton instances
_store: Optional[FingerprintStore] = None
_suggestion_service: Optional[DurationSuggestionService] = None
_indexer: Optional[IncrementalIndexer] = None


def get_fingerprint_store() -> FingerprintStore:
    """Get the process-wide fingerprint store."""
    global _store
    if _store is None:
        _store = create_store(get_settings())
    return _store


def get_duration_suggestion_service() -> DurationSuggestionService:
    """Get the singleton duration suggestion service instance."""
    global _suggestion_service
    if _suggestion_service is None:
        _suggestion_service = DurationSuggestionService(get_fingerprint_store(), get_settings())
    return _suggestion_service


def get_indexer() -> IncrementalIndexer:
    """Get the singleton indexer bound to the process-wide store."""
    global _indexer
    if _indexer is None:
        _indexer = IncrementalIndexer(get_fingerprint_store())
    return _indexer


def reset_services() -> None:
    """Drop cached singletons (tests, settings reloads)."""
    global _store, _suggestion_service, _indexer
    _store = None
    _suggestion_service = None
    _indexer = None
