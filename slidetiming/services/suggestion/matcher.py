"""
Two-tier similarity matching against an owner's fingerprints.

Tier 1 uses the title index with a strict threshold to shrink the candidate
set cheaply; tier 2 scores content only for tier-1 survivors. There is no
fallback to a looser search when tier 1 comes back empty.
"""
import logging

from slidetiming.models.fingerprint import SimilarityCandidate
from slidetiming.services.fingerprints import FingerprintStore, normalize, trigram_similarity
from slidetiming.services.fingerprints.store import check_threshold

logger = logging.getLogger(__name__)

DEFAULT_TITLE_THRESHOLD = 0.95
DEFAULT_CONTENT_THRESHOLD = 0.90


class SimilarityMatcher:
    """Finds fingerprints whose title and content both clear their thresholds."""

    def __init__(self, store: FingerprintStore):
        self._store = store

    def match(
        self,
        owner_id: str,
        title: str,
        content: str,
        title_threshold: float = DEFAULT_TITLE_THRESHOLD,
        content_threshold: float = DEFAULT_CONTENT_THRESHOLD,
    ) -> list[SimilarityCandidate]:
        """
        Run both tiers for one query.

        Args:
            owner_id: Only this owner's fingerprints are searched
            title: Raw query title
            content: Raw query content, already flattened to one string
            title_threshold: Tier-1 title similarity must exceed this
            content_threshold: Tier-2 content similarity must exceed this

        Returns:
            Candidates ordered by title similarity, then content similarity
        """
        check_threshold(title_threshold)
        check_threshold(content_threshold)

        title_normalized = normalize(title)
        title_hits = self._store.find_similar(owner_id, title_normalized, title_threshold, field="title")
        if not title_hits:
            logger.debug(f"No tier-1 title matches for '{title_normalized[:40]}'")
            return []

        content_normalized = normalize(content)
        candidates = []
        for fingerprint, title_similarity in title_hits:
            content_similarity = trigram_similarity(content_normalized, fingerprint.content_normalized)
            if content_similarity > content_threshold:
                candidates.append(SimilarityCandidate(
                    fingerprint=fingerprint,
                    title_similarity=title_similarity,
                    content_similarity=content_similarity,
                ))

        candidates.sort(key=lambda c: (-c.title_similarity, -c.content_similarity))
        logger.debug(
            f"Matched {len(candidates)}/{len(title_hits)} tier-1 candidates for "
            f"'{title_normalized[:40]}'"
        )
        return candidates
