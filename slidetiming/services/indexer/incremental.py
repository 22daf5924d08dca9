"""
Incremental fingerprint indexer.

This module keeps the fingerprint store in step with the source documents:
- Create hook: one fingerprint per timed slide
- Update hook: diff old vs. new slides by id, write only what changed
- Delete hook: drop every fingerprint of the document

Each hook runs inside a single store transaction and is serialized per
(owner, document). A failure rolls the whole hook back and propagates so the
document store can roll back the enclosing save.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

from pydantic import ValidationError as PydanticValidationError

from slidetiming.core.errors import ValidationError
from slidetiming.models.fingerprint import SlideFingerprint
from slidetiming.models.slide import SourceSlide
from slidetiming.services.fingerprints import (
    FingerprintStore,
    build_fingerprint,
    drifted_fields,
    refresh_fingerprint,
)

from .content import canonical_slide, is_indexable
from .models import IndexingStats

logger = logging.getLogger(__name__)


def coerce_slides(slides: Optional[Iterable[Any]]) -> list[SourceSlide]:
    """
    Validate raw slide payloads into SourceSlide objects.

    Raises:
        ValidationError: a slide is malformed or a slide id repeats
    """
    if slides is None:
        return []
    result: list[SourceSlide] = []
    seen: set[str] = set()
    try:
        for raw in slides:
            slide = raw if isinstance(raw, SourceSlide) else SourceSlide.model_validate(raw)
            if slide.source_slide_id in seen:
                raise ValidationError(f"Duplicate slide id: {slide.source_slide_id}")
            seen.add(slide.source_slide_id)
            result.append(slide)
    except PydanticValidationError as e:
        raise ValidationError(f"Malformed slide: {e}") from e
    return result


def _same_raw_fields(fingerprint: SlideFingerprint, slide: SourceSlide) -> bool:
    return (
        fingerprint.title,
        fingerprint.content_text,
        float(fingerprint.duration_minutes),
    ) == canonical_slide(slide)


class _DocumentLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class IncrementalIndexer:
    """
    Synchronizes the fingerprint store with the authoritative slide source.

    Writes for the same (owner, document) are serialized by a per-document
    lock; different documents index independently. A lock lives only while
    some hook holds or waits for it.
    """

    def __init__(self, store: FingerprintStore):
        self._store = store
        self._locks: dict[tuple[str, str], _DocumentLock] = {}
        self._locks_guard = threading.Lock()

    @property
    def store(self) -> FingerprintStore:
        return self._store

    @contextmanager
    def _document_write(self, owner_id: str, document_id: str) -> Iterator[None]:
        if not owner_id or not document_id:
            raise ValidationError("owner_id and document_id are required")
        key = (owner_id, document_id)
        with self._locks_guard:
            entry = self._locks.setdefault(key, _DocumentLock())
            entry.users += 1
        try:
            with entry.lock:
                try:
                    with self._store.transaction():
                        yield
                except Exception as e:
                    logger.error(f"✗ Fingerprint sync rolled back for document {document_id}: {e}")
                    raise
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]

    def _insert(self, owner_id: str, document_id: str, slide: SourceSlide) -> None:
        title, content_text, duration = canonical_slide(slide)
        self._store.create(
            owner_id,
            build_fingerprint(owner_id, document_id, slide.source_slide_id, title, content_text, duration),
        )

    def _rewrite(self, owner_id: str, document_id: str, slide: SourceSlide, stats: IndexingStats) -> None:
        """Upsert a changed slide, keeping the existing record's identity."""
        title, content_text, duration = canonical_slide(slide)
        existing = self._store.get(document_id, slide.source_slide_id)
        if existing is None:
            self._insert(owner_id, document_id, slide)
            stats.inserted += 1
            return
        self._store.update(owner_id, refresh_fingerprint(existing, title, content_text, duration))
        stats.updated += 1

    # -- hooks ----------------------------------------------------------------

    def on_document_created(
        self,
        owner_id: str,
        document_id: str,
        slides: Iterable[Any],
    ) -> IndexingStats:
        """Insert one fingerprint per timed slide of a new document."""
        new_slides = coerce_slides(slides)
        stats = IndexingStats()
        with self._document_write(owner_id, document_id):
            for slide in new_slides:
                if not is_indexable(slide):
                    stats.skipped += 1
                    continue
                self._insert(owner_id, document_id, slide)
                stats.inserted += 1
        logger.info(f"✓ Indexed new document {document_id}: {stats}")
        return stats

    def on_document_updated(
        self,
        owner_id: str,
        document_id: str,
        old_slides: Iterable[Any],
        new_slides: Iterable[Any],
    ) -> IndexingStats:
        """
        Apply only the slide-level differences between two document versions.

        Unchanged slides (equal canonical title, content and duration) cost no
        writes, so a single edit in a large document is a single write.
        """
        old_by_id = {slide.source_slide_id: slide for slide in coerce_slides(old_slides)}
        current = coerce_slides(new_slides)
        current_ids = {slide.source_slide_id for slide in current}
        stats = IndexingStats()

        with self._document_write(owner_id, document_id):
            for slide_id, old in old_by_id.items():
                if slide_id not in current_ids and is_indexable(old):
                    if self._store.delete(owner_id, document_id, slide_id):
                        stats.deleted += 1

            for slide in current:
                old = old_by_id.get(slide.source_slide_id)
                was_indexed = old is not None and is_indexable(old)

                if not is_indexable(slide):
                    if was_indexed and self._store.delete(owner_id, document_id, slide.source_slide_id):
                        stats.deleted += 1
                    else:
                        stats.skipped += 1
                    continue

                if was_indexed and canonical_slide(old) == canonical_slide(slide):
                    stats.skipped += 1
                    continue

                self._rewrite(owner_id, document_id, slide, stats)

        logger.info(f"✓ Synced document {document_id}: {stats}")
        return stats

    def on_document_deleted(self, owner_id: str, document_id: str) -> IndexingStats:
        """Drop every fingerprint of a deleted document."""
        stats = IndexingStats()
        with self._document_write(owner_id, document_id):
            stats.deleted = self._store.delete_document(owner_id, document_id)
        logger.info(f"✓ Removed document {document_id}: {stats}")
        return stats

    def reindex_document(
        self,
        owner_id: str,
        document_id: str,
        slides: Iterable[Any],
        force: bool = False,
    ) -> IndexingStats:
        """
        Re-derive a document's fingerprints from its current slides.

        Compares against what is stored rather than against a previous slide
        list, so it also heals missing, stale or drifted fingerprints.

        Args:
            owner_id: Document owner
            document_id: Source document id
            slides: Current slides in order
            force: Rewrite every fingerprint even when it looks current
        """
        current = [slide for slide in coerce_slides(slides) if is_indexable(slide)]
        keep = {slide.source_slide_id for slide in current}
        stats = IndexingStats()

        with self._document_write(owner_id, document_id):
            stored = {fp.source_slide_id: fp for fp in self._store.list_document(owner_id, document_id)}

            for slide_id in stored.keys() - keep:
                if self._store.delete(owner_id, document_id, slide_id):
                    stats.deleted += 1

            for slide in current:
                existing = stored.get(slide.source_slide_id)
                if (
                    existing is not None
                    and not force
                    and _same_raw_fields(existing, slide)
                    and not drifted_fields(existing)
                ):
                    stats.skipped += 1
                    continue
                self._rewrite(owner_id, document_id, slide, stats)

        logger.info(f"✓ Re-indexed document {document_id}: {stats}")
        return stats
