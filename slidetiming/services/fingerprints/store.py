"""
Fingerprint store interface and the in-memory implementation.

The store is always injected into the indexer, matcher and suggestion
service so tests and alternative backends can be substituted freely.
"""
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional

from slidetiming.core.errors import (
    DuplicateFingerprintError,
    FingerprintNotFoundError,
    OwnerMismatchError,
    ValidationError,
)
from slidetiming.models.fingerprint import FingerprintField, SlideFingerprint

from .trigram import TrigramIndex, trigram_similarity

logger = logging.getLogger(__name__)

FINGERPRINT_FIELDS: tuple[FingerprintField, ...] = ("title", "content")

# Marks a key deleted inside a pending transaction
_TOMBSTONE = None


def check_field(field: str) -> None:
    """Reject unknown similarity index names."""
    if field not in FINGERPRINT_FIELDS:
        raise ValidationError(f"Unknown fingerprint field: {field!r}")


def check_threshold(threshold: float) -> None:
    """Reject thresholds outside [0, 1]."""
    if threshold is None or not 0.0 <= threshold <= 1.0:
        raise ValidationError(f"Similarity threshold must be within [0, 1], got {threshold}")


class FingerprintStore(ABC):
    """
    CRUD and similarity search over slide fingerprints, scoped per owner.

    Every write fails closed: the caller's owner id must match both the
    fingerprint being written and any record it replaces or removes.
    """

    backend_name = "abstract"

    @abstractmethod
    def get(self, source_document_id: str, source_slide_id: str) -> Optional[SlideFingerprint]:
        """Fetch one fingerprint by its natural key."""

    @abstractmethod
    def list_document(self, owner_id: str, source_document_id: str) -> list[SlideFingerprint]:
        """All fingerprints of one document owned by ``owner_id``."""

    @abstractmethod
    def list_owner(self, owner_id: str) -> list[SlideFingerprint]:
        """All fingerprints owned by ``owner_id``."""

    @abstractmethod
    def owner_ids(self) -> list[str]:
        """Every owner with at least one fingerprint, sorted."""

    @abstractmethod
    def create(self, owner_id: str, fingerprint: SlideFingerprint) -> None:
        """Insert a new fingerprint; the key must not exist."""

    @abstractmethod
    def update(self, owner_id: str, fingerprint: SlideFingerprint) -> None:
        """Replace an existing fingerprint; the key must exist."""

    @abstractmethod
    def delete(self, owner_id: str, source_document_id: str, source_slide_id: str) -> bool:
        """Delete one fingerprint. Returns False when nothing was stored."""

    @abstractmethod
    def delete_document(self, owner_id: str, source_document_id: str) -> int:
        """Delete every fingerprint of a document. Returns the number removed."""

    @abstractmethod
    def find_similar(
        self,
        owner_id: str,
        normalized_text: str,
        threshold: float,
        field: FingerprintField = "title",
    ) -> list[tuple[SlideFingerprint, float]]:
        """
        Owner-scoped trigram search over one similarity index.

        Returns:
            (fingerprint, score) pairs with score > threshold, best first
        """

    @abstractmethod
    def transaction(self):
        """Context manager grouping writes into one atomic unit."""

    def upsert(self, owner_id: str, fingerprint: SlideFingerprint) -> bool:
        """
        Insert or replace a fingerprint.

        Returns:
            True if a new record was created
        """
        existing = self.get(*fingerprint.key)
        if existing is None:
            self.create(owner_id, fingerprint)
            return True
        self.update(owner_id, fingerprint)
        return False

    def ping(self) -> None:
        """Raise StoreUnavailableError if the store cannot serve requests."""

    @staticmethod
    def check_writable(
        owner_id: str,
        fingerprint: SlideFingerprint,
        existing: Optional[SlideFingerprint] = None,
    ) -> None:
        """Validate a write before it touches storage."""
        if not owner_id:
            raise ValidationError("Writes require an owner id")
        if fingerprint.owner_id != owner_id:
            raise OwnerMismatchError(owner_id, fingerprint.owner_id)
        if existing is not None and existing.owner_id != owner_id:
            raise OwnerMismatchError(owner_id, existing.owner_id)
        if fingerprint.duration_minutes is None or fingerprint.duration_minutes <= 0:
            raise ValidationError(
                f"Fingerprint {fingerprint.source_slide_id} must have a positive duration"
            )


class InMemoryFingerprintStore(FingerprintStore):
    """
    Process-local store backed by dicts and inverted trigram indexes.

    Writes inside ``transaction()`` are staged in a per-thread overlay and
    applied under the store lock on commit, so concurrent readers see either
    none or all of a transaction's changes.
    """

    backend_name = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self._records: dict[tuple[str, str], SlideFingerprint] = {}
        self._indexes: dict[str, dict[str, TrigramIndex]] = {}
        self._local = threading.local()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # -- transaction plumbing -------------------------------------------------

    @property
    def _pending(self) -> Optional[dict[tuple[str, str], Optional[SlideFingerprint]]]:
        return getattr(self._local, "pending", None)

    @contextmanager
    def transaction(self) -> Iterator["InMemoryFingerprintStore"]:
        """Stage writes and apply them atomically; nested calls join the outer one."""
        if self._pending is not None:
            yield self
            return

        self._local.pending = {}
        try:
            yield self
        except Exception:
            logger.debug("Rolling back in-memory fingerprint transaction")
            raise
        finally:
            staged = self._local.pending
            self._local.pending = None

        with self._lock:
            for key, fingerprint in staged.items():
                if fingerprint is _TOMBSTONE:
                    self._remove(key)
                else:
                    self._put(fingerprint)
        if staged:
            logger.debug(f"Committed {len(staged)} fingerprint change(s)")

    def _write(self, key: tuple[str, str], fingerprint: Optional[SlideFingerprint]) -> None:
        pending = self._pending
        if pending is not None:
            pending[key] = fingerprint
            return
        with self._lock:
            if fingerprint is _TOMBSTONE:
                self._remove(key)
            else:
                self._put(fingerprint)

    def _put(self, fingerprint: SlideFingerprint) -> None:
        previous = self._records.get(fingerprint.key)
        if previous is not None and previous.owner_id != fingerprint.owner_id:
            self._unindex(previous)
        self._records[fingerprint.key] = fingerprint
        indexes = self._indexes.setdefault(
            fingerprint.owner_id,
            {name: TrigramIndex() for name in FINGERPRINT_FIELDS},
        )
        for name in FINGERPRINT_FIELDS:
            indexes[name].add(fingerprint.key, fingerprint.normalized(name))

    def _remove(self, key: tuple[str, str]) -> None:
        previous = self._records.pop(key, None)
        if previous is not None:
            self._unindex(previous)

    def _unindex(self, fingerprint: SlideFingerprint) -> None:
        indexes = self._indexes.get(fingerprint.owner_id)
        if not indexes:
            return
        for index in indexes.values():
            index.discard(fingerprint.key)

    # -- reads ----------------------------------------------------------------

    def get(self, source_document_id: str, source_slide_id: str) -> Optional[SlideFingerprint]:
        key = (source_document_id, source_slide_id)
        pending = self._pending
        if pending is not None and key in pending:
            return pending[key]
        with self._lock:
            return self._records.get(key)

    def _visible(self) -> dict[tuple[str, str], SlideFingerprint]:
        with self._lock:
            records = dict(self._records)
        pending = self._pending
        if pending:
            for key, fingerprint in pending.items():
                if fingerprint is _TOMBSTONE:
                    records.pop(key, None)
                else:
                    records[key] = fingerprint
        return records

    def list_document(self, owner_id: str, source_document_id: str) -> list[SlideFingerprint]:
        return sorted(
            (
                fp for fp in self._visible().values()
                if fp.owner_id == owner_id and fp.source_document_id == source_document_id
            ),
            key=lambda fp: fp.source_slide_id,
        )

    def list_owner(self, owner_id: str) -> list[SlideFingerprint]:
        return sorted(
            (fp for fp in self._visible().values() if fp.owner_id == owner_id),
            key=lambda fp: fp.key,
        )

    def owner_ids(self) -> list[str]:
        return sorted({fp.owner_id for fp in self._visible().values()})

    def find_similar(
        self,
        owner_id: str,
        normalized_text: str,
        threshold: float,
        field: FingerprintField = "title",
    ) -> list[tuple[SlideFingerprint, float]]:
        check_field(field)
        check_threshold(threshold)

        with self._lock:
            index = self._indexes.get(owner_id, {}).get(field)
            hits = index.search(normalized_text, threshold) if index is not None else []
            results = {key: (self._records[key], score) for key, score in hits}

        pending = self._pending
        if pending:
            # Same-thread reads inside a transaction see their own staged writes
            for key, fingerprint in pending.items():
                results.pop(key, None)
                if fingerprint is _TOMBSTONE or fingerprint.owner_id != owner_id:
                    continue
                score = trigram_similarity(normalized_text, fingerprint.normalized(field))
                if score > threshold:
                    results[key] = (fingerprint, score)

        return sorted(results.values(), key=lambda hit: (-hit[1], hit[0].key))

    # -- writes ---------------------------------------------------------------

    def create(self, owner_id: str, fingerprint: SlideFingerprint) -> None:
        existing = self.get(*fingerprint.key)
        self.check_writable(owner_id, fingerprint, existing)
        if existing is not None:
            raise DuplicateFingerprintError(
                f"Fingerprint already exists for {fingerprint.source_document_id}/"
                f"{fingerprint.source_slide_id}"
            )
        self._write(fingerprint.key, fingerprint)

    def update(self, owner_id: str, fingerprint: SlideFingerprint) -> None:
        existing = self.get(*fingerprint.key)
        self.check_writable(owner_id, fingerprint, existing)
        if existing is None:
            raise FingerprintNotFoundError(
                f"No fingerprint for {fingerprint.source_document_id}/{fingerprint.source_slide_id}"
            )
        self._write(fingerprint.key, fingerprint)

    def delete(self, owner_id: str, source_document_id: str, source_slide_id: str) -> bool:
        existing = self.get(source_document_id, source_slide_id)
        if existing is None:
            return False
        if existing.owner_id != owner_id:
            raise OwnerMismatchError(owner_id, existing.owner_id)
        self._write(existing.key, _TOMBSTONE)
        return True

    def delete_document(self, owner_id: str, source_document_id: str) -> int:
        doomed = [
            fp for fp in self._visible().values()
            if fp.source_document_id == source_document_id
        ]
        foreign = next((fp for fp in doomed if fp.owner_id != owner_id), None)
        if foreign is not None:
            raise OwnerMismatchError(owner_id, foreign.owner_id)
        with self.transaction():
            for fp in doomed:
                self._write(fp.key, _TOMBSTONE)
        return len(doomed)
