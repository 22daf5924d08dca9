"""Fingerprint index: normalization, trigram similarity and storage backends."""

from .normalizer import normalize
from .trigram import TrigramIndex, trigram_similarity, trigrams
from .factory import build_fingerprint, refresh_fingerprint, drifted_fields
from .store import FingerprintStore, InMemoryFingerprintStore
from .sqlite_store import SQLiteFingerprintStore

__all__ = [
    "normalize",
    "TrigramIndex",
    "trigram_similarity",
    "trigrams",
    "build_fingerprint",
    "refresh_fingerprint",
    "drifted_fields",
    "FingerprintStore",
    "InMemoryFingerprintStore",
    "SQLiteFingerprintStore",
]
