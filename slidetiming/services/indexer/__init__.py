"""
SlideTiming Indexer Module

Keeps the fingerprint store synchronized with source documents.

Modules:
    models       - IndexingStats, DriftReport
    content      - Canonical content flattening and change detection
    incremental  - Create/update/delete hooks with slide-level diffing
    verifier     - Drift detection and forced repair
"""

from .models import IndexingStats, DriftReport
from .content import flatten_content, canonical_slide, is_indexable
from .incremental import IncrementalIndexer, coerce_slides
from .verifier import IndexVerifier, check_fingerprint

__all__ = [
    # Models
    "IndexingStats",
    "DriftReport",
    # Content
    "flatten_content",
    "canonical_slide",
    "is_indexable",
    # Indexer
    "IncrementalIndexer",
    "coerce_slides",
    # Verifier
    "IndexVerifier",
    "check_fingerprint",
]
