"""
Duration suggestion module.

Matches a query slide against the owner's fingerprints, drops outlier
durations and summarizes the rest with a confidence level.
"""

from .aggregation import (
    DEFAULT_IQR_MULTIPLIER,
    aggregate,
    coefficient_of_variation,
    filter_candidates,
    filter_outliers,
    iqr_bounds,
)
from .confidence import DEFAULT_POLICY, ConfidencePolicy, score_confidence
from .matcher import DEFAULT_CONTENT_THRESHOLD, DEFAULT_TITLE_THRESHOLD, SimilarityMatcher
from .service import (
    DurationSuggestionService,
    create_store,
    get_duration_suggestion_service,
    get_fingerprint_store,
    get_indexer,
    reset_services,
)

__all__ = [
    "DEFAULT_IQR_MULTIPLIER",
    "aggregate",
    "coefficient_of_variation",
    "filter_candidates",
    "filter_outliers",
    "iqr_bounds",
    "DEFAULT_POLICY",
    "ConfidencePolicy",
    "score_confidence",
    "DEFAULT_CONTENT_THRESHOLD",
    "DEFAULT_TITLE_THRESHOLD",
    "SimilarityMatcher",
    "DurationSuggestionService",
    "create_store",
    "get_duration_suggestion_service",
    "get_fingerprint_store",
    "get_indexer",
    "reset_services",
]
