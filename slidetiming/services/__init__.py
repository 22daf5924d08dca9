"""Service layer for SlideTiming."""

from .suggestion import (
    DurationSuggestionService,
    get_duration_suggestion_service,
    get_fingerprint_store,
    get_indexer,
    reset_services,
)

__all__ = [
    "DurationSuggestionService",
    "get_duration_suggestion_service",
    "get_fingerprint_store",
    "get_indexer",
    "reset_services",
]
