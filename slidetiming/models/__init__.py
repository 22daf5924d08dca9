"""Data models for type-safe data handling."""

from .fingerprint import SlideFingerprint, SimilarityCandidate, FingerprintField
from .slide import ContentItem, ContentFragment, SourceSlide
from .suggestion import Confidence, DurationSuggestion, DurationSuggestionRequest

__all__ = [
    # Fingerprint models
    "SlideFingerprint",
    "SimilarityCandidate",
    "FingerprintField",
    # Source slide models
    "ContentItem",
    "ContentFragment",
    "SourceSlide",
    # Suggestion models
    "Confidence",
    "DurationSuggestion",
    "DurationSuggestionRequest",
]
