"""
Fingerprint data models.
"""

from dataclasses import dataclass, asdict, field, replace
from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4


FingerprintField = Literal["title", "content"]


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SlideFingerprint:
    """Normalized, indexable record of one timed slide."""
    owner_id: str
    source_document_id: str
    source_slide_id: str
    title: str
    content_text: str       # Flattened slide content, single string
    duration_minutes: float
    title_normalized: str
    content_normalized: str
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def key(self) -> tuple[str, str]:
        """Store key: one fingerprint per (document, slide)."""
        return (self.source_document_id, self.source_slide_id)

    def normalized(self, which: FingerprintField) -> str:
        """Return the normalized text for the given similarity index."""
        return self.title_normalized if which == "title" else self.content_normalized

    def with_changes(self, **changes) -> "SlideFingerprint":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data


@dataclass(frozen=True)
class SimilarityCandidate:
    """A fingerprint that passed both matching tiers for one query."""
    fingerprint: SlideFingerprint
    title_similarity: float
    content_similarity: float

    @property
    def duration_minutes(self) -> float:
        return self.fingerprint.duration_minutes
