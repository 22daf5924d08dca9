"""Derivation of fingerprints from raw slide fields."""
from datetime import datetime
from typing import Optional

from slidetiming.core.errors import ValidationError
from slidetiming.models.fingerprint import SlideFingerprint, utc_now

from .normalizer import normalize


def build_fingerprint(
    owner_id: str,
    source_document_id: str,
    source_slide_id: str,
    title: str,
    content_text: str,
    duration_minutes: float,
    now: Optional[datetime] = None,
) -> SlideFingerprint:
    """
    Create a new fingerprint with normalized fields derived from the raw ones.

    Raises:
        ValidationError: duration is not positive or an identifier is blank
    """
    if not owner_id or not source_document_id or not source_slide_id:
        raise ValidationError("owner, document and slide ids are required")
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError(
            f"Slide {source_slide_id} has no timing signal (duration={duration_minutes})"
        )
    timestamp = now or utc_now()
    return SlideFingerprint(
        owner_id=owner_id,
        source_document_id=source_document_id,
        source_slide_id=source_slide_id,
        title=title,
        content_text=content_text,
        duration_minutes=duration_minutes,
        title_normalized=normalize(title),
        content_normalized=normalize(content_text),
        created_at=timestamp,
        updated_at=timestamp,
    )


def refresh_fingerprint(
    existing: SlideFingerprint,
    title: str,
    content_text: str,
    duration_minutes: float,
    now: Optional[datetime] = None,
) -> SlideFingerprint:
    """Recompute a fingerprint from new raw fields, keeping id and created_at."""
    fresh = build_fingerprint(
        existing.owner_id,
        existing.source_document_id,
        existing.source_slide_id,
        title,
        content_text,
        duration_minutes,
        now=now,
    )
    return fresh.with_changes(id=existing.id, created_at=existing.created_at)


def drifted_fields(fingerprint: SlideFingerprint) -> list[str]:
    """Names of normalized fields that disagree with a fresh recomputation."""
    fields = []
    if fingerprint.title_normalized != normalize(fingerprint.title):
        fields.append("title_normalized")
    if fingerprint.content_normalized != normalize(fingerprint.content_text):
        fields.append("content_normalized")
    return fields
