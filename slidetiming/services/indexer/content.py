"""
Canonical flattening of slide content into one text string.

Both the indexer and the suggestion service go through these functions, so a
slide and a query with the same fragments always produce the same text.
"""
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from slidetiming.core.errors import ValidationError
from slidetiming.models.slide import ContentItem, SourceSlide

CONTENT_SEPARATOR = " "


def _fragment_texts(fragment: Any) -> list[str]:
    if fragment is None:
        return []
    if isinstance(fragment, str):
        return [fragment]
    if isinstance(fragment, Mapping):
        try:
            fragment = ContentItem.model_validate(fragment)
        except PydanticValidationError as e:
            raise ValidationError(f"Malformed content item: {e}") from e
    if isinstance(fragment, ContentItem):
        head = fragment.text if fragment.text is not None else fragment.value
        return ([head] if head else []) + [sub for sub in fragment.sub_items if sub]
    return [str(fragment)]


def flatten_content(content: Any) -> str:
    """
    Join content fragments, in order, into a single string.

    Plain strings are used as-is; structured items contribute their text
    (or legacy value) followed by their sub-items.

    Raises:
        ValidationError: content is not a sequence of fragments
    """
    if content is None:
        return ""
    if isinstance(content, (str, bytes)) or not isinstance(content, Sequence):
        raise ValidationError("Slide content must be a sequence of text fragments")
    pieces: list[str] = []
    for fragment in content:
        pieces.extend(piece for piece in _fragment_texts(fragment) if piece)
    return CONTENT_SEPARATOR.join(pieces).strip()


def is_indexable(slide: SourceSlide) -> bool:
    """Only titled slides with a committed duration carry a timing signal."""
    return slide.duration_minutes > 0 and bool(slide.title and slide.title.strip())


def canonical_slide(slide: SourceSlide) -> tuple[str, str, float]:
    """(title, content_text, duration) used for change detection."""
    return (slide.title or "", flatten_content(slide.content), float(slide.duration_minutes))
