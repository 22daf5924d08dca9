"""Source slide models supplied by the document store."""
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentItem(BaseModel):
    """Structured content fragment (paragraph, bullet, image caption...)."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(default="paragraph", description="Fragment kind")
    text: Optional[str] = Field(default=None, description="Fragment text")
    value: Optional[str] = Field(default=None, description="Legacy fragment text field")
    sub_items: list[str] = Field(
        default_factory=list,
        alias="subItems",
        description="Nested bullet texts"
    )


ContentFragment = Union[str, ContentItem]


class SourceSlide(BaseModel):
    """One slide of a source document, in presentation order."""

    model_config = ConfigDict(populate_by_name=True)

    source_slide_id: str = Field(..., alias="id", min_length=1, description="Slide identifier")
    title: Optional[str] = Field(default=None, description="Slide title")
    content: list[ContentFragment] = Field(
        default_factory=list,
        description="Ordered content fragments"
    )
    duration_minutes: float = Field(
        default=0,
        alias="duration",
        ge=0,
        description="Committed duration in minutes; 0 for untimed slides"
    )

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def untimed_as_zero(cls, v):
        """A missing (null) duration means the slide is untimed."""
        return 0 if v is None else v
