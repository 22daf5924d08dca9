"""Duration suggestion Pydantic models."""
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .slide import ContentFragment


def round_minutes(value: float) -> int:
    """Round half up to whole minutes (12.5 -> 13)."""
    return math.floor(value + 0.5)


class Confidence(str, Enum):
    """Quality classification of a suggestion."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DurationSuggestion(BaseModel):
    """Aggregated duration statistics over matching fingerprints. Never persisted."""

    average_duration: float = Field(..., gt=0, description="Mean of filtered durations")
    median_duration: float = Field(..., gt=0, description="Median of filtered durations")
    p25: float = Field(..., description="25th percentile of filtered durations")
    p75: float = Field(..., description="75th percentile of filtered durations")
    sample_size: int = Field(..., ge=1, description="Number of durations after outlier removal")
    confidence: Confidence = Field(..., description="Suggestion confidence")
    coefficient_of_variation: float = Field(default=0.0, ge=0, description="Sample stddev / mean")
    avg_title_similarity: float = Field(..., ge=0, le=1)
    avg_content_similarity: float = Field(..., ge=0, le=1)

    def to_response(self) -> dict[str, Any]:
        """
        Presentation shape sent to clients.

        Durations are rounded to whole minutes here and nowhere else.
        """
        return {
            "averageDuration": round_minutes(self.average_duration),
            "confidence": self.confidence.value,
            "sampleSize": self.sample_size,
            "durationRange": {
                "p25": round_minutes(self.p25),
                "median": round_minutes(self.median_duration),
                "p75": round_minutes(self.p75),
            },
            "matchQuality": {
                "titleSimilarity": self.avg_title_similarity,
                "contentSimilarity": self.avg_content_similarity,
            },
        }


class DurationSuggestionRequest(BaseModel):
    """Request body for a duration suggestion."""

    title: str = Field(..., min_length=1, max_length=1000, description="Slide title")
    content: list[ContentFragment] = Field(..., description="Slide content fragments")
