"""Confidence classification for duration suggestions."""
from dataclasses import dataclass

from slidetiming.core.config import Settings
from slidetiming.models.suggestion import Confidence


@dataclass(frozen=True)
class ConfidencePolicy:
    """
    Dual gate on sample size and coefficient of variation.

    Neither a large sample nor a low variance alone earns confidence;
    both gates of a level must pass.
    """
    high_min_samples: int = 5
    high_max_cv: float = 0.3
    medium_min_samples: int = 3
    medium_max_cv: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConfidencePolicy":
        return cls(
            high_min_samples=settings.high_confidence_min_samples,
            high_max_cv=settings.high_confidence_max_cv,
            medium_min_samples=settings.medium_confidence_min_samples,
            medium_max_cv=settings.medium_confidence_max_cv,
        )

    def score(self, sample_size: int, coefficient_of_variation: float) -> Confidence:
        if sample_size >= self.high_min_samples and coefficient_of_variation < self.high_max_cv:
            return Confidence.HIGH
        if sample_size >= self.medium_min_samples and coefficient_of_variation < self.medium_max_cv:
            return Confidence.MEDIUM
        return Confidence.LOW


DEFAULT_POLICY = ConfidencePolicy()


def score_confidence(
    sample_size: int,
    coefficient_of_variation: float,
    policy: ConfidencePolicy = DEFAULT_POLICY,
) -> Confidence:
    """Classify a result as high, medium or low confidence."""
    return policy.score(sample_size, coefficient_of_variation)
