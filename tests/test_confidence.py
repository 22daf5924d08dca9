"""
Unit tests for confidence scoring.
"""
import pytest

from slidetiming.core import Settings
from slidetiming.models import Confidence
from slidetiming.services.suggestion import ConfidencePolicy, score_confidence


class TestScoreConfidence:
    """Tests for the dual sample-size and variance gate."""

    @pytest.mark.parametrize("sample_size,cv,expected", [
        (2, 0.0, Confidence.LOW),       # too few samples despite zero variance
        (8, 0.53, Confidence.LOW),      # enough samples but too noisy
        (8, 0.18, Confidence.HIGH),
        (5, 0.29, Confidence.HIGH),
        (5, 0.30, Confidence.MEDIUM),   # bounds are exclusive
        (4, 0.10, Confidence.MEDIUM),
        (3, 0.49, Confidence.MEDIUM),
        (3, 0.50, Confidence.LOW),
    ])
    def test_levels(self, sample_size, cv, expected):
        assert score_confidence(sample_size, cv) == expected

    def test_policy_from_settings(self):
        settings = Settings(high_confidence_min_samples=2, high_confidence_max_cv=0.6)
        policy = ConfidencePolicy.from_settings(settings)

        assert policy.score(2, 0.5) == Confidence.HIGH
        assert score_confidence(2, 0.5, policy) == Confidence.HIGH
        assert score_confidence(2, 0.5) == Confidence.LOW
