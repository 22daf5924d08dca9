"""
Outlier filtering and statistical aggregation of matched durations.

Outlier bounds use the exclusive quartile method ((n+1)p positions,
interpolated between order statistics). The reported p25/p75 use the
inclusive method ((n-1)p positions), which never extrapolates beyond the
observed minimum and maximum.
"""
import statistics
from typing import Optional, Sequence

from slidetiming.models.fingerprint import SimilarityCandidate
from slidetiming.models.suggestion import DurationSuggestion

from .confidence import DEFAULT_POLICY, ConfidencePolicy

DEFAULT_IQR_MULTIPLIER = 1.5


def iqr_bounds(
    durations: Sequence[float],
    multiplier: float = DEFAULT_IQR_MULTIPLIER,
) -> tuple[float, float, float, float]:
    """
    Quartiles and Tukey fences of a sample.

    Returns:
        (q1, q3, lower_bound, upper_bound)
    """
    if not durations:
        raise ValueError("iqr_bounds requires at least one duration")
    if len(durations) < 2:
        value = float(durations[0])
        return value, value, value, value
    q1, _, q3 = statistics.quantiles(durations, n=4, method="exclusive")
    iqr = q3 - q1
    return q1, q3, q1 - multiplier * iqr, q3 + multiplier * iqr


def filter_outliers(
    durations: Sequence[float],
    multiplier: float = DEFAULT_IQR_MULTIPLIER,
) -> list[float]:
    """
    Drop durations outside [Q1 - k*IQR, Q3 + k*IQR], preserving order.

    With fewer than two values there is nothing to compare and the input is
    returned unchanged; tiny samples are penalized by confidence scoring.
    """
    if len(durations) < 2:
        return list(durations)
    _, _, lower, upper = iqr_bounds(durations, multiplier)
    return [d for d in durations if lower <= d <= upper]


def filter_candidates(
    candidates: Sequence[SimilarityCandidate],
    multiplier: float = DEFAULT_IQR_MULTIPLIER,
) -> list[SimilarityCandidate]:
    """Outlier-filter candidates by duration, keeping their similarity scores."""
    if len(candidates) < 2:
        return list(candidates)
    _, _, lower, upper = iqr_bounds([c.duration_minutes for c in candidates], multiplier)
    return [c for c in candidates if lower <= c.duration_minutes <= upper]


def _percentile_range(durations: Sequence[float]) -> tuple[float, float]:
    if len(durations) < 2:
        value = float(durations[0])
        return value, value
    p25, _, p75 = statistics.quantiles(durations, n=4, method="inclusive")
    return p25, p75


def coefficient_of_variation(durations: Sequence[float]) -> float:
    """Sample standard deviation over mean; 0 for a single sample."""
    if len(durations) < 2:
        return 0.0
    return statistics.stdev(durations) / statistics.fmean(durations)


def aggregate(
    filtered_durations: Sequence[float],
    candidates: Sequence[SimilarityCandidate],
    policy: ConfidencePolicy = DEFAULT_POLICY,
) -> Optional[DurationSuggestion]:
    """
    Summarize filtered durations into a suggestion.

    Args:
        filtered_durations: Durations left after outlier removal
        candidates: The candidates those durations came from
        policy: Confidence gates

    Returns:
        The suggestion, or None when there is nothing to aggregate
    """
    if not filtered_durations:
        return None

    mean = statistics.fmean(filtered_durations)
    cv = coefficient_of_variation(filtered_durations)
    p25, p75 = _percentile_range(filtered_durations)
    sample_size = len(filtered_durations)

    if candidates:
        avg_title = statistics.fmean(c.title_similarity for c in candidates)
        avg_content = statistics.fmean(c.content_similarity for c in candidates)
    else:
        avg_title = avg_content = 0.0

    return DurationSuggestion(
        average_duration=mean,
        median_duration=statistics.median(filtered_durations),
        p25=p25,
        p75=p75,
        sample_size=sample_size,
        confidence=policy.score(sample_size, cv),
        coefficient_of_variation=cv,
        avg_title_similarity=avg_title,
        avg_content_similarity=avg_content,
    )
