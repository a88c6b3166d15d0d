"""Derived scores for an analysed article.

Computes:
  - Quality score:
      quality = round(Readability × 0.3 + Objectivity × 0.3 + Depth × 0.4)

  - Time saved (minutes):
      time_saved = max(0, Estimated_Reading_Time − processing_seconds / 60)
"""

from __future__ import annotations

import logging

from savemeaclick.analysis.types import ContentQuality, QualityMetrics

logger = logging.getLogger(__name__)

# Weights in tenths so the weighted sum stays an exact integer
READABILITY_WEIGHT = 3
OBJECTIVITY_WEIGHT = 3
DEPTH_WEIGHT = 4

# Used when the model omits the reading time; unrelated to the 0 default of the scores
DEFAULT_READING_TIME_MINUTES = 5


def content_quality(metrics: QualityMetrics) -> ContentQuality:
    """Quality sub-scores with absent metrics defaulting to 0."""
    return ContentQuality(
        readability=metrics.readability or 0,
        objectivity=metrics.objectivity or 0,
        depth=metrics.content_depth or 0,
    )


def calculate_quality_score(quality: ContentQuality) -> int:
    """Weighted overall quality score (0–100)."""
    weighted_tenths = (
        quality.readability * READABILITY_WEIGHT
        + quality.objectivity * OBJECTIVITY_WEIGHT
        + quality.depth * DEPTH_WEIGHT
    )
    # Half-up rounding (80.5 -> 81); built-in round() is half-to-even
    return (weighted_tenths + 5) // 10


def calculate_time_saved(estimated_reading_time: int | None, processing_time_seconds: float) -> float:
    """Minutes the reader saves by reading the summary instead of the article.

    Never negative: a slow analysis of a short article saves nothing.
    """
    reading_time = (
        estimated_reading_time if estimated_reading_time is not None else DEFAULT_READING_TIME_MINUTES
    )
    return max(0.0, reading_time - processing_time_seconds / 60)


def apply_scores(metrics: QualityMetrics, processing_time_seconds: float) -> tuple[ContentQuality, int, float]:
    """Calculate content quality, quality score and time saved.

    Returns:
        Tuple of (content_quality, quality_score, time_saved).
    """
    quality = content_quality(metrics)
    score = calculate_quality_score(quality)
    saved = calculate_time_saved(metrics.estimated_reading_time, processing_time_seconds)

    logger.debug(
        "Scoring: readability=%d, objectivity=%d, depth=%d → quality=%d; reading_time=%s, processing=%.1fs → saved=%.2f min",
        quality.readability,
        quality.objectivity,
        quality.depth,
        score,
        metrics.estimated_reading_time,
        processing_time_seconds,
        saved,
    )

    return quality, score, saved
