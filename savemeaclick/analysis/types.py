"""Core types for the reply analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class AssessmentGlyph(str, Enum):
    """Clickbait verdict categories and the glyph the model marks each with."""

    CLICKBAIT = "🚫"  # clickbait / misleading title
    ACCURATE = "✅"  # accurate / truthful title
    SENSATIONALIZED = "⚠"  # sensationalized title (usually followed by U+FE0F)
    AMBIGUOUS = "❓"  # ambiguous title

    @classmethod
    def find(cls, line: str) -> AssessmentGlyph | None:
        """Return the first verdict glyph contained in *line*, if any."""
        for glyph in cls:
            if glyph.value in line:
                return glyph
        return None


class MetricLabel(str, Enum):
    """Labels of the quality metrics the model is asked to emit."""

    CLICKBAIT_SCORE = "Clickbait Score"
    READABILITY = "Readability"
    OBJECTIVITY = "Objectivity"
    CONTENT_DEPTH = "Content Depth"
    ESTIMATED_READING_TIME = "Estimated Reading Time"


@dataclass
class QualityMetrics:
    """Known metrics parsed from the reply. None = absent or non-numeric."""

    clickbait_score: int | None = None
    readability: int | None = None
    objectivity: int | None = None
    content_depth: int | None = None
    estimated_reading_time: int | None = None


@dataclass
class ParsedSections:
    """The five regions of a model reply, located by their marker lines."""

    title: str
    assessment: str
    summary_lines: list[str] = field(default_factory=list)
    key_point_lines: list[str] = field(default_factory=list)
    metric_lines: list[str] = field(default_factory=list)


@dataclass
class ContentQuality:
    readability: int = 0
    objectivity: int = 0
    depth: int = 0


@dataclass
class AnalysisResult:
    """Structured analysis of one article, as served by POST /summarize."""

    title: str
    assessment: str
    summary: str
    key_points: list[str]
    url: str
    clickbait_score: int
    content_quality: ContentQuality
    quality_score: int
    time_saved: float  # minutes
    processing_time: float  # seconds
