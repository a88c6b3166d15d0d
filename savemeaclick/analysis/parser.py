"""Response Parser — turns the model's fixed-format reply into an AnalysisResult.

Expected reply layout (one item per line, blank lines ignored):

    Title: <article title>
    <glyph> <one sentence assessment>
    Summary: <summary, possibly continued on following lines>
    Key Points:
    - <point>
    Quality Metrics:
    - Clickbait Score: <0-100>
    - Readability: <0-100>
    - Objectivity: <0-100>
    - Content Depth: <0-100>
    - Estimated Reading Time: <minutes>

Sections are located by a forward-only scan: once a marker has been passed,
a repeated occurrence of it is ordinary content of the current section.
All five markers are required; malformed bullet lines are skipped.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from savemeaclick.analysis.scoring import apply_scores
from savemeaclick.analysis.types import (
    AnalysisResult,
    AssessmentGlyph,
    MetricLabel,
    ParsedSections,
    QualityMetrics,
)
from savemeaclick.core.exceptions import ParseError

logger = logging.getLogger(__name__)

TITLE_MARKER = "Title:"
SUMMARY_MARKER = "Summary:"
KEY_POINTS_MARKER = "Key Points:"
QUALITY_METRICS_MARKER = "Quality Metrics:"
BULLET = "-"

# Leading integer of a metric value: "85", "4 minutes", "70/100"
_LEADING_INT = re.compile(r"^[+-]?[0-9]+")

_METRIC_FIELDS: dict[str, str] = {
    MetricLabel.CLICKBAIT_SCORE.value: "clickbait_score",
    MetricLabel.READABILITY.value: "readability",
    MetricLabel.OBJECTIVITY.value: "objectivity",
    MetricLabel.CONTENT_DEPTH.value: "content_depth",
    MetricLabel.ESTIMATED_READING_TIME.value: "estimated_reading_time",
}


class _State(Enum):
    SEEK_TITLE = "seek_title"
    SEEK_ASSESSMENT = "seek_assessment"
    SEEK_SUMMARY = "seek_summary"
    IN_SUMMARY = "in_summary"
    IN_KEY_POINTS = "in_key_points"
    IN_METRICS = "in_metrics"


# ---------------------------------------------------------------------------
# Section scan
# ---------------------------------------------------------------------------


def split_lines(raw_reply: str) -> list[str]:
    """Trimmed, non-empty lines of the reply in their original order."""
    return [line.strip() for line in raw_reply.split("\n") if line.strip()]


def split_sections(raw_reply: str) -> ParsedSections:
    """Locate the five reply sections.

    Raises:
        ParseError: if any marker is missing or out of order.
    """
    state = _State.SEEK_TITLE
    title: str | None = None
    assessment: str | None = None
    summary_lines: list[str] = []
    key_point_lines: list[str] = []
    metric_lines: list[str] = []

    for line in split_lines(raw_reply):
        if state is _State.SEEK_TITLE:
            if line.startswith(TITLE_MARKER):
                title = line[len(TITLE_MARKER) :].strip()
                state = _State.SEEK_ASSESSMENT
        elif state is _State.SEEK_ASSESSMENT:
            if AssessmentGlyph.find(line) is not None:
                assessment = line
                state = _State.SEEK_SUMMARY
        elif state is _State.SEEK_SUMMARY:
            if line.startswith(SUMMARY_MARKER):
                inline = line[len(SUMMARY_MARKER) :].strip()
                if inline:
                    summary_lines.append(inline)
                state = _State.IN_SUMMARY
        elif state is _State.IN_SUMMARY:
            if line.startswith(KEY_POINTS_MARKER):
                state = _State.IN_KEY_POINTS
            else:
                summary_lines.append(line)
        elif state is _State.IN_KEY_POINTS:
            if line.startswith(QUALITY_METRICS_MARKER):
                state = _State.IN_METRICS
            else:
                key_point_lines.append(line)
        else:
            metric_lines.append(line)

    if state is not _State.IN_METRICS or title is None or assessment is None:
        logger.warning("Reply rejected: scan stopped in state %s", state.value)
        raise ParseError("invalid response format")

    return ParsedSections(
        title=title,
        assessment=assessment,
        summary_lines=summary_lines,
        key_point_lines=key_point_lines,
        metric_lines=metric_lines,
    )


# ---------------------------------------------------------------------------
# Section extraction
# ---------------------------------------------------------------------------


def _bullet_text(line: str) -> str | None:
    """Text after the leading bullet marker, or None for a non-bullet line."""
    if not line.startswith(BULLET):
        return None
    return line[len(BULLET) :].strip()


def extract_key_points(lines: list[str]) -> list[str]:
    """Bullet lines of the key-points section, marker stripped."""
    points = []
    for line in lines:
        text = _bullet_text(line)
        if text is not None:
            points.append(text)
    return points


def parse_metric_value(value: str) -> int | None:
    """Leading integer of *value*, or None when it does not start with one."""
    match = _LEADING_INT.match(value.strip())
    if not match:
        return None
    return int(match.group())


def extract_metrics(lines: list[str]) -> QualityMetrics:
    """Parse ``- Label: Value`` bullets into the known metrics.

    Non-bullet lines, lines without a colon, non-numeric values and unknown
    labels are skipped. A repeated label keeps its last value. Scores are
    clamped to 0–100, reading time to >= 0.
    """
    metrics = QualityMetrics()
    for line in lines:
        text = _bullet_text(line)
        if text is None:
            continue
        label, sep, raw_value = text.partition(":")
        if not sep:
            continue
        field_name = _METRIC_FIELDS.get(label.strip())
        if field_name is None:
            continue
        value = parse_metric_value(raw_value)
        if value is None:
            logger.debug("Skipping non-numeric metric %r: %r", label.strip(), raw_value)
            continue
        if field_name == "estimated_reading_time":
            value = max(0, value)
        else:
            value = min(100, max(0, value))
        setattr(metrics, field_name, value)
    return metrics


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def parse(raw_reply: str, request_url: str, processing_time_seconds: float) -> AnalysisResult:
    """Parse a model reply into an AnalysisResult.

    Args:
        raw_reply: Full completion text.
        request_url: Article URL, passed through unchanged.
        processing_time_seconds: Wall-clock time of the whole request so far.

    Raises:
        ParseError: if a required section marker is missing.
    """
    sections = split_sections(raw_reply)
    metrics = extract_metrics(sections.metric_lines)
    quality, quality_score, time_saved = apply_scores(metrics, processing_time_seconds)

    return AnalysisResult(
        title=sections.title,
        assessment=sections.assessment,
        summary="\n".join(sections.summary_lines).strip(),
        key_points=extract_key_points(sections.key_point_lines),
        url=request_url,
        clickbait_score=metrics.clickbait_score or 0,
        content_quality=quality,
        quality_score=quality_score,
        time_saved=time_saved,
        processing_time=processing_time_seconds,
    )
