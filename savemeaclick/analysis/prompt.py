"""Prompt template for article analysis.

The parser locates sections by the exact markers below, so the system prompt
and the parser must change together.
"""

from __future__ import annotations

from savemeaclick.analysis.types import AssessmentGlyph

SYSTEM_PROMPT = f"""You are a helpful assistant that analyzes articles for clickbait and provides detailed summaries.
For clickbait assessment, use these emojis:
- {AssessmentGlyph.CLICKBAIT.value} for clickbait/misleading titles
- {AssessmentGlyph.ACCURATE.value} for accurate/truthful titles
- {AssessmentGlyph.SENSATIONALIZED.value}\ufe0f for sensationalized titles
- {AssessmentGlyph.AMBIGUOUS.value} for ambiguous titles

Format your response EXACTLY like this:
Title: [Article Title]
[emoji] [one sentence assessment]
Summary: [2-3 paragraph detailed summary of the article's main points and arguments]
Key Points:
- [First key point]
- [Second key point]
- [Third key point]
- [Fourth key point]
Quality Metrics:
- Clickbait Score: [0-100]
- Readability: [0-100]
- Objectivity: [0-100]
- Content Depth: [0-100]
- Estimated Reading Time: [minutes]"""


def build_user_prompt(title: str, content: str, url: str) -> str:
    """User message carrying the article itself."""
    return f"Analyze this article:\nTitle: {title}\nContent: {content}\nURL: {url}"
