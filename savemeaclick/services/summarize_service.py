"""Summarize pipeline: fetch article → prompt LLM → parse reply.

Steps run sequentially per request; nothing is shared between requests
except the (immutable) collaborators.
"""

from __future__ import annotations

import logging
import time

from savemeaclick.analysis.parser import parse
from savemeaclick.analysis.prompt import SYSTEM_PROMPT, build_user_prompt
from savemeaclick.analysis.types import AnalysisResult
from savemeaclick.core.exceptions import ExtractionError, GenerationError, ParseError
from savemeaclick.core.metrics import SUMMARIZE_RESULTS
from savemeaclick.llm.openai_client import Completion, OpenAIClient
from savemeaclick.services.article_extractor import ArticleExtractor

logger = logging.getLogger(__name__)

SMOKE_TEST_SYSTEM_PROMPT = "You are a helpful assistant. Respond with a single sentence."
SMOKE_TEST_USER_PROMPT = "Say hello and tell me the current time."


class SummarizeService:
    """Runs the article analysis pipeline for one URL at a time."""

    def __init__(self, extractor: ArticleExtractor, llm: OpenAIClient, stream: bool = False):
        self.extractor = extractor
        self.llm = llm
        self.stream = stream

    async def summarize(self, url: str) -> AnalysisResult:
        """Analyse the article at *url*.

        Raises:
            ExtractionError: the article could not be fetched or lacks a title/body.
            GenerationError: the LLM call failed or returned nothing.
            ParseError: the LLM reply does not follow the expected format.
        """
        start = time.monotonic()
        try:
            result = await self._run(url, start)
        except ExtractionError:
            SUMMARIZE_RESULTS.labels(outcome="extraction_error").inc()
            raise
        except GenerationError:
            SUMMARIZE_RESULTS.labels(outcome="generation_error").inc()
            raise
        except ParseError:
            SUMMARIZE_RESULTS.labels(outcome="parse_error").inc()
            raise
        SUMMARIZE_RESULTS.labels(outcome="success").inc()
        return result

    async def _run(self, url: str, start: float) -> AnalysisResult:
        logger.info("Attempting to extract article content", extra={"url": url})
        article = await self.extractor.extract(url)

        if article is None:
            logger.error("Article extraction returned nothing for %s", url)
            raise ExtractionError("Failed to extract article content - article is null")
        if not article.content:
            logger.error("Article has no content: %s (title=%r)", url, article.title)
            raise ExtractionError("Failed to extract article content - no content found")
        if not article.title:
            logger.error("Article has no title: %s", url)
            raise ExtractionError("Failed to extract article content - no title found")

        logger.info("Extracted article %r from %s (%d chars)", article.title, url, len(article.content))

        completion = await self.llm.complete(
            SYSTEM_PROMPT,
            build_user_prompt(article.title, article.content, url),
            stream=self.stream,
        )
        logger.debug("Raw OpenAI response for %s:\n%s", url, completion.text)

        try:
            result = parse(completion.text, url, time.monotonic() - start)
        except ParseError:
            logger.error("Failed to parse OpenAI response for %s. Raw reply:\n%s", url, completion.text)
            raise

        logger.info(
            "Summarized %s in %.1fs (quality=%d, clickbait=%d, retries=%d)",
            url,
            result.processing_time,
            result.quality_score,
            result.clickbait_score,
            completion.retry_count,
        )
        return result

    async def smoke_test(self) -> Completion:
        """One short streamed completion, to check LLM connectivity end to end."""
        logger.info("Starting OpenAI smoke test request with streaming")
        return await self.llm.complete(
            SMOKE_TEST_SYSTEM_PROMPT,
            SMOKE_TEST_USER_PROMPT,
            stream=True,
            max_tokens=50,
        )
