"""Tests for the summarize pipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from savemeaclick.analysis.prompt import SYSTEM_PROMPT
from savemeaclick.core.exceptions import ExtractionError, GenerationError, ParseError
from savemeaclick.llm.openai_client import Completion, OpenAIClient
from savemeaclick.services.article_extractor import Article, ArticleExtractor
from savemeaclick.services.summarize_service import SummarizeService
from tests.samples import SAMPLE_REPLY

URL = "https://example.com/article"


@pytest.fixture
def extractor():
    mock = MagicMock(spec=ArticleExtractor)
    mock.extract = AsyncMock(return_value=Article(title="Example", content="Body text of the article."))
    return mock


@pytest.fixture
def llm():
    mock = MagicMock(spec=OpenAIClient)
    mock.complete = AsyncMock(return_value=Completion(text=SAMPLE_REPLY, model="gpt-4o"))
    return mock


@pytest.fixture
def service(extractor, llm):
    return SummarizeService(extractor=extractor, llm=llm)


class TestSummarize:
    async def test_success(self, service, extractor, llm):
        result = await service.summarize(URL)

        assert result.title == "Example"
        assert result.url == URL
        assert result.key_points == ["Point one", "Point two"]
        assert result.quality_score == 81
        assert result.clickbait_score == 10
        assert result.processing_time >= 0
        extractor.extract.assert_awaited_once_with(URL)

    async def test_prompt_carries_article(self, service, llm):
        await service.summarize(URL)

        args, kwargs = llm.complete.call_args
        system_prompt, user_prompt = args
        assert system_prompt == SYSTEM_PROMPT
        assert "Example" in user_prompt
        assert "Body text of the article." in user_prompt
        assert URL in user_prompt
        assert kwargs["stream"] is False

    async def test_stream_flag_is_forwarded(self, extractor, llm):
        await SummarizeService(extractor=extractor, llm=llm, stream=True).summarize(URL)
        assert llm.complete.call_args.kwargs["stream"] is True

    async def test_article_not_found(self, service, extractor, llm):
        extractor.extract.return_value = None
        with pytest.raises(ExtractionError, match="article is null"):
            await service.summarize(URL)
        llm.complete.assert_not_awaited()

    async def test_article_without_content(self, service, extractor, llm):
        extractor.extract.return_value = Article(title="Example", content="")
        with pytest.raises(ExtractionError, match="no content found"):
            await service.summarize(URL)
        llm.complete.assert_not_awaited()

    async def test_article_without_title(self, service, extractor, llm):
        extractor.extract.return_value = Article(title="", content="Body")
        with pytest.raises(ExtractionError, match="no title found"):
            await service.summarize(URL)
        llm.complete.assert_not_awaited()

    async def test_generation_error_propagates(self, service, llm):
        llm.complete.side_effect = GenerationError("Failed to get response from OpenAI: boom")
        with pytest.raises(GenerationError):
            await service.summarize(URL)

    async def test_unparseable_reply(self, service, llm):
        llm.complete.return_value = Completion(text="I cannot help with that.", model="gpt-4o")
        with pytest.raises(ParseError, match="invalid response format"):
            await service.summarize(URL)


class TestSmokeTest:
    async def test_streams_short_completion(self, service, llm):
        llm.complete.return_value = Completion(text="Hello there.", model="gpt-4o", chunks=3)

        completion = await service.smoke_test()

        assert completion.text == "Hello there."
        kwargs = llm.complete.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["max_tokens"] == 50
