from savemeaclick.core.config import settings
from savemeaclick.llm.openai_client import OpenAIClient
from savemeaclick.services.article_extractor import ArticleExtractor
from savemeaclick.services.summarize_service import SummarizeService


def get_llm_client() -> OpenAIClient:
    return OpenAIClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout=settings.openai_timeout_seconds,
        max_retries=settings.openai_max_retries,
    )


def get_article_extractor() -> ArticleExtractor:
    return ArticleExtractor(
        timeout=settings.article_fetch_timeout_seconds,
        max_chars=settings.article_max_chars,
    )


def get_summarize_service() -> SummarizeService:
    """Pipeline wired from settings. Overridden in tests via app.dependency_overrides."""
    return SummarizeService(
        extractor=get_article_extractor(),
        llm=get_llm_client(),
        stream=settings.openai_stream,
    )
