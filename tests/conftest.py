import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("OPENAI_API_KEY", "sk-test-fake-key")

from savemeaclick.core.config import settings  # noqa: E402

# Override settings for tests
settings.openai_api_key = "sk-test-fake-key"
settings.app_env = "development"
settings.allowed_origins = "*"

from savemeaclick.core.dependencies import get_summarize_service  # noqa: E402
from savemeaclick.main import app  # noqa: E402
from savemeaclick.services.summarize_service import SummarizeService  # noqa: E402

from tests.samples import SAMPLE_REPLY  # noqa: E402


@pytest.fixture
def sample_reply() -> str:
    return SAMPLE_REPLY


@pytest.fixture
def summarize_service() -> MagicMock:
    """Stand-in for the pipeline; configure .summarize / .smoke_test per test."""
    service = MagicMock(spec=SummarizeService)
    service.summarize = AsyncMock()
    service.smoke_test = AsyncMock()
    return service


@pytest.fixture
async def client(summarize_service: MagicMock) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_summarize_service] = lambda: summarize_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.pop(get_summarize_service, None)
