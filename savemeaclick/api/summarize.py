"""Summarize endpoints — article analysis and LLM smoke test."""

import logging
import time

from fastapi import APIRouter, Depends

from savemeaclick.core.dependencies import get_summarize_service
from savemeaclick.schemas.summarize import SmokeTestResponse, SummarizeRequest, SummarizeResponse
from savemeaclick.services.summarize_service import SummarizeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["summarize"])


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize(
    body: SummarizeRequest,
    service: SummarizeService = Depends(get_summarize_service),
) -> SummarizeResponse:
    """Fetch the article, have the LLM summarize and assess it, return the parsed analysis."""
    result = await service.summarize(body.url)
    return SummarizeResponse.model_validate(result)


@router.get("/test", response_model=SmokeTestResponse)
async def llm_smoke_test(
    service: SummarizeService = Depends(get_summarize_service),
) -> SmokeTestResponse:
    """Stream a one-sentence completion to verify LLM connectivity."""
    start = time.monotonic()
    completion = await service.smoke_test()
    processing_time = time.monotonic() - start

    logger.info(
        "Smoke test completed in %.2fs (%d chunks, %d chars)",
        processing_time,
        completion.chunks,
        len(completion.text),
    )
    return SmokeTestResponse(
        message=completion.text or "No response from OpenAI",
        processing_time=processing_time,
        model=completion.model,
        chunks=completion.chunks,
    )
