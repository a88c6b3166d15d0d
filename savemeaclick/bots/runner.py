"""Start every social bot whose credentials are configured."""

from __future__ import annotations

import asyncio
import logging

from savemeaclick.bots.base import BaseBot, ProcessedSet, SummaryApiClient
from savemeaclick.bots.instagram import InstagramBot
from savemeaclick.bots.reddit import RedditBot
from savemeaclick.core.config import Settings

logger = logging.getLogger(__name__)


def build_bots(settings: Settings) -> list[BaseBot]:
    """Bots enabled by *settings*. Missing credentials disable a bot, not startup."""
    api = SummaryApiClient(settings.api_url)
    bots: list[BaseBot] = []

    def processed() -> ProcessedSet:
        return ProcessedSet(max_items=settings.bot_dedup_max_items, ttl_seconds=settings.bot_dedup_ttl_seconds)

    if settings.reddit_enabled:
        bots.append(
            RedditBot(
                client_id=settings.reddit_client_id,
                client_secret=settings.reddit_client_secret,
                username=settings.reddit_username,
                password=settings.reddit_password,
                user_agent=settings.reddit_user_agent,
                api=api,
                poll_interval=settings.bot_poll_interval_seconds,
                processed=processed(),
            )
        )
    else:
        logger.info("Reddit bot disabled: credentials not configured")

    if settings.instagram_enabled:
        bots.append(
            InstagramBot(
                page_access_token=settings.instagram_page_access_token,
                app_id=settings.instagram_app_id,
                api_version=settings.instagram_api_version,
                base_url=settings.instagram_base_url,
                api=api,
                poll_interval=settings.bot_poll_interval_seconds,
                processed=processed(),
            )
        )
    else:
        logger.info("Instagram bot disabled: credentials not configured")

    return bots


async def run_bots(settings: Settings) -> None:
    """Run all enabled bots until the process exits."""
    bots = build_bots(settings)
    if not bots:
        logger.warning("No social bots configured, nothing to run")
        return

    logger.info("Running bots: %s (API: %s)", ", ".join(b.name for b in bots), settings.api_url)
    await asyncio.gather(*(bot.run_forever() for bot in bots))
