"""Base social bot — polls a platform for mentions and replies with summaries.

Each poll cycle:
  1. Fetch a batch of mentions from the platform
  2. Skip mentions already handled by this process
  3. Find the article URL (mention text first, then linked context)
  4. Ask the SaveMeAClick API for the analysis
  5. Reply with a platform-specific message

One mention's failure never aborts the batch, and a failed poll never stops
the loop.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from savemeaclick.core.exceptions import DeliveryError
from savemeaclick.core.metrics import BOT_REPLIES

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"https?://\S+")

APOLOGY_MESSAGE = "Sorry, I encountered an error while processing that article. Please try again later."

# The API call covers article fetch + LLM round-trip (with retries)
_SUMMARIZE_TIMEOUT = 300.0

# Failures confined to one mention or one poll: network, platform rejection,
# undecodable JSON and missing fields
ITEM_ERRORS = (httpx.HTTPError, DeliveryError, ValueError, KeyError)


def extract_url(text: str | None) -> str | None:
    """First http(s) URL in *text*, or None."""
    if not text:
        return None
    match = URL_PATTERN.search(text)
    return match.group(0) if match else None


@dataclass
class Mention:
    """A platform item addressed to the bot."""

    id: str
    text: str
    context_refs: list[str] = field(default_factory=list)  # parent post / media ids
    author: str = ""


class ProcessedSet:
    """Bounded, time-windowed set of handled mention ids.

    Process-local: lost on restart. Entries expire after *ttl_seconds*, and the
    oldest entries are evicted once *max_items* is exceeded.
    """

    def __init__(
        self,
        max_items: int = 5000,
        ttl_seconds: float = 7 * 24 * 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_items = max_items
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._items: OrderedDict[str, float] = OrderedDict()

    def _evict(self, now: float) -> None:
        while self._items:
            oldest_id, added_at = next(iter(self._items.items()))
            if now - added_at < self.ttl_seconds and len(self._items) <= self.max_items:
                break
            del self._items[oldest_id]

    def add(self, item_id: str) -> None:
        now = self._clock()
        self._items[item_id] = now
        self._items.move_to_end(item_id)
        self._evict(now)

    def __contains__(self, item_id: object) -> bool:
        self._evict(self._clock())
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)


class SummaryApiClient:
    """Calls this service's own POST /summarize endpoint."""

    def __init__(
        self,
        api_url: str,
        timeout: float = _SUMMARIZE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.summarize_url = f"{api_url.rstrip('/')}/summarize"
        self.timeout = timeout
        self._transport = transport

    async def summarize(self, url: str) -> dict[str, Any]:
        """Analysis JSON for *url*. Raises httpx.HTTPError on failure."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(self.summarize_url, json={"url": url})
            resp.raise_for_status()
            return resp.json()


class BaseBot(ABC):
    """Polling loop and mention handling shared by all platforms."""

    name: str = "bot"

    def __init__(
        self,
        api: SummaryApiClient,
        poll_interval: float = 60.0,
        processed: ProcessedSet | None = None,
    ):
        self.api = api
        self.poll_interval = poll_interval
        self.processed = processed if processed is not None else ProcessedSet()
        self.log = logging.LoggerAdapter(logger, {"bot": self.name})

    # ── Platform contract ────────────────────────────────────────

    @abstractmethod
    async def poll_for_mentions(self) -> list[Mention]:
        """Fetch the current batch of candidate mentions."""
        ...

    @abstractmethod
    async def reply(self, mention_id: str, text: str) -> None:
        """Post *text* as a reply. Raises DeliveryError on failure."""
        ...

    @abstractmethod
    def format_reply(self, analysis: dict[str, Any]) -> str:
        """Render the analysis JSON as a platform message."""
        ...

    async def fetch_context_text(self, ref: str) -> str | None:
        """Text of a linked item (parent post, media caption). None if unavailable."""
        return None

    async def on_processed(self, mention: Mention) -> None:
        """Hook run after a mention is handled (e.g. mark as read)."""

    # ── Mention handling ─────────────────────────────────────────

    async def resolve_url(self, mention: Mention) -> str | None:
        """Article URL from the mention text, falling back to its context."""
        url = extract_url(mention.text)
        if url:
            return url
        for ref in mention.context_refs:
            try:
                context = await self.fetch_context_text(ref)
            except ITEM_ERRORS as e:
                self.log.warning("%s: could not fetch context %s for %s: %s", self.name, ref, mention.id, e)
                continue
            url = extract_url(context)
            if url:
                return url
        return None

    async def process_mention(self, mention: Mention) -> bool:
        """Handle one mention. Returns True when it needs no further attention."""
        if mention.id in self.processed:
            return True

        url = await self.resolve_url(mention)
        if not url:
            self.log.debug("%s: no URL in mention %s", self.name, mention.id)
            await self._mark_processed(mention)
            return True

        try:
            analysis = await self.api.summarize(url)
            await self.reply(mention.id, self.format_reply(analysis))
        except ITEM_ERRORS as e:
            self.log.error("%s: error processing mention %s (%s): %s", self.name, mention.id, url, e)
            return await self._send_apology(mention)

        BOT_REPLIES.labels(bot=self.name, status="sent").inc()
        self.log.info("%s: replied to %s with summary of %s", self.name, mention.id, url)
        await self._mark_processed(mention)
        return True

    async def _send_apology(self, mention: Mention) -> bool:
        try:
            await self.reply(mention.id, APOLOGY_MESSAGE)
        except ITEM_ERRORS as e:
            BOT_REPLIES.labels(bot=self.name, status="failed").inc()
            self.log.error("%s: error sending apology to %s, will retry next poll: %s", self.name, mention.id, e)
            return False

        BOT_REPLIES.labels(bot=self.name, status="apology").inc()
        await self._mark_processed(mention)
        return True

    async def _mark_processed(self, mention: Mention) -> None:
        self.processed.add(mention.id)
        try:
            await self.on_processed(mention)
        except ITEM_ERRORS as e:
            self.log.warning("%s: post-processing hook failed for %s: %s", self.name, mention.id, e)

    # ── Loop ─────────────────────────────────────────────────────

    async def poll_once(self) -> int:
        """Run one poll cycle. Returns the number of mentions handled."""
        try:
            mentions = await self.poll_for_mentions()
        except ITEM_ERRORS as e:
            self.log.error("%s: error fetching mentions: %s", self.name, e)
            return 0

        handled = 0
        for mention in mentions:
            if mention.id in self.processed:
                continue
            if await self.process_mention(mention):
                handled += 1
        return handled

    async def run_forever(self) -> None:
        self.log.info("Starting %s bot polling (every %.0fs)", self.name, self.poll_interval)
        while True:
            try:
                handled = await self.poll_once()
                if handled:
                    self.log.info("%s: handled %d mention(s)", self.name, handled)
            except Exception:
                self.log.exception("%s: error in polling cycle", self.name)
            await asyncio.sleep(self.poll_interval)


def truncate(text: str, limit: int, ellipsis: str = "…") -> str:
    """Cut *text* to at most *limit* characters, at a word boundary where possible."""
    if len(text) <= limit:
        return text
    if limit <= len(ellipsis):
        return text[:limit]
    cut = text[: limit - len(ellipsis)]
    space = cut.rfind(" ")
    if space > limit // 2:
        cut = cut[:space]
    return cut.rstrip() + ellipsis
