"""Tests for the shared bot machinery."""

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from savemeaclick.bots.base import (
    APOLOGY_MESSAGE,
    BaseBot,
    Mention,
    ProcessedSet,
    SummaryApiClient,
    extract_url,
    truncate,
)
from savemeaclick.core.exceptions import DeliveryError
from tests.samples import SAMPLE_ANALYSIS

ARTICLE = "https://example.com/article"


class FakeBot(BaseBot):
    name = "fake"

    def __init__(self, api, mentions=None, context=None, **kwargs):
        super().__init__(api=api, **kwargs)
        self.mentions = mentions or []
        self.context = context or {}
        self.replies: list[tuple[str, str]] = []
        self.reply_failures: list[Exception] = []
        self.acknowledged: list[str] = []

    async def poll_for_mentions(self):
        return list(self.mentions)

    async def reply(self, mention_id, text):
        if self.reply_failures:
            raise self.reply_failures.pop(0)
        self.replies.append((mention_id, text))

    def format_reply(self, analysis):
        return f"{analysis['title']}: {analysis['summary']}"

    async def fetch_context_text(self, ref):
        return self.context.get(ref)

    async def on_processed(self, mention):
        self.acknowledged.append(mention.id)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def api():
    mock = MagicMock(spec=SummaryApiClient)
    mock.summarize = AsyncMock(return_value=dict(SAMPLE_ANALYSIS))
    return mock


class TestExtractUrl:
    def test_first_url(self):
        assert extract_url(f"look at {ARTICLE} and https://b.example") == ARTICLE

    def test_no_url(self):
        assert extract_url("u/savemeaclick what is this?") is None

    def test_none(self):
        assert extract_url(None) is None

    def test_http_scheme(self):
        assert extract_url("http://plain.example/x") == "http://plain.example/x"


class TestProcessedSet:
    def test_membership(self):
        processed = ProcessedSet()
        processed.add("a")
        assert "a" in processed
        assert "b" not in processed

    def test_oldest_evicted_past_capacity(self):
        processed = ProcessedSet(max_items=2)
        for item in ("a", "b", "c"):
            processed.add(item)
        assert "a" not in processed
        assert "b" in processed
        assert "c" in processed
        assert len(processed) == 2

    def test_entries_expire(self):
        clock = FakeClock()
        processed = ProcessedSet(ttl_seconds=10, clock=clock)
        processed.add("a")
        clock.now = 5
        assert "a" in processed
        clock.now = 10
        assert "a" not in processed

    def test_re_adding_refreshes_position(self):
        clock = FakeClock()
        processed = ProcessedSet(max_items=2, clock=clock)
        processed.add("a")
        processed.add("b")
        processed.add("a")
        processed.add("c")
        assert "a" in processed
        assert "b" not in processed


class TestProcessMention:
    async def test_replies_with_summary(self, api):
        bot = FakeBot(api)
        handled = await bot.process_mention(Mention(id="m1", text=f"u/bot {ARTICLE}"))

        assert handled is True
        api.summarize.assert_awaited_once_with(ARTICLE)
        assert bot.replies == [("m1", f"Example: {SAMPLE_ANALYSIS['summary']}")]
        assert "m1" in bot.processed
        assert bot.acknowledged == ["m1"]

    async def test_url_from_context(self, api):
        bot = FakeBot(api, context={"parent": f"Original post {ARTICLE}"})
        await bot.process_mention(Mention(id="m1", text="u/bot summarize this", context_refs=["parent"]))
        api.summarize.assert_awaited_once_with(ARTICLE)

    async def test_mention_text_wins_over_context(self, api):
        bot = FakeBot(api, context={"parent": "https://other.example/"})
        await bot.process_mention(Mention(id="m1", text=f"u/bot {ARTICLE}", context_refs=["parent"]))
        api.summarize.assert_awaited_once_with(ARTICLE)

    async def test_no_url_is_marked_without_reply(self, api):
        bot = FakeBot(api)
        handled = await bot.process_mention(Mention(id="m1", text="u/bot hello"))

        assert handled is True
        api.summarize.assert_not_awaited()
        assert bot.replies == []
        assert "m1" in bot.processed

    async def test_api_failure_sends_apology(self, api):
        request = httpx.Request("POST", "http://api/summarize")
        api.summarize.side_effect = httpx.HTTPStatusError(
            "502", request=request, response=httpx.Response(502, request=request)
        )
        bot = FakeBot(api)

        handled = await bot.process_mention(Mention(id="m1", text=ARTICLE))

        assert handled is True
        assert bot.replies == [("m1", APOLOGY_MESSAGE)]
        assert "m1" in bot.processed

    async def test_reply_failure_sends_apology(self, api):
        bot = FakeBot(api)
        bot.reply_failures = [DeliveryError("rate limited", 429)]

        handled = await bot.process_mention(Mention(id="m1", text=ARTICLE))

        assert handled is True
        assert bot.replies == [("m1", APOLOGY_MESSAGE)]

    async def test_failed_apology_leaves_mention_unprocessed(self, api):
        api.summarize.side_effect = httpx.ConnectError("refused")
        bot = FakeBot(api)
        bot.reply_failures = [DeliveryError("down")]

        handled = await bot.process_mention(Mention(id="m1", text=ARTICLE))

        assert handled is False
        assert "m1" not in bot.processed
        assert bot.acknowledged == []

    async def test_already_processed_is_skipped(self, api):
        bot = FakeBot(api)
        bot.processed.add("m1")
        assert await bot.process_mention(Mention(id="m1", text=ARTICLE)) is True
        api.summarize.assert_not_awaited()

    async def test_hook_failure_does_not_fail_mention(self, api):
        bot = FakeBot(api)
        bot.on_processed = AsyncMock(side_effect=httpx.ConnectError("refused"))
        assert await bot.process_mention(Mention(id="m1", text=ARTICLE)) is True
        assert "m1" in bot.processed

    async def test_empty_processed_set_is_used(self, api):
        processed = ProcessedSet()
        bot = FakeBot(api, processed=processed)
        await bot.process_mention(Mention(id="m1", text="no link"))
        assert "m1" in processed


class TestPollOnce:
    async def test_each_mention_handled_once(self, api):
        mentions = [Mention(id="m1", text=ARTICLE), Mention(id="m2", text=ARTICLE)]
        bot = FakeBot(api, mentions=mentions)

        assert await bot.poll_once() == 2
        assert await bot.poll_once() == 0
        assert [r[0] for r in bot.replies] == ["m1", "m2"]

    async def test_one_failure_does_not_abort_batch(self, api):
        api.summarize.side_effect = [httpx.ConnectError("refused"), dict(SAMPLE_ANALYSIS)]
        mentions = [Mention(id="m1", text=ARTICLE), Mention(id="m2", text=ARTICLE)]
        bot = FakeBot(api, mentions=mentions)

        await bot.poll_once()

        assert bot.replies[0] == ("m1", APOLOGY_MESSAGE)
        assert bot.replies[1][0] == "m2"

    async def test_poll_error_returns_zero(self, api):
        bot = FakeBot(api)
        bot.poll_for_mentions = AsyncMock(side_effect=httpx.ConnectError("refused"))
        assert await bot.poll_once() == 0

    async def test_unprocessed_mention_is_retried_next_poll(self, api):
        api.summarize.side_effect = httpx.ConnectError("refused")
        bot = FakeBot(api, mentions=[Mention(id="m1", text=ARTICLE)])
        bot.reply_failures = [DeliveryError("down")]

        assert await bot.poll_once() == 0
        assert await bot.poll_once() == 1
        assert bot.replies == [("m1", APOLOGY_MESSAGE)]


class TestSummaryApiClient:
    async def test_posts_url(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=SAMPLE_ANALYSIS)

        client = SummaryApiClient("http://localhost:3000/", transport=httpx.MockTransport(handler))
        analysis = await client.summarize(ARTICLE)

        assert analysis["qualityScore"] == 81
        assert str(seen[0].url) == "http://localhost:3000/summarize"
        assert json.loads(seen[0].content) == {"url": ARTICLE}

    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json={"detail": "Failed to extract article content - article is null"})

        client = SummaryApiClient("http://localhost:3000", transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.HTTPStatusError):
            await client.summarize(ARTICLE)


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("hello", 10) == "hello"

    def test_cuts_at_word_boundary(self):
        assert truncate("one two three four", 12) == "one two…"

    def test_never_exceeds_limit(self):
        text = "x" * 50
        assert len(truncate(text, 20)) == 20

    def test_tiny_limit(self):
        assert truncate("hello", 1) == "h"


class TestBatchIsolation:
    async def test_context_error_is_contained(self, api):
        bot = FakeBot(api)
        bot.fetch_context_text = AsyncMock(side_effect=ValueError("Expecting value"))
        mentions = [
            Mention(id="m1", text="u/bot what is this?", context_refs=["parent"]),
            Mention(id="m2", text=ARTICLE),
        ]
        bot.mentions = mentions

        assert await bot.poll_once() == 2
        assert bot.replies == [("m2", f"Example: {SAMPLE_ANALYSIS['summary']}")]

    async def test_context_delivery_error_falls_through_to_next_ref(self, api):
        bot = FakeBot(api)
        bot.fetch_context_text = AsyncMock(side_effect=[DeliveryError("token refused"), f"see {ARTICLE}"])
        await bot.process_mention(Mention(id="m1", text="u/bot", context_refs=["parent", "post"]))
        api.summarize.assert_awaited_once_with(ARTICLE)

    async def test_undecodable_apology_response_is_contained(self, api):
        api.summarize.side_effect = httpx.ConnectError("refused")
        bot = FakeBot(api, mentions=[Mention(id="m1", text=ARTICLE), Mention(id="m2", text="no link")])
        bot.reply_failures = [ValueError("Expecting value")]

        assert await bot.poll_once() == 1
        assert "m1" not in bot.processed
        assert "m2" in bot.processed


class TestBotLogging:
    async def test_records_carry_bot_name(self, api, caplog):
        bot = FakeBot(api)
        with caplog.at_level(logging.INFO, logger="savemeaclick.bots.base"):
            await bot.process_mention(Mention(id="m1", text=ARTICLE))

        records = [r for r in caplog.records if "replied to m1" in r.getMessage()]
        assert records
        assert records[0].bot == "fake"
