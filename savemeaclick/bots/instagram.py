"""Instagram bot — replies to mentions via the Instagram Graph API.

Setup: a Professional Instagram account connected to a Facebook Page, and a
Page Access Token with instagram_basic, instagram_manage_comments,
pages_show_list and pages_read_engagement. Set
INSTAGRAM_PAGE_ACCESS_TOKEN and INSTAGRAM_APP_ID.
"""

from __future__ import annotations

from typing import Any

import httpx

from savemeaclick.bots.base import BaseBot, Mention, ProcessedSet, SummaryApiClient, truncate
from savemeaclick.core.exceptions import DeliveryError

MAX_COMMENT_LENGTH = 2200
MENTION_FIELDS = "id,text,username,media_id"


class InstagramBot(BaseBot):
    """Answers Instagram mentions with a short summary."""

    name = "instagram"

    def __init__(
        self,
        page_access_token: str,
        app_id: str,
        api: SummaryApiClient,
        api_version: str = "v18.0",
        base_url: str = "https://graph.facebook.com",
        poll_interval: float = 60.0,
        processed: ProcessedSet | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not (page_access_token and app_id):
            raise ValueError("Instagram configuration missing: page access token and app id are required")
        super().__init__(api=api, poll_interval=poll_interval, processed=processed)
        self.page_access_token = page_access_token
        self.app_id = app_id
        self.graph_url = f"{base_url.rstrip('/')}/{api_version}"
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=30, transport=self._transport)

    async def poll_for_mentions(self) -> list[Mention]:
        async with self._client() as client:
            resp = await client.get(
                f"{self.graph_url}/me/mentions",
                params={"access_token": self.page_access_token, "fields": MENTION_FIELDS},
            )
        resp.raise_for_status()

        mentions = []
        for item in resp.json().get("data", []):
            if not item.get("id"):
                continue
            media_id = item.get("media_id")
            mentions.append(
                Mention(
                    id=str(item["id"]),
                    text=item.get("text") or "",
                    context_refs=[str(media_id)] if media_id else [],
                    author=item.get("username") or "",
                )
            )
        return mentions

    async def reply(self, mention_id: str, text: str) -> None:
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.graph_url}/{mention_id}/replies",
                    data={"message": text, "access_token": self.page_access_token},
                )
        except httpx.HTTPError as e:
            raise DeliveryError(f"Instagram reply to {mention_id} failed: {e}")

        if resp.status_code >= 400:
            raise DeliveryError(
                f"Instagram reply to {mention_id} failed: HTTP {resp.status_code} {resp.text[:200]}",
                resp.status_code,
            )

    async def fetch_context_text(self, ref: str) -> str | None:
        """Caption of the media the mention was made on."""
        async with self._client() as client:
            resp = await client.get(
                f"{self.graph_url}/{ref}",
                params={"access_token": self.page_access_token, "fields": "caption"},
            )
        resp.raise_for_status()
        return resp.json().get("caption")

    def format_reply(self, analysis: dict[str, Any]) -> str:
        footer = f"\n\nClickbait score: {analysis.get('clickbaitScore', 0)}/100"
        head = f"{analysis['assessment']}\n\n"
        room = MAX_COMMENT_LENGTH - len(head) - len(footer)
        return head + truncate(analysis["summary"], max(room, 0)) + footer
