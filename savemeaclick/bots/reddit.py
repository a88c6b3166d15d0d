"""Reddit bot — replies to username mentions in the bot's inbox.

Uses a "script" app and the OAuth2 password grant:
  1. Create a Reddit account for the bot
  2. At https://www.reddit.com/prefs/apps create a "script" app
  3. Set REDDIT_CLIENT_ID, REDDIT_CLIENT_SECRET, REDDIT_USERNAME,
     REDDIT_PASSWORD (and optionally REDDIT_USER_AGENT)
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from savemeaclick.bots.base import BaseBot, Mention, ProcessedSet, SummaryApiClient, truncate
from savemeaclick.core.exceptions import DeliveryError

TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
OAUTH_API = "https://oauth.reddit.com"

COMMENT_KIND = "t1"
MAX_COMMENT_LENGTH = 10000
_TOKEN_REFRESH_MARGIN = 60  # seconds before expiry

FOOTER = (
    "^(I'm a bot that summarizes articles and detects clickbait. "
    "Mention me with a link and I'll save you a click.)"
)


class RedditBot(BaseBot):
    """Answers ``u/<bot>`` mentions with an article summary."""

    name = "reddit"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        api: SummaryApiClient,
        user_agent: str = "SaveMeAClickBot/1.0.0",
        poll_interval: float = 60.0,
        processed: ProcessedSet | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not (client_id and client_secret and username and password):
            raise ValueError("Reddit configuration missing: client id, secret, username and password are required")
        super().__init__(api=api, poll_interval=poll_interval, processed=processed)
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.user_agent = user_agent
        self._transport = transport
        self._token: str | None = None
        self._token_expires_at = 0.0

    @property
    def mention_tag(self) -> str:
        return f"u/{self.username}".lower()

    # ── HTTP helpers ─────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=30,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    async def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        async with self._client() as client:
            resp = await client.post(
                TOKEN_URL,
                auth=(self.client_id, self.client_secret),
                data={"grant_type": "password", "username": self.username, "password": self.password},
            )
        resp.raise_for_status()
        data = resp.json()
        if "access_token" not in data:
            raise DeliveryError(f"Reddit token request failed: {data.get('error', 'no access_token')}")

        self._token = data["access_token"]
        self._token_expires_at = time.monotonic() + float(data.get("expires_in", 3600)) - _TOKEN_REFRESH_MARGIN
        self.log.debug("Reddit: obtained access token for u/%s", self.username)
        return self._token

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        token = await self._access_token()
        async with self._client() as client:
            return await client.request(
                method,
                f"{OAUTH_API}{path}",
                headers={"Authorization": f"bearer {token}"},
                **kwargs,
            )

    # ── Platform contract ────────────────────────────────────────

    async def poll_for_mentions(self) -> list[Mention]:
        resp = await self._request("GET", "/message/unread", params={"limit": 100})
        resp.raise_for_status()

        mentions: list[Mention] = []
        for child in resp.json().get("data", {}).get("children", []):
            if child.get("kind") != COMMENT_KIND:
                continue
            item = child.get("data", {})
            body = item.get("body") or ""
            if self.mention_tag not in body.lower():
                continue
            refs = [ref for ref in (item.get("parent_id"), item.get("link_id")) if ref]
            mentions.append(
                Mention(
                    id=item["name"],
                    text=body,
                    context_refs=list(dict.fromkeys(refs)),
                    author=item.get("author") or "",
                )
            )
        return mentions

    async def reply(self, mention_id: str, text: str) -> None:
        try:
            resp = await self._request(
                "POST",
                "/api/comment",
                data={"thing_id": mention_id, "text": text, "api_type": "json"},
            )
        except httpx.HTTPError as e:
            raise DeliveryError(f"Reddit reply to {mention_id} failed: {e}")

        if resp.status_code != 200:
            raise DeliveryError(f"Reddit reply to {mention_id} failed: HTTP {resp.status_code}", resp.status_code)
        errors = resp.json().get("json", {}).get("errors") or []
        if errors:
            raise DeliveryError(f"Reddit rejected reply to {mention_id}: {errors}")

    async def fetch_context_text(self, ref: str) -> str | None:
        resp = await self._request("GET", "/api/info", params={"id": ref})
        resp.raise_for_status()
        children = resp.json().get("data", {}).get("children", [])
        if not children:
            return None
        item = children[0].get("data", {})
        # Comment → body; link post → url + selftext
        parts = [item.get("body"), item.get("url"), item.get("selftext")]
        text = " ".join(p for p in parts if p)
        return text or None

    async def on_processed(self, mention: Mention) -> None:
        resp = await self._request("POST", "/api/read_message", data={"id": mention.id})
        if resp.status_code != 200:
            self.log.warning("Reddit: could not mark %s as read (HTTP %d)", mention.id, resp.status_code)

    def format_reply(self, analysis: dict[str, Any]) -> str:
        lines = [
            "Here's a summary of the article:",
            "",
            f"**{analysis['title']}**",
            "",
            analysis["assessment"],
            "",
            analysis["summary"],
        ]
        key_points = analysis.get("keyPoints") or []
        if key_points:
            lines += ["", "**Key points:**", ""]
            lines += [f"* {point}" for point in key_points]
        lines += [
            "",
            f"Clickbait score: {analysis.get('clickbaitScore', 0)}/100 | "
            f"Quality score: {analysis.get('qualityScore', 0)}/100 | "
            f"Time saved: ~{analysis.get('timeSaved', 0):.0f} min",
            "",
            "---",
            "",
            FOOTER,
        ]
        return truncate("\n".join(lines), MAX_COMMENT_LENGTH)
