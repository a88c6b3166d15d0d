"""Article extraction — fetch a page and isolate its title and main text.

Fetch layer uses httpx.AsyncClient; parse layer is pure (no I/O):
readability-lxml picks the main content block, BeautifulSoup flattens it
to text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

logger = logging.getLogger(__name__)

_HTTP_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; SaveMeAClickBot/1.0; +https://savemeaclick.app)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

# readability's placeholder when a page has no <title>
_NO_TITLE = "[no-title]"


@dataclass
class Article:
    """Extracted article. Either field may be empty when the page lacks it."""

    title: str
    content: str


# ── Parse layer ──────────────────────────────────────────────────


def _meta_title(soup: BeautifulSoup) -> str:
    """og:title / twitter:title, which usually omit the site-name suffix."""
    for attrs in ({"property": "og:title"}, {"name": "twitter:title"}):
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content"):
            return tag["content"].strip()
    return ""


def parse_article(html: str, max_chars: int | None = None) -> Article:
    """Extract title and main text from an HTML document."""
    doc = Document(html)
    page = BeautifulSoup(html, "html.parser")

    title = _meta_title(page)
    if not title:
        title = doc.short_title().strip()
        if title == _NO_TITLE:
            title = ""

    content_html = doc.summary(html_partial=True)
    content = BeautifulSoup(content_html, "html.parser").get_text(" ", strip=True)
    if max_chars is not None and len(content) > max_chars:
        content = content[:max_chars]

    return Article(title=title, content=content)


# ── Fetch layer ──────────────────────────────────────────────────


class ArticleExtractor:
    """Fetch an article by URL and extract it."""

    def __init__(
        self,
        timeout: float = 20.0,
        max_chars: int | None = 12000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.max_chars = max_chars
        self._transport = transport

    async def fetch_html(self, url: str) -> str | None:
        """Page HTML, or None when the page cannot be fetched or is not HTML."""
        try:
            async with httpx.AsyncClient(
                headers=_HTTP_HEADERS,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch %s: %s", url, exc)
            return None

        if resp.status_code != 200:
            logger.warning("Failed to fetch %s: HTTP %d", url, resp.status_code)
            return None

        ct = resp.headers.get("content-type", "")
        if "html" not in ct and "text" not in ct:
            logger.warning("Not an HTML page %s (content-type=%s)", url, ct)
            return None
        return resp.text

    async def extract(self, url: str) -> Article | None:
        """Fetch and extract the article at *url*; None if it cannot be fetched."""
        html = await self.fetch_html(url)
        if html is None:
            return None
        try:
            return parse_article(html, max_chars=self.max_chars)
        except Unparseable as exc:
            logger.warning("Could not parse article at %s: %s", url, exc)
            return None
