"""
Narration text acquisition.

RedditTextSource reads a post through Reddit's public JSON view
(<post-url>/.json). It never raises: a malformed or unreachable upstream
yields FetchedText(title=<placeholder>, body=""), and the pipeline decides
whether an empty body is acceptable.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx
from pydantic import BaseModel

from ..settings import Settings

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = "Reddit Story"


class FetchedText(BaseModel):
    title: str = PLACEHOLDER_TITLE
    body: str = ""


class TextSource(Protocol):
    def fetch(self, locator: str) -> FetchedText:
        ...


def json_url(post_url: str) -> str:
    """https://www.reddit.com/r/x/comments/id/slug[/] -> .../slug/.json"""
    base = post_url.split("?", 1)[0].split("#", 1)[0]
    if base.endswith(".json"):
        return base
    return base + ".json" if base.endswith("/") else base + "/.json"


class RedditTextSource:
    """Fetch title + body text of a Reddit post."""

    def __init__(
        self,
        user_agent: str = "storyreel/0.1",
        timeout: float = 15.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedditTextSource":
        return cls(user_agent=settings.reddit_user_agent, timeout=settings.http_timeout_seconds)

    def fetch(self, locator: str) -> FetchedText:
        url = json_url(locator)
        try:
            data = self._get_json(url)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Reddit fetch failed for %s: %s", url, exc)
            return FetchedText()
        return parse_post(data)

    def _get_json(self, url: str) -> Any:
        headers = {"User-Agent": self.user_agent}
        if self._client is not None:
            response = self._client.get(url, headers=headers, follow_redirects=True)
            response.raise_for_status()
            return response.json()
        with httpx.Client(timeout=self.timeout) as client:
            response = client.get(url, headers=headers, follow_redirects=True)
            response.raise_for_status()
            return response.json()


def parse_post(data: Any) -> FetchedText:
    """
    Pull title and narration out of a Reddit listing pair.

    Body preference: self text, then the first top-level comment, then the
    title itself.
    """
    post = _dig(data, 0, "data", "children", 0, "data")
    if not isinstance(post, dict):
        logger.warning("Unexpected Reddit payload shape; using placeholder text.")
        return FetchedText()

    title = _as_text(post.get("title")) or PLACEHOLDER_TITLE
    selftext = _as_text(post.get("selftext"))

    top_comment = ""
    children = _dig(data, 1, "data", "children")
    if isinstance(children, list):
        for child in children:
            body = _as_text(_dig(child, "data", "body"))
            if body:
                top_comment = body
                break

    body = (selftext or top_comment or title).strip()
    return FetchedText(title=title, body=body)


def _dig(node: Any, *path: Any) -> Any:
    for key in path:
        try:
            node = node[key]
        except (KeyError, IndexError, TypeError):
            return None
    return node


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""
