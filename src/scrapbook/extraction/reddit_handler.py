"""Reddit strategy backed by the Reddit OAuth API.

A script-app password grant yields a bearer token; the post comes from
``/api/info`` and its top comments from ``/comments/<id>``.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from scrapbook.core.constants import (
    REDDIT_COMMENT_LIMIT,
    REDDIT_COMMENT_MAX_CHARS,
    SOCIAL_FETCH_TIMEOUT,
)
from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.errors import InvalidInput, NotConfigured, UpstreamFetchFailed
from scrapbook.core.models import ExtractedSource
from scrapbook.core.urls import host_matches
from scrapbook.extraction.handlers import ContentHandler

logger = logging.getLogger(__name__)

REDDIT_HOSTS = frozenset({"reddit.com", "old.reddit.com", "new.reddit.com"})
TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
API_BASE = "https://oauth.reddit.com"
USER_AGENT = "Scrapbook/1.0"

MAX_COMMENT_DEPTH = 2
MAX_REPLIES_PER_COMMENT = 3

_POST_PATH = re.compile(r"reddit\.com/r/([^/]+)/comments/([^/?#]+)", re.I)


def is_reddit_url(url: str) -> bool:
    return host_matches(url, REDDIT_HOSTS)


def extract_post_id(url: str) -> Optional[Tuple[str, str]]:
    """(subreddit, post id) from a post URL, or None."""
    match = _POST_PATH.search(url)
    if not match:
        return None
    return match.group(1), match.group(2)


@dataclass
class RedditPost:
    id: str
    title: str
    author: str
    subreddit: str
    selftext: str
    url: str
    score: int
    num_comments: int
    created_utc: float
    permalink: str


@dataclass
class RedditComment:
    id: str
    author: str
    body: str
    score: int
    created_utc: float
    depth: int


def flatten_comments(children: List[Dict[str, Any]], limit: int) -> List[RedditComment]:
    """Walk a comment listing depth-first, keeping at most ``limit`` comments.

    Replies are followed up to ``MAX_COMMENT_DEPTH`` levels deep and at most
    ``MAX_REPLIES_PER_COMMENT`` per comment. Deleted comments are skipped.
    """
    result: List[RedditComment] = []

    def visit(node: Dict[str, Any], depth: int) -> None:
        if len(result) >= limit or node.get("kind") != "t1":
            return
        data = node.get("data") or {}
        body = data.get("body")
        if not body or body == "[deleted]":
            return

        result.append(
            RedditComment(
                id=data.get("id", ""),
                author=data.get("author") or "[deleted]",
                body=body,
                score=data.get("score", 0),
                created_utc=data.get("created_utc", 0),
                depth=depth,
            )
        )

        replies = data.get("replies")
        if depth < MAX_COMMENT_DEPTH and isinstance(replies, dict):
            reply_children = (replies.get("data") or {}).get("children") or []
            for reply in reply_children[:MAX_REPLIES_PER_COMMENT]:
                visit(reply, depth + 1)

    for child in children:
        if len(result) >= limit:
            break
        visit(child, 0)

    return result


def format_post(post: RedditPost, comments: List[RedditComment]) -> str:
    """Render a post and its comments as the text blob fed to the model."""
    parts = [
        f"Reddit Post: {post.title}",
        f"Subreddit: r/{post.subreddit}",
        f"Author: u/{post.author}",
        f"Score: {post.score} | Comments: {post.num_comments}",
        "",
    ]

    if post.selftext:
        parts.extend(["--- Post Content ---", post.selftext, ""])

    if comments:
        parts.append("--- Top Comments ---")
        for comment in comments:
            indent = "  " * comment.depth
            body = comment.body
            if len(body) > REDDIT_COMMENT_MAX_CHARS:
                body = body[:REDDIT_COMMENT_MAX_CHARS] + "..."
            parts.append(f"{indent}u/{comment.author} ({comment.score} points):")
            parts.append(f"{indent}{body}")
            parts.append("")

    return "\n".join(parts)


class RedditHandler(ContentHandler):
    """Handler for Reddit post URLs."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        user_agent: str = USER_AGENT,
        timeout: float = SOCIAL_FETCH_TIMEOUT,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.user_agent = user_agent
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "reddit"

    def matches(self, url: str) -> bool:
        return is_reddit_url(url)

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.username and self.password)

    async def _request_json(
        self,
        method: str,
        url: str,
        session: aiohttp.ClientSession,
        deadline: Deadline,
        **kwargs: Any,
    ) -> Any:
        deadline.check(f"Reddit request {url}")
        headers = {"User-Agent": self.user_agent, **kwargs.pop("headers", {})}
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                timeout=deadline.client_timeout(self.timeout),
                **kwargs,
            ) as response:
                if response.status != 200:
                    raise UpstreamFetchFailed(f"Reddit API returned HTTP {response.status}")
                return await response.json()
        except asyncio.TimeoutError:
            raise UpstreamFetchFailed("Timeout talking to the Reddit API")
        except aiohttp.ClientError as e:
            raise UpstreamFetchFailed(f"Reddit API error: {e}")

    async def _access_token(self, session: aiohttp.ClientSession, deadline: Deadline) -> str:
        if not self.is_configured():
            raise NotConfigured(
                "Reddit service not configured. Set REDDIT_CLIENT_ID, "
                "REDDIT_CLIENT_SECRET, REDDIT_USERNAME, and REDDIT_PASSWORD."
            )
        data = await self._request_json(
            "POST",
            TOKEN_URL,
            session,
            deadline,
            auth=aiohttp.BasicAuth(self.client_id, self.client_secret),
            data={
                "grant_type": "password",
                "username": self.username,
                "password": self.password,
            },
        )
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise UpstreamFetchFailed("Reddit did not return an access token")
        return token

    def _ids(self, url: str) -> Tuple[str, str]:
        extracted = extract_post_id(url)
        if extracted is None:
            raise InvalidInput(f"Invalid Reddit URL: {url}")
        return extracted

    async def get_post(
        self,
        url: str,
        session: aiohttp.ClientSession,
        token: str,
        deadline: Optional[Deadline] = None,
    ) -> RedditPost:
        """Fetch a post's data."""
        subreddit, post_id = self._ids(url)
        data = await self._request_json(
            "GET",
            f"{API_BASE}/api/info",
            session,
            ensure_deadline(deadline),
            params={"id": f"t3_{post_id}"},
            headers={"Authorization": f"bearer {token}"},
        )
        try:
            post = data["data"]["children"][0]["data"]
        except (KeyError, IndexError, TypeError):
            raise UpstreamFetchFailed(f"Reddit post {post_id} not found")

        return RedditPost(
            id=post.get("id", post_id),
            title=post.get("title", ""),
            author=post.get("author") or "[deleted]",
            subreddit=post.get("subreddit") or subreddit,
            selftext=post.get("selftext") or "",
            url=post.get("url", url),
            score=post.get("score", 0),
            num_comments=post.get("num_comments", 0),
            created_utc=post.get("created_utc", 0),
            permalink=f"https://reddit.com{post.get('permalink', '')}",
        )

    async def get_comments(
        self,
        url: str,
        session: aiohttp.ClientSession,
        token: str,
        limit: int = REDDIT_COMMENT_LIMIT,
        deadline: Optional[Deadline] = None,
    ) -> List[RedditComment]:
        """Fetch up to ``limit`` top comments, including shallow replies."""
        _, post_id = self._ids(url)
        data = await self._request_json(
            "GET",
            f"{API_BASE}/comments/{post_id}",
            session,
            ensure_deadline(deadline),
            params={"limit": str(limit), "depth": str(MAX_COMMENT_DEPTH + 1), "sort": "top"},
            headers={"Authorization": f"bearer {token}"},
        )
        try:
            children = data[1]["data"]["children"]
        except (KeyError, IndexError, TypeError):
            raise UpstreamFetchFailed(f"Unexpected comment listing for {post_id}")
        return flatten_comments(children, limit)

    async def extract(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession,
        deadline: Optional[Deadline] = None,
    ) -> ExtractedSource:
        deadline = ensure_deadline(deadline)
        token = await self._access_token(session, deadline)
        post = await self.get_post(url, session, token, deadline)

        try:
            comments = await self.get_comments(url, session, token, deadline=deadline)
        except UpstreamFetchFailed as e:
            logger.warning(f"Failed to fetch comments for {post.id}: {e}")
            comments = []

        return ExtractedSource(
            content=format_post(post, comments),
            title=post.title,
            metadata={
                "author": f"u/{post.author}",
                "domain": f"r/{post.subreddit}",
                "engagement": f"{post.score} points, {post.num_comments} comments",
            },
        )
