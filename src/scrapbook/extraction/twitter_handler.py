"""Twitter/X strategy backed by the ``bird`` CLI.

``bird read <id> --json`` returns one tweet and ``bird thread <id> --json``
returns the conversation it belongs to. Credentials are handed to the CLI
through its environment.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from scrapbook.core.constants import SOCIAL_FETCH_TIMEOUT
from scrapbook.core.deadline import Deadline, ensure_deadline
from scrapbook.core.errors import NotConfigured, UpstreamFetchFailed
from scrapbook.core.models import ExtractedSource
from scrapbook.core.result import ParseFailure, parse_json
from scrapbook.core.urls import host_matches
from scrapbook.extraction.handlers import ContentHandler
from scrapbook.extraction.process import run_command

logger = logging.getLogger(__name__)

TWITTER_HOSTS = frozenset({"x.com", "twitter.com", "mobile.twitter.com"})

_STATUS_ID = re.compile(r"/status/(\d+)")


def is_twitter_url(url: str) -> bool:
    return host_matches(url, TWITTER_HOSTS)


def extract_tweet_id(url_or_id: str) -> str:
    """Tweet id from a status URL; anything else is assumed to be an id."""
    match = _STATUS_ID.search(url_or_id)
    return match.group(1) if match else url_or_id


@dataclass
class TweetData:
    """A tweet as reported by ``bird``."""

    id: str
    text: str
    username: str
    name: str
    created_at: Optional[str] = None
    like_count: Optional[int] = None
    retweet_count: Optional[int] = None
    reply_count: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TweetData":
        author = data.get("author")
        if not isinstance(author, dict):
            author = {}
        return cls(
            id=str(data.get("id", "")),
            text=str(data.get("text") or ""),
            username=author.get("username", "unknown"),
            name=author.get("name", ""),
            created_at=data.get("createdAt"),
            like_count=data.get("likeCount"),
            retweet_count=data.get("retweetCount"),
            reply_count=data.get("replyCount"),
        )


def format_tweet(tweet: TweetData) -> str:
    """Render a tweet as the text blob fed to the model."""
    parts = [f"Tweet by @{tweet.username} ({tweet.name}):", "", tweet.text]

    if tweet.created_at:
        parts.extend(["", f"Posted: {tweet.created_at}"])

    if tweet.like_count is not None or tweet.retweet_count is not None:
        engagement = []
        if tweet.like_count is not None:
            engagement.append(f"{tweet.like_count} likes")
        if tweet.retweet_count is not None:
            engagement.append(f"{tweet.retweet_count} retweets")
        if tweet.reply_count is not None:
            engagement.append(f"{tweet.reply_count} replies")
        parts.append(f"Engagement: {', '.join(engagement)}")

    return "\n".join(parts)


class TwitterHandler(ContentHandler):
    """Handler for Twitter/X status URLs."""

    def __init__(
        self,
        auth_token: Optional[str] = None,
        ct0: Optional[str] = None,
        sweetistics_api_key: Optional[str] = None,
        bird_command: str = "bird",
        timeout: float = SOCIAL_FETCH_TIMEOUT,
    ):
        self.auth_token = auth_token
        self.ct0 = ct0
        self.sweetistics_api_key = sweetistics_api_key
        self.bird_command = bird_command
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "twitter"

    def matches(self, url: str) -> bool:
        return is_twitter_url(url)

    def is_configured(self) -> bool:
        return bool((self.auth_token and self.ct0) or self.sweetistics_api_key)

    def _env(self) -> Dict[str, str]:
        env = {}
        if self.sweetistics_api_key:
            env["SWEETISTICS_API_KEY"] = self.sweetistics_api_key
        if self.auth_token:
            env["AUTH_TOKEN"] = self.auth_token
        if self.ct0:
            env["CT0"] = self.ct0
        return env

    async def _bird(self, command: str, url_or_id: str, deadline: Deadline) -> Any:
        if not self.is_configured():
            raise NotConfigured(
                "Twitter service not configured. Set TWITTER_AUTH_TOKEN and "
                "TWITTER_CT0, or SWEETISTICS_API_KEY."
            )
        deadline.check(f"bird {command}")
        stdout = await run_command(
            [self.bird_command, command, extract_tweet_id(url_or_id), "--json"],
            timeout=deadline.timeout(self.timeout),
            env=self._env(),
        )
        parsed = parse_json(stdout.strip())
        if isinstance(parsed, ParseFailure):
            raise UpstreamFetchFailed(f"bird {command} returned {parsed.reason}")
        return parsed.value

    async def get_tweet(self, url_or_id: str, deadline: Optional[Deadline] = None) -> TweetData:
        """Fetch a single tweet by URL or id."""
        data = await self._bird("read", url_or_id, ensure_deadline(deadline))
        if not isinstance(data, dict):
            raise UpstreamFetchFailed("bird read returned an unexpected payload")
        return TweetData.from_dict(data)

    async def get_thread(
        self, url_or_id: str, deadline: Optional[Deadline] = None
    ) -> List[TweetData]:
        """Fetch the thread containing a tweet."""
        data = await self._bird("thread", url_or_id, ensure_deadline(deadline))
        if not isinstance(data, list):
            raise UpstreamFetchFailed("bird thread returned an unexpected payload")
        return [TweetData.from_dict(item) for item in data if isinstance(item, dict)]

    async def extract(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession,
        deadline: Optional[Deadline] = None,
    ) -> ExtractedSource:
        deadline = ensure_deadline(deadline)
        tweet = await self.get_tweet(url, deadline)
        content = format_tweet(tweet)

        # Self-replies continuing the tweet are folded in; the thread is optional.
        try:
            thread = await self.get_thread(url, deadline)
        except UpstreamFetchFailed as e:
            logger.warning(f"Failed to fetch thread for {tweet.id}: {e}")
            thread = []
        continuation = [
            t.text for t in thread if t.username == tweet.username and t.id != tweet.id
        ]
        if continuation:
            content = "\n".join([content, "", "--- Thread ---", *continuation])

        return ExtractedSource(
            content=content,
            title=f"Tweet by @{tweet.username}",
            metadata={
                "author": f"@{tweet.username}",
                "domain": "x.com",
                "engagement": (
                    f"{tweet.like_count or 0} likes, {tweet.retweet_count or 0} retweets"
                ),
            },
        )
