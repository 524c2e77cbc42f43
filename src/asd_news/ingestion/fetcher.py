"""RSS feed fetcher with markup repair and relevance filtering."""

import re
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import aiohttp
import feedparser
import structlog

from .interfaces import FeedSource, RawArticle, FetcherInterface
from ..config.settings import Settings

logger = structlog.get_logger()

# Keywords for general-interest feeds; dedicated feeds bypass this filter
RELEVANCE_KEYWORDS = ("autism", "asd", "spectrum disorder", "autistic")

ACCEPT_HEADER = "application/rss+xml, application/xml, text/xml;q=0.9, */*;q=0.8"

# "&" not starting a named entity, decimal or hex character reference
_BARE_AMPERSAND = re.compile(r"&(?!(?:[a-z0-9]+|#[0-9]{1,6}|#x[0-9a-f]{1,6});)", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class FeedFetchError(Exception):
    """A single feed could not be retrieved or parsed."""


def repair_xml(text: str) -> str:
    """Escape bare ampersands so invalid feeds still parse."""
    return _BARE_AMPERSAND.sub("&amp;", text)


def is_relevant(
    source: FeedSource,
    title: str,
    snippet: Optional[str],
    keywords: Iterable[str] = RELEVANCE_KEYWORDS,
) -> bool:
    """Dedicated sources pass; others need a keyword in title or snippet."""
    if source.dedicated:
        return True
    title_lower = (title or "").lower()
    snippet_lower = (snippet or "").lower()
    return any(k in title_lower or k in snippet_lower for k in keywords)


def sort_newest_first(articles: List[RawArticle]) -> List[RawArticle]:
    """Sort by publish date descending; unparsable dates go last."""
    return sorted(
        articles,
        key=lambda a: a.published_datetime() or _OLDEST,
        reverse=True,
    )


class RSSFetcher(FetcherInterface):
    """Sequential RSS fetcher; one failing feed never aborts the batch."""

    def __init__(
        self,
        settings: Settings,
        session: Optional[aiohttp.ClientSession] = None,
        keywords: Iterable[str] = RELEVANCE_KEYWORDS,
    ):
        self.settings = settings
        self.session = session
        self.keywords = tuple(keywords)
        self._owns_session = session is None

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.fetch_timeout_seconds),
                headers={
                    "User-Agent": self.settings.user_agent,
                    "Accept": ACCEPT_HEADER,
                },
            )
        return self

    async def __aexit__(self, *args):
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    async def fetch_feed(self, source: FeedSource) -> List[RawArticle]:
        """Fetch relevant articles from a single feed."""
        start_time = time.time()

        async with self.session.get(source.url) as response:
            if not 200 <= response.status < 300:
                raise FeedFetchError(f"Status code {response.status}")
            content = await response.text(errors="replace")

        feed = feedparser.parse(repair_xml(content))
        if feed.bozo and not feed.entries:
            raise FeedFetchError(f"Unparsable feed: {feed.get('bozo_exception')}")

        articles = []
        for entry in feed.entries:
            article = self._parse_entry(entry, source)
            if article is None:
                continue
            if is_relevant(source, article.title, article.snippet, self.keywords):
                articles.append(article)

        logger.info(
            "feed_fetched",
            feed=source.name,
            entries=len(feed.entries),
            articles=len(articles),
            time_ms=int((time.time() - start_time) * 1000),
        )
        return articles

    async def fetch_all(self, sources: List[FeedSource]) -> List[RawArticle]:
        """Fetch every feed in turn and merge, newest first."""
        all_articles = []
        failed = 0

        for source in sources:
            try:
                all_articles.extend(await self.fetch_feed(source))
            except Exception as e:
                failed += 1
                logger.warning("feed_fetch_failed", feed=source.name, error=str(e))

        logger.info(
            "all_feeds_fetched",
            total=len(all_articles),
            feeds=len(sources),
            failed=failed,
        )
        return sort_newest_first(all_articles)

    def _parse_entry(self, entry, source: FeedSource) -> Optional[RawArticle]:
        """Parse a feed entry; None if title, link or date is missing."""
        title = (entry.get("title") or "").strip()
        link = (entry.get("link") or "").strip()
        published = entry.get("published") or entry.get("updated")
        if not title or not link or not published:
            return None

        return RawArticle(
            title=title,
            link=link,
            published_at=published,
            source=source.name,
            snippet=_plain_text(entry.get("summary")),
        )


def _plain_text(html: Optional[str]) -> Optional[str]:
    """Strip markup and collapse whitespace from an entry summary."""
    if not html:
        return None
    text = _WHITESPACE.sub(" ", _TAG.sub(" ", html)).strip()
    return text or None
