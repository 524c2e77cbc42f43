"""Interface definitions for feed ingestion."""

from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional


@dataclass(frozen=True)
class FeedSource:
    """Configuration for a single feed."""
    name: str
    url: str
    dedicated: bool = False  # Whole feed is on-topic, skip keyword filtering


@dataclass
class RawArticle:
    """An article fetched from a feed."""
    title: str
    link: str
    published_at: str
    source: str
    snippet: Optional[str] = None

    def published_datetime(self) -> Optional[datetime]:
        """Best-effort parse of the feed's date string."""
        return parse_feed_date(self.published_at)


def parse_feed_date(value: Optional[str]) -> Optional[datetime]:
    """Parse RFC 822 or ISO 8601 dates; None when unparsable."""
    if not value:
        return None
    value = value.strip()

    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        # Naive dates are treated as UTC so they compare with aware ones
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class FetcherInterface:
    """Interface for feed fetching."""

    async def fetch_feed(self, source: FeedSource) -> List[RawArticle]:
        """Fetch relevant articles from a single feed."""
        raise NotImplementedError

    async def fetch_all(self, sources: List[FeedSource]) -> List[RawArticle]:
        """Fetch from all configured feeds, newest first."""
        raise NotImplementedError
