"""Data ingestion - fetching and parsing RSS feeds."""

from .interfaces import FeedSource, RawArticle, FetcherInterface, parse_feed_date
from .fetcher import RSSFetcher, FeedFetchError, RELEVANCE_KEYWORDS, is_relevant, repair_xml

__all__ = [
    "FeedSource", "RawArticle", "FetcherInterface", "parse_feed_date",
    "RSSFetcher", "FeedFetchError", "RELEVANCE_KEYWORDS", "is_relevant", "repair_xml",
]
