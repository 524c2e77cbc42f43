"""Storage data models and interfaces."""

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import structlog

logger = structlog.get_logger()


class StorageError(Exception):
    """A backend could not be read or failed to persist the article list."""


def article_id(link: str) -> str:
    """Deterministic id for an article: standard base64 of the UTF-8 link."""
    return base64.b64encode(link.encode("utf-8")).decode("ascii")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _string(value) -> Optional[str]:
    """Non-empty string values only; anything else reads as missing."""
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass
class EnrichedArticle:
    """A processed article as persisted and displayed."""
    id: str
    title: str
    link: str
    published_at: str
    source: str
    summary_text: str
    snippet: Optional[str] = None
    country: Optional[str] = None
    category: Optional[str] = None
    reliability: Optional[str] = None
    parent_meaning: Optional[str] = None
    today_action: Optional[str] = None
    fetched_at: str = field(default_factory=_utc_now_iso)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "publishedAt": self.published_at,
            "source": self.source,
            "summaryText": self.summary_text,
            "fetchedAt": self.fetched_at,
        }
        optional = {
            "snippet": self.snippet,
            "country": self.country,
            "category": self.category,
            "reliability": self.reliability,
            "parentMeaning": self.parent_meaning,
            "todayAction": self.today_action,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "EnrichedArticle":
        """Decode one stored record, accepting the older layouts too.

        Older records may carry the summary under "summary", either as text
        or as the whole analysis object with the analytic fields inside it.
        Raises KeyError or TypeError for records missing title or link.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected an object, got {type(data).__name__}")

        link = data["link"]
        title = data["title"]
        if not isinstance(link, str) or not isinstance(title, str):
            raise TypeError("title and link must be strings")

        legacy = data.get("summary")
        analysis = legacy if isinstance(legacy, dict) else {}

        def pick(key: str) -> Optional[str]:
            return _string(data.get(key)) or _string(analysis.get(key))

        summary_text = (
            _string(data.get("summaryText"))
            or _string(legacy)
            or _string(analysis.get("summary"))
            or f"TITLE: {title}"
        )

        return cls(
            id=_string(data.get("id")) or article_id(link),
            title=title,
            link=link,
            published_at=_string(data.get("publishedAt")) or _string(data.get("pubDate")) or "",
            source=_string(data.get("source")) or "",
            summary_text=summary_text,
            snippet=_string(data.get("snippet")) or _string(data.get("contentSnippet")),
            country=pick("country"),
            category=pick("category"),
            reliability=pick("reliability"),
            parent_meaning=pick("parentMeaning"),
            today_action=pick("todayAction"),
            fetched_at=_string(data.get("fetchedAt")) or "",
        )


class ArticleStore:
    """Interface for the persisted article list."""

    async def load(self) -> List[EnrichedArticle]:
        """Return the stored list, newest-inserted first.

        Missing or malformed content loads as an empty list; an unreachable
        backend raises StorageError.
        """
        raise NotImplementedError

    async def save(self, articles: List[EnrichedArticle]) -> None:
        """Replace the stored list. Raises StorageError on failure."""
        raise NotImplementedError


def decode_articles(payload, backend: str) -> List[EnrichedArticle]:
    """Decode a JSON array of records, skipping the ones that do not decode."""
    if not isinstance(payload, list):
        raise ValueError(f"Stored document is {type(payload).__name__}, expected a list")

    articles = []
    for index, record in enumerate(payload):
        try:
            articles.append(EnrichedArticle.from_dict(record))
        except (KeyError, TypeError) as e:
            logger.warning("stored_record_skipped", backend=backend, index=index, error=str(e))
    return articles
