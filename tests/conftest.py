"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path

import pytest

# Add src to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from asd_news.config.settings import Settings
from asd_news.enrichment.interfaces import EnrichmentResult
from asd_news.ingestion.interfaces import FeedSource, RawArticle


class FakeResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(self, status: int = 200, body: str = ""):
        self.status = status
        self.body = body

    async def text(self, errors: str = "strict") -> str:
        return self.body

    async def json(self, content_type=None):
        return json.loads(self.body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Maps URLs to canned responses, or to exceptions raised on request."""

    def __init__(self, responses: dict = None):
        self.responses = responses or {}
        self.requests = []

    def _respond(self, url):
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        self.requests.append(("GET", url, kwargs))
        return self._respond(url)

    def request(self, method, url, headers=None, data=None):
        self.requests.append((method, url, {"headers": headers, "data": data}))
        return self._respond(url)

    async def close(self):
        pass


class FakeFetcher:
    """Returns a fixed article list from fetch_all."""

    def __init__(self, articles):
        self.articles = list(articles)
        self.calls = 0

    async def fetch_all(self, sources):
        self.calls += 1
        return list(self.articles)


class FakeAnalyzer:
    """Records each call and returns a fixed, fully populated result."""

    def __init__(self):
        self.calls = []

    async def analyze(self, title, snippet, source):
        self.calls.append((title, snippet, source))
        return EnrichmentResult(
            summary_text=f"TITLE: {title}\n- 要約です。",
            country="US",
            category="研究",
            reliability="★★★",
            parent_meaning="意味",
            today_action="行動",
        )


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def rss_document(items, channel_title="Test Feed") -> str:
    """Build an RSS 2.0 document; items are dicts of raw element text."""
    parts = []
    for item in items:
        fields = "".join(
            f"<{tag}>{item[key]}</{tag}>"
            for key, tag in (("title", "title"), ("link", "link"),
                             ("pubDate", "pubDate"), ("description", "description"))
            if item.get(key) is not None
        )
        parts.append(f"<item>{fields}</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<rss version="2.0"><channel><title>{channel_title}</title>'
        f'<link>https://feeds.example.org/</link><description>test</description>'
        f'{"".join(parts)}</channel></rss>'
    )


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and .env files."""
    return Settings(
        _env_file=None,
        news_file=tmp_path / "data" / "news.json",
        gemini_api_key=None,
        kv_rest_api_url=None,
        kv_rest_api_token=None,
        cron_secret="cron-secret",
        update_password=None,
        feeds_file=None,
    )


@pytest.fixture
def make_article():
    """Factory for RawArticle with unique defaults."""
    def _make(n: int = 0, **overrides) -> RawArticle:
        data = {
            "title": f"Autism study {n}",
            "link": f"https://news.example.org/articles/{n}",
            "published_at": f"Mon, {(n % 28) + 1:02d} Jan 2024 09:00:00 GMT",
            "source": "ScienceDaily",
            "snippet": f"Snippet for study {n}",
        }
        data.update(overrides)
        return RawArticle(**data)
    return _make


@pytest.fixture
def dedicated_source():
    return FeedSource("Dedicated", "https://feeds.example.org/dedicated.xml", dedicated=True)


@pytest.fixture
def general_source():
    return FeedSource("General", "https://feeds.example.org/general.xml", dedicated=False)


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def fakes():
    """Fake classes for tests that build their own instances."""
    class Fakes:
        Response = FakeResponse
        Session = FakeSession
        Fetcher = FakeFetcher
        Analyzer = FakeAnalyzer
        Sleep = FakeSleep
        rss = staticmethod(rss_document)
    return Fakes
