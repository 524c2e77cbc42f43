"""Update cycle orchestration: fetch, dedup, enrich, merge and persist."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import structlog

from ..config.feeds import load_feeds
from ..config.settings import Settings
from ..enrichment.analyzer import ArticleAnalyzer
from ..enrichment.interfaces import EnricherInterface
from ..ingestion.fetcher import RSSFetcher
from ..ingestion.interfaces import FeedSource, FetcherInterface, RawArticle
from ..storage.factory import create_article_store
from ..storage.interfaces import ArticleStore, EnrichedArticle, article_id
from .throttle import RateLimitedRunner

logger = structlog.get_logger()

MSG_ADDED_WITH_REMAINING = "{added}件を追加しました。残り{remaining}件は次回更新で処理されます。"
MSG_ADDED = "{added}件の新しい記事を追加しました。"
MSG_NO_NEW = "新しい記事はありませんでした。"
MSG_ALREADY_RUNNING = "更新処理が既に実行中です。"
MSG_FAILED = "ニュースの更新に失敗しました。"


@dataclass
class UpdateResult:
    """Outcome of one update cycle."""
    success: bool
    added_count: int = 0
    remaining_count: int = 0
    message: str = ""


def dedup_by_title(articles: List[RawArticle]) -> List[RawArticle]:
    """Keep the first article for each title, preserving order."""
    seen = set()
    unique = []
    for article in articles:
        if not article.title or article.title in seen:
            continue
        seen.add(article.title)
        unique.append(article)
    return unique


def filter_unprocessed(fresh: List[RawArticle], stored: List[EnrichedArticle]) -> List[RawArticle]:
    """Articles whose id and title are both absent from the store."""
    stored_ids = {a.id for a in stored}
    stored_titles = {a.title for a in stored}
    return [
        a for a in fresh
        if article_id(a.link) not in stored_ids and a.title not in stored_titles
    ]


def completion_message(added: int, remaining: int) -> str:
    if added == 0:
        return MSG_NO_NEW
    if remaining > 0:
        return MSG_ADDED_WITH_REMAINING.format(added=added, remaining=remaining)
    return MSG_ADDED.format(added=added)


class UpdatePipeline:
    """Fetches feeds, enriches unseen articles and keeps a bounded list."""

    def __init__(
        self,
        settings: Settings,
        store: ArticleStore = None,
        analyzer: EnricherInterface = None,
        fetcher: FetcherInterface = None,
        sources: Optional[List[FeedSource]] = None,
        runner: RateLimitedRunner = None,
    ):
        self.settings = settings
        self.store = store or create_article_store(settings)
        self.analyzer = analyzer or ArticleAnalyzer(settings)
        self.fetcher = fetcher
        self.sources = sources if sources is not None else load_feeds(settings.feeds_file)
        self.runner = runner or RateLimitedRunner(
            delay_seconds=settings.delay_between_requests_seconds,
            max_items=settings.max_articles_per_update,
        )
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def _fetch(self) -> List[RawArticle]:
        if self.fetcher is not None:
            return await self.fetcher.fetch_all(self.sources)
        async with RSSFetcher(self.settings) as fetcher:
            return await fetcher.fetch_all(self.sources)

    async def fetch_and_filter(self) -> List[RawArticle]:
        """Fresh, relevance-filtered, title-deduplicated articles, newest first."""
        articles = await self._fetch()
        unique = dedup_by_title(articles)
        logger.info("fresh_articles", fetched=len(articles), unique=len(unique))
        return unique

    async def list_articles(self) -> List[EnrichedArticle]:
        return await self.store.load()

    async def run_update_cycle(self) -> UpdateResult:
        """Run one cycle. Never raises; failures come back as a failed result."""
        if self._lock.locked():
            logger.warning("update_already_running")
            return UpdateResult(success=False, message=MSG_ALREADY_RUNNING)

        async with self._lock:
            start = datetime.now()
            try:
                result = await self._run_cycle()
            except Exception as e:
                logger.exception("update_cycle_failed", error=str(e))
                return UpdateResult(success=False, message=MSG_FAILED)

            logger.info(
                "update_cycle_complete",
                added=result.added_count,
                remaining=result.remaining_count,
                duration_seconds=(datetime.now() - start).total_seconds(),
            )
            return result

    async def _run_cycle(self) -> UpdateResult:
        fresh = await self.fetch_and_filter()
        stored = await self.store.load()

        unprocessed = filter_unprocessed(fresh, stored)
        logger.info(
            "unprocessed_articles",
            count=len(unprocessed),
            stored=len(stored),
            cap=self.runner.max_items,
        )

        new_items = await self.runner.run(unprocessed, self._enrich)
        remaining = len(unprocessed) - len(new_items)

        if not new_items:
            return UpdateResult(success=True, added_count=0, remaining_count=remaining, message=MSG_NO_NEW)

        kept = (new_items + stored)[:self.settings.retention_limit]
        await self.store.save(kept)

        return UpdateResult(
            success=True,
            added_count=len(new_items),
            remaining_count=remaining,
            message=completion_message(len(new_items), remaining),
        )

    async def _enrich(self, article: RawArticle) -> EnrichedArticle:
        logger.info("enriching_article", title=article.title[:80], source=article.source)
        analysis = await self.analyzer.analyze(article.title, article.snippet or "", article.source)
        return EnrichedArticle(
            id=article_id(article.link),
            title=article.title,
            link=article.link,
            published_at=article.published_at,
            source=article.source,
            snippet=article.snippet,
            summary_text=analysis.summary_text,
            country=analysis.country,
            category=analysis.category,
            reliability=analysis.reliability,
            parent_meaning=analysis.parent_meaning,
            today_action=analysis.today_action,
        )


async def run_update_cycle(settings: Settings) -> UpdateResult:
    """Run one cycle with the backends selected by configuration."""
    return await UpdatePipeline(settings).run_update_cycle()


async def fetch_and_filter(settings: Settings) -> List[RawArticle]:
    return await UpdatePipeline(settings).fetch_and_filter()
