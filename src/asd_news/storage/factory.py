"""Factory function to create the configured article store.

The remote KV store is used when both its URL and token are configured;
otherwise articles are kept in a local JSON file.
"""

import structlog

from .interfaces import ArticleStore
from ..config.settings import Settings

logger = structlog.get_logger()


def create_article_store(settings: Settings) -> ArticleStore:
    """Get the storage backend selected by configuration."""
    if settings.kv_enabled:
        from .kv_store import KVArticleStore
        logger.info("using_kv_storage", url=settings.kv_rest_api_url[:40] + "...", key=settings.kv_key)
        return KVArticleStore(
            url=settings.kv_rest_api_url,
            token=settings.kv_rest_api_token,
            key=settings.kv_key,
            timeout_seconds=settings.fetch_timeout_seconds,
        )

    from .file_store import FileArticleStore
    logger.info("using_file_storage", path=str(settings.news_file))
    return FileArticleStore(settings.news_file)
