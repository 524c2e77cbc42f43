"""Persistence for the enriched article list."""

from .interfaces import ArticleStore, EnrichedArticle, StorageError, article_id
from .file_store import FileArticleStore
from .kv_store import KVArticleStore
from .factory import create_article_store

__all__ = [
    "ArticleStore", "EnrichedArticle", "StorageError", "article_id",
    "FileArticleStore", "KVArticleStore", "create_article_store"
]
