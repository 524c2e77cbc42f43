"""JSON file storage for local development."""

import json
import os
import tempfile
from pathlib import Path
from typing import List

import structlog

from .interfaces import ArticleStore, EnrichedArticle, StorageError, decode_articles

logger = structlog.get_logger()


class FileArticleStore(ArticleStore):
    """Stores the article list as one JSON array on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def load(self) -> List[EnrichedArticle]:
        if not self.path.exists():
            return []

        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except UnicodeDecodeError as e:
            logger.error("news_file_malformed", path=str(self.path), error=str(e))
            return []
        except OSError as e:
            logger.error("news_file_read_failed", path=str(self.path), error=str(e))
            raise StorageError(f"Failed to read {self.path}: {e}") from e

        try:
            articles = decode_articles(json.loads(text), backend="file")
        except ValueError as e:
            logger.error("news_file_malformed", path=str(self.path), error=str(e))
            return []

        logger.debug("news_file_loaded", path=str(self.path), count=len(articles))
        return articles

    async def save(self, articles: List[EnrichedArticle]) -> None:
        document = json.dumps([a.to_dict() for a in articles], ensure_ascii=False, indent=2)
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent,
                prefix=f".{self.path.name}.", suffix=".tmp", delete=False,
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(document)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Failed to write {self.path}: {e}") from e

        logger.info("news_file_saved", path=str(self.path), count=len(articles))
