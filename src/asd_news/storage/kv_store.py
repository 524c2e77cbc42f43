"""Remote key-value storage over the Upstash REST protocol."""

import asyncio
import json
from typing import List, Optional

import aiohttp
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .interfaces import ArticleStore, EnrichedArticle, StorageError, decode_articles

logger = structlog.get_logger()

_TRANSIENT = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


class KVArticleStore(ArticleStore):
    """Stores the article list as a JSON document under a single key."""

    def __init__(
        self,
        url: str,
        token: str,
        key: str = "asd-news",
        timeout_seconds: int = 30,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.url = url.rstrip("/")
        self.token = token
        self.key = key
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}

    @retry(
        retry=retry_if_exception_type(_TRANSIENT),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _request(self, method: str, path: str, data: Optional[str] = None) -> dict:
        """Send one REST command and return the decoded JSON reply."""
        if self._session is not None:
            return await self._send(self._session, method, path, data)
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            return await self._send(session, method, path, data)

    async def _send(self, session, method: str, path: str, data: Optional[str]) -> dict:
        async with session.request(
            method, f"{self.url}/{path}", headers=self._headers(), data=data
        ) as response:
            if response.status >= 400:
                body = await response.text()
                raise StorageError(f"KV {method} {path} failed with status {response.status}: {body[:200]}")
            return await response.json(content_type=None)

    async def load(self) -> List[EnrichedArticle]:
        try:
            reply = await self._request("GET", f"get/{self.key}")
        except StorageError as e:
            logger.error("kv_read_failed", key=self.key, error=str(e))
            raise
        except (ValueError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("kv_read_failed", key=self.key, error=str(e))
            raise StorageError(f"KV read failed: {e}") from e

        value = reply.get("result") if isinstance(reply, dict) else None
        if value is None:
            return []

        try:
            # Values written through the REST API come back as strings
            if isinstance(value, str):
                value = json.loads(value)
            articles = decode_articles(value, backend="kv")
        except ValueError as e:
            logger.error("kv_value_malformed", key=self.key, error=str(e))
            return []

        logger.debug("kv_loaded", key=self.key, count=len(articles))
        return articles

    async def save(self, articles: List[EnrichedArticle]) -> None:
        document = json.dumps([a.to_dict() for a in articles], ensure_ascii=False)
        try:
            await self._request("POST", f"set/{self.key}", data=document.encode("utf-8"))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StorageError(f"KV write failed: {e}") from e

        logger.info("kv_saved", key=self.key, count=len(articles))
