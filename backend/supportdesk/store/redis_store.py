"""
Redis-backed document store implementation.
Suitable for production multi-instance deployments.

Version: 1.0.0

Layout:
- ``{prefix}{collection}:{id}``  JSON document
- ``{prefix}{collection}:_ids``  sorted set of ids scored by insertion time
"""
import json
import logging
import time
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import (
    RedisError,
    ConnectionError as RedisConnectionError,
    TimeoutError as RedisTimeoutError,
    WatchError,
)

from .document_store import (
    Document,
    DocumentStore,
    Query,
    SortSpec,
    StoreError,
    sort_documents,
)

logger = logging.getLogger(__name__)


class RedisDocumentStore(DocumentStore):
    """
    Redis-backed implementation of DocumentStore.

    Features:
    - Shared state across multiple instances
    - Atomic updates using optimistic WATCH/MULTI transactions
    - Connection pooling with health checks
    - Automatic reconnection on connection failure

    Queries are evaluated client-side over the collection index; collections
    are expected to stay in the thousands of documents.
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "supportdesk:",
        max_connections: int = 50,
        socket_timeout: int = 5,
        socket_connect_timeout: int = 5,
        retry_on_timeout: bool = True,
        health_check_interval: int = 30,
        max_watch_retries: int = 10,
    ):
        """
        Initialize Redis document store.

        Args:
            redis_url: Redis connection URL
            key_prefix: Prefix for every key
            max_connections: Maximum connection pool size
            socket_timeout: Socket timeout in seconds
            socket_connect_timeout: Connection timeout in seconds
            retry_on_timeout: Retry on timeout
            health_check_interval: Health check interval in seconds
            max_watch_retries: Attempts before an update contended by other
                writers is reported as a failure
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.max_watch_retries = max_watch_retries

        self.pool = redis.ConnectionPool.from_url(
            redis_url,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            retry_on_timeout=retry_on_timeout,
            decode_responses=True,
            health_check_interval=health_check_interval,
            socket_keepalive=True,
        )
        self.client: Optional[Redis] = None

        logger.info(
            f"RedisDocumentStore initialized (url={redis_url}, prefix={key_prefix})"
        )

    async def _ensure_connection(self) -> Redis:
        """
        Ensure Redis connection is established and healthy.
        Reconnects once on failure.
        """
        if self.client is None:
            self.client = Redis(connection_pool=self.pool)

        try:
            await self.client.ping()
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.warning(f"Redis connection unhealthy, reconnecting: {e}")
            try:
                await self.client.aclose()
            except RedisError as close_error:
                logger.debug(f"Error closing stale Redis client: {close_error}")

            self.client = Redis(connection_pool=self.pool)
            try:
                await self.client.ping()
            except RedisError as retry_error:
                raise StoreError(f"Redis unavailable: {retry_error}") from retry_error

        return self.client

    def _make_key(self, collection: str, doc_id: str) -> str:
        return f"{self.key_prefix}{collection}:{doc_id}"

    def _make_index_key(self, collection: str) -> str:
        return f"{self.key_prefix}{collection}:_ids"

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        client = await self._ensure_connection()
        try:
            raw = await client.get(self._make_key(collection, doc_id))
        except RedisError as e:
            logger.error(f"Redis GET failed for {collection}/{doc_id}: {e}")
            raise StoreError(str(e)) from e
        return json.loads(raw) if raw else None

    async def insert(self, collection: str, doc_id: str, document: Document) -> bool:
        client = await self._ensure_connection()
        key = self._make_key(collection, doc_id)
        try:
            created = await client.set(key, json.dumps(document), nx=True)
            if not created:
                return False
            await client.zadd(self._make_index_key(collection), {doc_id: time.time()})
        except RedisError as e:
            logger.error(f"Redis insert failed for {collection}/{doc_id}: {e}")
            raise StoreError(str(e)) from e

        logger.debug(f"Inserted {collection}/{doc_id}")
        return True

    async def update(
        self,
        collection: str,
        doc_id: str,
        set_fields: Optional[Document] = None,
        push: Optional[Dict[str, List[Any]]] = None,
    ) -> Optional[Document]:
        client = await self._ensure_connection()
        key = self._make_key(collection, doc_id)

        for attempt in range(1, self.max_watch_retries + 1):
            try:
                async with client.pipeline(transaction=True) as pipe:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    if raw is None:
                        await pipe.unwatch()
                        return None

                    doc = json.loads(raw)
                    doc.update(set_fields or {})
                    for field_name, items in (push or {}).items():
                        doc.setdefault(field_name, [])
                        doc[field_name].extend(items)

                    pipe.multi()
                    pipe.set(key, json.dumps(doc))
                    await pipe.execute()
                    return doc

            except WatchError:
                logger.debug(
                    f"Concurrent write on {collection}/{doc_id}, retrying "
                    f"(attempt {attempt}/{self.max_watch_retries})"
                )
                continue
            except RedisError as e:
                logger.error(f"Redis update failed for {collection}/{doc_id}: {e}")
                raise StoreError(str(e)) from e

        raise StoreError(
            f"Update of {collection}/{doc_id} abandoned after "
            f"{self.max_watch_retries} contended attempts"
        )

    async def _load_collection(self, collection: str) -> List[Document]:
        client = await self._ensure_connection()
        try:
            ids = await client.zrange(self._make_index_key(collection), 0, -1)
            if not ids:
                return []
            raws = await client.mget([self._make_key(collection, i) for i in ids])
        except RedisError as e:
            logger.error(f"Redis scan failed for {collection}: {e}")
            raise StoreError(str(e)) from e
        return [json.loads(raw) for raw in raws if raw]

    async def find(
        self,
        collection: str,
        query: Optional[Query] = None,
        sort: Optional[SortSpec] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        docs = await self._load_collection(collection)
        matched = [d for d in docs if query is None or query.matches(d)]
        matched = sort_documents(matched, sort)
        end = offset + limit if limit is not None else None
        return matched[offset:end]

    async def count(self, collection: str, query: Optional[Query] = None) -> int:
        if query is None:
            client = await self._ensure_connection()
            try:
                return await client.zcard(self._make_index_key(collection))
            except RedisError as e:
                raise StoreError(str(e)) from e
        docs = await self._load_collection(collection)
        return sum(1 for d in docs if query.matches(d))

    async def ping(self) -> bool:
        try:
            client = await self._ensure_connection()
            return bool(await client.ping())
        except (RedisError, StoreError) as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
        await self.pool.aclose()
        logger.info("RedisDocumentStore closed")


__all__ = ['RedisDocumentStore']
