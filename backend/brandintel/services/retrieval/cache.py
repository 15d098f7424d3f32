from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Optional

from redis import asyncio as aioredis

from brandintel.config import get_settings

logger = logging.getLogger(__name__)


class RetrievalCache:
    """JSON cache for retrieval responses. Cache errors never propagate."""

    def __init__(self) -> None:
        settings = get_settings()
        self._enabled = bool(settings.retrieval_cache_enabled)
        self._client = aioredis.Redis.from_url(settings.redis_url, decode_responses=True) if self._enabled else None

    @staticmethod
    def _key(namespace: str, payload: str) -> str:
        digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
        return f"retrieval:{namespace}:{digest}"

    async def get_json(self, namespace: str, payload: str) -> Optional[Any]:
        if self._client is None:
            return None
        key = self._key(namespace, payload)
        try:
            raw = await self._client.get(key)
            if not raw:
                return None
            return json.loads(raw)
        except Exception as exc:
            logger.debug("Cache read failed for %s: %s", namespace, exc)
            return None

    async def set_json(self, namespace: str, payload: str, value: Any, ttl_seconds: int) -> None:
        if self._client is None:
            return
        key = self._key(namespace, payload)
        try:
            await self._client.setex(key, max(1, int(ttl_seconds)), json.dumps(value))
        except Exception as exc:
            logger.debug("Cache write failed for %s: %s", namespace, exc)
            return
