# src/common/cache/cache_service.py
"""
Cache and rate limiting over the Upstash Redis REST API.

The cache is best effort: when it is not configured, or a command fails, reads
miss and rate limits allow the request. Failures are logged, never raised.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, List, Optional

import httpx

from src.common.config import settings
from src.common.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


class CacheService:
    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url if url is not None else settings.UPSTASH_REDIS_REST_URL
        self.token = token if token is not None else settings.UPSTASH_REDIS_REST_TOKEN
        self.client = client or httpx.AsyncClient(timeout=timeout)
        if not self.enabled:
            logger.warning("cache_disabled", reason="UPSTASH_REDIS_REST_URL or token not set")

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.token)

    async def close(self) -> None:
        await self.client.aclose()

    async def command(self, *args: Any) -> Any:
        """Run one Redis command; raises httpx/RuntimeError on failure."""
        response = await self.client.post(
            self.url,
            json=[str(a) for a in args],
            headers={"Authorization": f"Bearer {self.token}"},
        )
        response.raise_for_status()
        body = response.json()
        if "error" in body:
            raise RuntimeError(body["error"])
        return body.get("result")

    async def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            value = await self.command("GET", key)
        except (httpx.HTTPError, RuntimeError):
            logger.warning("cache_get_failed", key=key, exc_info=True)
            return None
        if value is None:
            return None
        try:
            return json.loads(value)
        except (TypeError, json.JSONDecodeError):
            return value

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        payload = json.dumps(value, default=str)
        try:
            if ttl_seconds:
                await self.command("SET", key, payload, "EX", ttl_seconds)
            else:
                await self.command("SET", key, payload)
        except (httpx.HTTPError, RuntimeError):
            logger.warning("cache_set_failed", key=key, exc_info=True)
            return False
        return True

    async def delete(self, *keys: str) -> bool:
        if not self.enabled or not keys:
            return False
        try:
            await self.command("DEL", *keys)
        except (httpx.HTTPError, RuntimeError):
            logger.warning("cache_delete_failed", keys=list(keys), exc_info=True)
            return False
        return True

    async def check_rate_limit(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int,
    ) -> RateLimitResult:
        """Fixed-window counter keyed by ``identifier``."""
        now = time.time()
        if not self.enabled:
            return RateLimitResult(allowed=True, remaining=max_requests, reset_at=now + window_seconds)

        key = f"rate_limit:{identifier}"
        try:
            current = int(await self.command("INCR", key))
            if current == 1:
                await self.command("EXPIRE", key, window_seconds)
            ttl = int(await self.command("TTL", key))
        except (httpx.HTTPError, RuntimeError, TypeError, ValueError):
            logger.warning("rate_limit_check_failed", key=key, exc_info=True)
            return RateLimitResult(allowed=True, remaining=max_requests, reset_at=now + window_seconds)

        return RateLimitResult(
            allowed=current <= max_requests,
            remaining=max(0, max_requests - current),
            reset_at=now + (ttl if ttl > 0 else window_seconds),
        )


def stats_cache_keys(*user_ids: Any) -> List[str]:
    return [f"stats:{user_id}" for user_id in user_ids]
