# src/common/cache/__init__.py
"""Cache and rate limiting."""

from .cache_service import CacheService, RateLimitResult, stats_cache_keys

__all__ = ["CacheService", "RateLimitResult", "stats_cache_keys"]
