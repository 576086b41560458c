"""
Matrimony Matching — Redis-backed score cache.

Two layers:

``RedisCacheStore``
    Thin, failure-tolerant wrapper over ``redis.asyncio``.  Every method
    catches transport / serialisation errors, logs a warning, and returns a
    neutral fallback (``None`` / ``False`` / ``0``).  Nothing raises.

``ScoreCache``
    Directional pairwise ScoreDetail cache on top of the store.

Key layout:
  match_score:{seeker_id}:{candidate_id}   -> ScoreDetail JSON, TTL 1 h
  profile_view:{viewer_id}:{candidate_id}  -> "1", TTL 24 h (see ViewTracker)

Invalidating a user purges both ``match_score:{user}:*`` and
``match_score:*:{user}`` so scores in either direction are recomputed.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError

from matrimony.config import get_settings
from matrimony.schemas.match import ScoreDetail

logger = structlog.get_logger("matrimony.score_cache")

MATCH_SCORE_PREFIX = "match_score"
PROFILE_VIEW_PREFIX = "profile_view"

_CACHE_ERRORS = (RedisError, OSError, ValueError, TypeError)
_SCAN_BATCH = 500


def match_score_key(seeker_id: Any, candidate_id: Any) -> str:
    return f"{MATCH_SCORE_PREFIX}:{seeker_id}:{candidate_id}"


def profile_view_key(viewer_id: Any, candidate_id: Any) -> str:
    return f"{PROFILE_VIEW_PREFIX}:{viewer_id}:{candidate_id}"


class RedisCacheStore:
    """Failure-tolerant async key/value operations.

    The client is injected; when omitted one is created lazily from
    ``REDIS_URL`` on first use.
    """

    def __init__(self, client: Any | None = None) -> None:
        self._client = client

    async def _get_client(self) -> Any:
        if self._client is None:
            import redis.asyncio as aioredis

            settings = get_settings()
            self._client = aioredis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            )
            logger.info("redis_client_created")
        return self._client

    async def get(self, key: str) -> str | None:
        try:
            client = await self._get_client()
            return await client.get(key)
        except _CACHE_ERRORS as exc:
            logger.warning("cache_get_failed", key=key, error=str(exc))
            return None

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            client = await self._get_client()
            await client.setex(key, ttl_seconds, value)
            return True
        except _CACHE_ERRORS as exc:
            logger.warning("cache_set_failed", key=key, error=str(exc))
            return False

    async def delete(self, key: str) -> int:
        try:
            client = await self._get_client()
            return int(await client.delete(key) or 0)
        except _CACHE_ERRORS as exc:
            logger.warning("cache_delete_failed", key=key, error=str(exc))
            return 0

    async def delete_by_pattern(self, pattern: str) -> int:
        """Delete every key matching *pattern* using SCAN (never KEYS)."""
        try:
            client = await self._get_client()
            batch: list[str] = []
            deleted = 0
            async for key in client.scan_iter(match=pattern, count=_SCAN_BATCH):
                batch.append(key)
                if len(batch) >= _SCAN_BATCH:
                    deleted += int(await client.delete(*batch) or 0)
                    batch = []
            if batch:
                deleted += int(await client.delete(*batch) or 0)
            return deleted
        except _CACHE_ERRORS as exc:
            logger.warning("cache_pattern_delete_failed", pattern=pattern, error=str(exc))
            return 0

    async def count_by_pattern(self, pattern: str) -> int:
        try:
            client = await self._get_client()
            count = 0
            async for _ in client.scan_iter(match=pattern, count=_SCAN_BATCH):
                count += 1
            return count
        except _CACHE_ERRORS as exc:
            logger.warning("cache_pattern_count_failed", pattern=pattern, error=str(exc))
            return 0

    async def exists(self, key: str) -> bool:
        try:
            client = await self._get_client()
            return bool(await client.exists(key))
        except _CACHE_ERRORS as exc:
            logger.warning("cache_exists_failed", key=key, error=str(exc))
            return False

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds; negative values follow Redis semantics."""
        try:
            client = await self._get_client()
            return int(await client.ttl(key))
        except _CACHE_ERRORS as exc:
            logger.warning("cache_ttl_failed", key=key, error=str(exc))
            return -2

    async def ping(self) -> bool:
        client = await self._get_client()
        return bool(await client.ping())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class ScoreCache:
    """Directional pairwise ScoreDetail cache."""

    def __init__(self, store: RedisCacheStore, ttl_seconds: int | None = None) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds or get_settings().MATCH_SCORE_CACHE_TTL

    async def get(self, seeker_id: Any, candidate_id: Any) -> ScoreDetail | None:
        key = match_score_key(seeker_id, candidate_id)
        raw = await self.store.get(key)
        if raw is None:
            logger.debug("score_cache_miss", key=key)
            return None
        try:
            detail = ScoreDetail.model_validate_json(raw)
        except ValidationError:
            logger.warning("score_cache_corrupt_entry", key=key)
            return None
        logger.debug("score_cache_hit", key=key, score=detail.score)
        return detail

    async def set(
        self,
        seeker_id: Any,
        candidate_id: Any,
        detail: ScoreDetail,
        ttl_seconds: int | None = None,
    ) -> bool:
        return await self.store.set_with_ttl(
            match_score_key(seeker_id, candidate_id),
            detail.model_dump_json(),
            ttl_seconds or self.ttl_seconds,
        )

    async def invalidate_pair(self, seeker_id: Any, candidate_id: Any) -> None:
        await self.store.delete(match_score_key(seeker_id, candidate_id))

    async def invalidate_all_for_user(self, user_id: Any) -> int:
        """Purge every cached score with *user_id* as seeker or candidate."""
        as_seeker = await self.store.delete_by_pattern(f"{MATCH_SCORE_PREFIX}:{user_id}:*")
        as_candidate = await self.store.delete_by_pattern(
            f"{MATCH_SCORE_PREFIX}:*:{user_id}"
        )
        deleted = as_seeker + as_candidate
        logger.info("score_cache_invalidated", user_id=str(user_id), deleted=deleted)
        return deleted

    async def clear_all(self) -> int:
        deleted = await self.store.delete_by_pattern(f"{MATCH_SCORE_PREFIX}:*")
        logger.info("score_cache_cleared", deleted=deleted)
        return deleted

    async def stats(self) -> dict[str, int]:
        return {
            "match_scores": await self.store.count_by_pattern(f"{MATCH_SCORE_PREFIX}:*"),
            "profile_views": await self.store.count_by_pattern(f"{PROFILE_VIEW_PREFIX}:*"),
        }
