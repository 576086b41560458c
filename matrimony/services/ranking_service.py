"""
Matrimony Matching — Ranking pipeline.

Scores every candidate in a discovered pool from the preloaded record
maps (no per-candidate queries, no cache reads), writes each ScoreDetail
through to the cache, keeps ``score >= min_score``, and sorts by score
descending.  Ties keep discovery order (newest accounts first).

Scoring fan-out is bounded by an ``asyncio.Semaphore`` so large pools do
not flood Redis with concurrent writes.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from matrimony.schemas.match import ScoreDetail
from matrimony.services.discovery_service import CandidatePool
from matrimony.services.score_cache import ScoreCache
from matrimony.services.scoring_service import CandidateProfile, ScoreAggregator

logger = structlog.get_logger("matrimony.ranking_service")


class RankingPipeline:
    def __init__(
        self,
        aggregator: ScoreAggregator,
        cache: ScoreCache | None = None,
        concurrency: int = 32,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.aggregator = aggregator
        self.cache = cache
        self.concurrency = concurrency

    async def _score_one(
        self,
        semaphore: asyncio.Semaphore,
        pool: CandidatePool,
        candidate: Any,
    ) -> ScoreDetail:
        async with semaphore:
            profile = CandidateProfile.from_records(
                candidate,
                personal=pool.record("personal", candidate.id),
                education=pool.record("education", candidate.id),
                profession=pool.record("profession", candidate.id),
                health=pool.record("health", candidate.id),
            )
            detail = self.aggregator.aggregate(pool.seeker.preferences, profile)
            if self.cache is not None:
                await self.cache.set(pool.seeker.user.id, candidate.id, detail)
            return detail

    async def rank(self, pool: CandidatePool, min_score: int) -> list[tuple[Any, ScoreDetail]]:
        """Return ``(candidate, detail)`` pairs with ``score >= min_score``, best first."""
        if not pool.candidates:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)
        details = await asyncio.gather(
            *(self._score_one(semaphore, pool, c) for c in pool.candidates)
        )

        ranked = [
            (candidate, detail)
            for candidate, detail in zip(pool.candidates, details)
            if detail.score >= min_score
        ]
        # stable sort: equal scores keep discovery order
        ranked.sort(key=lambda pair: pair[1].score, reverse=True)

        logger.info(
            "ranking_complete",
            seeker_id=str(pool.seeker.user.id),
            scored=len(details),
            kept=len(ranked),
            min_score=min_score,
        )
        return ranked
