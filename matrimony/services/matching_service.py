"""
Matrimony Matching — Matching engine facade.

Wires the engine together and exposes the operations the HTTP layer calls:

  score(seeker, candidate)          directional ScoreDetail, cache-first
  find_matches(seeker, min_score)   discovery -> ranking -> listing views
  get_detailed_profile(viewer, id)  privacy-tiered view + view tracking
  invalidate_scores_for_user(id)    purge cached scores in both directions
  get_weekly_view_counts(id)        per-week profile view totals

Nothing raises across this boundary.  Malformed ids return ``None`` / ``[]``
with a warning; store failures return ``None`` / ``[]`` with an error log,
so discovery fails closed instead of serving a partial ranking.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from matrimony.config import get_settings
from matrimony.models.connection import ConnectionState
from matrimony.schemas.match import MatchResult, ScoreDetail, WeeklyViewCount
from matrimony.schemas.profile import DetailedProfile
from matrimony.services import profile_assembler
from matrimony.services.discovery_service import CandidateDiscovery
from matrimony.services.preferences import normalize_preferences
from matrimony.services.profile_store import ProfileStore, as_id_set
from matrimony.services.ranking_service import RankingPipeline
from matrimony.services.score_cache import RedisCacheStore, ScoreCache
from matrimony.services.scoring_service import CandidateProfile, ScoreAggregator
from matrimony.services.view_tracker import ViewEffect, ViewTracker

logger = structlog.get_logger("matrimony.matching_service")

_STORE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


@dataclass
class PreloadedScoreData:
    """Records already in memory; any field left ``None`` is fetched."""

    seeker: Any = None
    seeker_preferences: Any = None
    candidate: Any = None
    personal: Any = None
    education: Any = None
    profession: Any = None
    health: Any = None


def parse_user_id(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


class MatchingService:
    """Compatibility scoring, discovery, ranking and profile views.

    Dependencies are injected at construction so that the service can be
    tested with in-memory fakes and wired once in the FastAPI lifespan.
    """

    def __init__(
        self,
        store: ProfileStore | None = None,
        cache_store: RedisCacheStore | None = None,
        weights: dict[str, int] | None = None,
        scoring_concurrency: int | None = None,
    ) -> None:
        """Initialise the engine.

        Parameters
        ----------
        store:
            ProfileStore (or compatible fake) for identity, attribute and
            connection data.
        cache_store:
            RedisCacheStore (or compatible fake) for scores and view
            suppression keys.
        weights:
            Criterion weight table; defaults to ``SCORE_WEIGHTS``.  An
            invalid table raises ``WeightConfigurationError`` here.
        scoring_concurrency:
            Upper bound on concurrent scoring tasks during ranking.
        """
        settings = get_settings()
        self.settings = settings
        self.store = store or ProfileStore()
        self.cache_store = cache_store or RedisCacheStore()

        self.aggregator = ScoreAggregator(weights or settings.SCORE_WEIGHTS)
        self.score_cache = ScoreCache(self.cache_store, settings.MATCH_SCORE_CACHE_TTL)
        self.discovery = CandidateDiscovery(self.store)
        self.ranking = RankingPipeline(
            self.aggregator,
            self.score_cache,
            concurrency=scoring_concurrency or settings.SCORING_CONCURRENCY,
        )
        self.view_tracker = ViewTracker(
            self.store,
            self.cache_store,
            suppression_ttl=settings.PROFILE_VIEW_SUPPRESSION_TTL,
        )

        logger.info(
            "matching_service_initialised",
            weights=self.aggregator.weights,
            scoring_concurrency=self.ranking.concurrency,
        )

    # ── Public API ────────────────────────────────────────────────────────

    async def score(
        self,
        seeker_id: Any,
        candidate_id: Any,
        preloaded: PreloadedScoreData | None = None,
    ) -> ScoreDetail | None:
        """Directional compatibility of *candidate* for *seeker*.

        A cached ScoreDetail is returned when present, unless *preloaded*
        records are supplied, in which case the score is computed from
        them.  Either way the fresh result is written to the cache.
        """
        seeker_uuid = parse_user_id(seeker_id)
        candidate_uuid = parse_user_id(candidate_id)
        if seeker_uuid is None or candidate_uuid is None:
            logger.warning("score_invalid_id", seeker_id=str(seeker_id), candidate_id=str(candidate_id))
            return None

        log = logger.bind(seeker_id=str(seeker_uuid), candidate_id=str(candidate_uuid))

        if preloaded is None:
            cached = await self.score_cache.get(seeker_uuid, candidate_uuid)
            if cached is not None:
                log.debug("score_from_cache", score=cached.score)
                return cached
            preloaded = PreloadedScoreData()

        try:
            data = await self._fill_preloaded(seeker_uuid, candidate_uuid, preloaded)
        except _STORE_ERRORS:
            log.exception("score_load_failed")
            return None

        if data.seeker is None or data.candidate is None:
            log.warning("score_user_not_found")
            return None

        candidate = CandidateProfile.from_records(
            data.candidate,
            personal=data.personal,
            education=data.education,
            profession=data.profession,
            health=data.health,
        )
        detail = self.aggregator.aggregate(normalize_preferences(data.seeker_preferences), candidate)
        await self.score_cache.set(seeker_uuid, candidate_uuid, detail)
        log.info("score_computed", score=detail.score)
        return detail

    async def find_matches(self, seeker_id: Any, min_score: int | None = None) -> list[MatchResult]:
        """Ranked listing views with ``score >= min_score``, best first.

        Pagination is the caller's job; it is applied to this full list.
        """
        seeker_uuid = parse_user_id(seeker_id)
        if seeker_uuid is None:
            logger.warning("find_matches_invalid_id", seeker_id=str(seeker_id))
            return []

        threshold = self.settings.DEFAULT_MIN_SCORE if min_score is None else min_score
        log = logger.bind(seeker_id=str(seeker_uuid), min_score=threshold)
        log.info("find_matches_start")

        try:
            pool = await self.discovery.discover(seeker_uuid)
        except _STORE_ERRORS:
            log.exception("discovery_failed")
            return []

        if pool is None or not pool.candidates:
            log.info("find_matches_empty_pool")
            return []

        ranked = await self.ranking.rank(pool, threshold)
        results = [
            MatchResult(
                user=profile_assembler.build_listing(
                    candidate,
                    personal=pool.record("personal", candidate.id),
                    profile=pool.record("profile", candidate.id),
                    profession=pool.record("profession", candidate.id),
                    favorites=pool.seeker.favorites,
                ),
                score_detail=detail,
            )
            for candidate, detail in ranked
        ]
        log.info("find_matches_complete", count=len(results))
        return results

    async def assemble_detailed_profile(
        self,
        viewer_id: Any,
        candidate_id: Any,
        viewer_role: str = "user",
    ) -> tuple[DetailedProfile, list[ViewEffect]] | None:
        """Build the detailed view and the view-tracking effects it implies.

        The effects are returned, not executed.
        """
        viewer_uuid = parse_user_id(viewer_id)
        candidate_uuid = parse_user_id(candidate_id)
        if viewer_uuid is None or candidate_uuid is None:
            logger.warning("detailed_profile_invalid_id", viewer_id=str(viewer_id), candidate_id=str(candidate_id))
            return None

        log = logger.bind(viewer_id=str(viewer_uuid), candidate_id=str(candidate_uuid))
        is_self = viewer_uuid == candidate_uuid

        try:
            (
                viewer,
                candidate,
                personal,
                education,
                profession,
                health,
                family,
                profile,
                viewer_profile,
            ) = await asyncio.gather(
                self.store.get_user(viewer_uuid),
                self.store.get_user(candidate_uuid),
                self.store.get_personal(candidate_uuid),
                self.store.get_education(candidate_uuid),
                self.store.get_profession(candidate_uuid),
                self.store.get_health(candidate_uuid),
                self.store.get_family(candidate_uuid),
                self.store.get_profile(candidate_uuid),
                self.store.get_profile(viewer_uuid),
            )
            state = (
                ConnectionState.NONE
                if is_self
                else await self.store.connection_state(viewer_uuid, candidate_uuid)
            )
        except _STORE_ERRORS:
            log.exception("detailed_profile_load_failed")
            return None

        if viewer is None or candidate is None or getattr(candidate, "is_deleted", False):
            log.warning("detailed_profile_user_not_found")
            return None

        viewer_blocked = as_id_set(getattr(viewer, "blocked_users", None))
        candidate_blocked = as_id_set(getattr(candidate, "blocked_users", None))
        if str(candidate_uuid) in viewer_blocked or str(viewer_uuid) in candidate_blocked:
            log.warning("detailed_profile_blocked")
            return None

        score_detail = None
        if not is_self:
            score_detail = await self.score(
                viewer_uuid,
                candidate_uuid,
                PreloadedScoreData(
                    seeker=viewer,
                    candidate=candidate,
                    personal=personal,
                    education=education,
                    profession=profession,
                    health=health,
                ),
            )

        policy = profile_assembler.VisibilityPolicy.for_viewer(
            viewer_uuid, candidate_uuid, viewer_role=viewer_role, state=state
        )
        favorites = as_id_set(getattr(viewer_profile, "favorite_profiles", None))
        detailed = profile_assembler.build_detailed(
            candidate,
            policy,
            state=state,
            personal=personal,
            education=education,
            profession=profession,
            health=health,
            family=family,
            profile=profile,
            score_detail=score_detail,
            is_favorite=str(candidate_uuid) in favorites,
        )
        effects = await self.view_tracker.plan(viewer, candidate_uuid)
        return detailed, effects

    async def get_detailed_profile(
        self,
        viewer_id: Any,
        candidate_id: Any,
        viewer_role: str = "user",
    ) -> DetailedProfile | None:
        assembled = await self.assemble_detailed_profile(viewer_id, candidate_id, viewer_role)
        if assembled is None:
            return None
        detailed, effects = assembled
        await self.view_tracker.apply(effects)
        return detailed

    async def invalidate_scores_for_user(self, user_id: Any) -> None:
        user_uuid = parse_user_id(user_id)
        if user_uuid is None:
            logger.warning("invalidate_invalid_id", user_id=str(user_id))
            return
        await self.score_cache.invalidate_all_for_user(user_uuid)

    async def get_weekly_view_counts(self, candidate_id: Any) -> list[WeeklyViewCount]:
        candidate_uuid = parse_user_id(candidate_id)
        if candidate_uuid is None:
            logger.warning("weekly_views_invalid_id", candidate_id=str(candidate_id))
            return []
        try:
            rows = await self.store.weekly_view_counts(candidate_uuid)
        except _STORE_ERRORS:
            logger.exception("weekly_views_load_failed", candidate_id=str(candidate_uuid))
            return []
        return [
            WeeklyViewCount(week_start_date=start, week_number=number, count=count)
            for start, number, count in rows
        ]

    # ── Internal helpers ──────────────────────────────────────────────────

    async def _fill_preloaded(
        self,
        seeker_id: uuid.UUID,
        candidate_id: uuid.UUID,
        data: PreloadedScoreData,
    ) -> PreloadedScoreData:
        """Fetch, concurrently, every record *data* does not already carry."""
        loaders = {
            "seeker": lambda: self.store.get_user(seeker_id),
            "seeker_preferences": lambda: self.store.get_preferences(seeker_id),
            "candidate": lambda: self.store.get_user(candidate_id),
            "personal": lambda: self.store.get_personal(candidate_id),
            "education": lambda: self.store.get_education(candidate_id),
            "profession": lambda: self.store.get_profession(candidate_id),
            "health": lambda: self.store.get_health(candidate_id),
        }
        missing = [name for name in loaders if getattr(data, name) is None]
        if not missing:
            return data
        values = await asyncio.gather(*(loaders[name]() for name in missing))
        filled = PreloadedScoreData(**data.__dict__)
        for name, value in zip(missing, values):
            setattr(filled, name, value)
        return filled
