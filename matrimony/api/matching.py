"""
Matrimony Matching — Matching API

Thin HTTP adapter over ``MatchingService``: ranked matches and
recommendations (paginated after ranking), pairwise scores, detailed
profile views, weekly view analytics and score-cache invalidation.

Authentication is handled upstream; the viewer / seeker id arrives as a
path or query parameter.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from matrimony.config import get_settings
from matrimony.schemas.match import MatchPage, ScoreDetail, WeeklyViewCount
from matrimony.schemas.profile import DetailedProfile
from matrimony.services.matching_service import MatchingService
from matrimony.services.score_cache import RedisCacheStore
from matrimony.utils.pagination import paginate

logger = structlog.get_logger("matrimony.api.matching")

router = APIRouter()

# ── Service singleton ─────────────────────────────────────────────────────────

_matching_service: MatchingService | None = None


def get_matching_service() -> MatchingService:
    global _matching_service
    if _matching_service is None:
        from matrimony.main import get_redis

        _matching_service = MatchingService(cache_store=RedisCacheStore(client=get_redis()))
    return _matching_service


def reset_matching_service() -> None:
    """Drop the singleton so the next request rebuilds it (used on shutdown)."""
    global _matching_service
    _matching_service = None


async def _ranked_page(
    service: MatchingService,
    user_id: uuid.UUID,
    min_score: int,
    page: int,
    limit: int,
) -> MatchPage:
    results = await service.find_matches(user_id, min_score=min_score)
    window, pagination = paginate(results, page, limit, get_settings().PAGE_SIZE_MAX)
    return MatchPage(results=window, pagination=pagination)


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}/matches: Loose-threshold ranked matches
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}/matches",
    response_model=MatchPage,
    summary="Ranked matches for a user",
)
async def list_matches(
    user_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10),
    service: MatchingService = Depends(get_matching_service),
) -> MatchPage:
    """Every eligible candidate scoring at least ``MATCHES_MIN_SCORE``."""
    return await _ranked_page(service, user_id, get_settings().MATCHES_MIN_SCORE, page, limit)


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}/recommendations: Strict-threshold ranked matches
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}/recommendations",
    response_model=MatchPage,
    summary="High-compatibility recommendations for a user",
)
async def list_recommendations(
    user_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10),
    service: MatchingService = Depends(get_matching_service),
) -> MatchPage:
    return await _ranked_page(
        service, user_id, get_settings().RECOMMENDATION_MIN_SCORE, page, limit
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /score/{seeker_id}/{candidate_id}: Directional pairwise score
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/score/{seeker_id}/{candidate_id}",
    response_model=ScoreDetail,
    summary="Compatibility score of candidate for seeker",
)
async def get_score(
    seeker_id: uuid.UUID,
    candidate_id: uuid.UUID,
    service: MatchingService = Depends(get_matching_service),
) -> ScoreDetail:
    detail = await service.score(seeker_id, candidate_id)
    if detail is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Score unavailable: seeker or candidate not found.",
        )
    return detail


# ──────────────────────────────────────────────────────────────────────────────
# GET /profile/{candidate_id}: Privacy-tiered detailed profile
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/profile/{candidate_id}",
    response_model=DetailedProfile,
    summary="Detailed profile as seen by a viewer",
)
async def get_detailed_profile(
    candidate_id: uuid.UUID,
    viewer_id: uuid.UUID = Query(...),
    viewer_role: str = Query("user", pattern="^(user|admin)$"),
    service: MatchingService = Depends(get_matching_service),
) -> DetailedProfile:
    """Contact details are masked unless the connection is accepted.

    Fetching the profile records a view for the candidate (at most once
    per viewer per 24 hours).
    """
    profile = await service.get_detailed_profile(viewer_id, candidate_id, viewer_role)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Profile {candidate_id} not found.",
        )
    return profile


@router.get(
    "/profile/{candidate_id}/views",
    response_model=list[WeeklyViewCount],
    summary="Weekly profile-view totals, newest first",
)
async def get_weekly_views(
    candidate_id: uuid.UUID,
    service: MatchingService = Depends(get_matching_service),
) -> list[WeeklyViewCount]:
    return await service.get_weekly_view_counts(candidate_id)


# ──────────────────────────────────────────────────────────────────────────────
# POST /cache/invalidate/{user_id}: Purge cached scores after a profile edit
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/cache/invalidate/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Invalidate every cached score involving a user",
)
async def invalidate_user_scores(
    user_id: uuid.UUID,
    service: MatchingService = Depends(get_matching_service),
) -> None:
    await service.invalidate_scores_for_user(user_id)
    logger.info("scores_invalidated_via_api", user_id=str(user_id))
