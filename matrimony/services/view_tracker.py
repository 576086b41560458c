"""
Matrimony Matching — Profile-view side effects.

Viewing a detailed profile produces up to four effects:

  IncrementViewCounter  profiles.profile_viewed += 1
  UpsertViewRecord      one profile_views row per (viewer, candidate, week)
  MarkViewed            24 h suppression key profile_view:{viewer}:{candidate}
  CreateNotification    "profile viewed" notice (never for self-views)

``plan`` decides which effects apply and returns them as plain values;
``apply`` runs them concurrently.  A failing effect is logged and does not
stop or roll back the others, and ``apply`` never raises.

The suppression check is check-then-act and not atomic.  A burst of
simultaneous views can produce a duplicate notification.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Union

import structlog

from matrimony.services.score_cache import RedisCacheStore, profile_view_key
from matrimony.utils.dates import utcnow, week_number, week_start

logger = structlog.get_logger("matrimony.view_tracker")

PROFILE_VIEW_NOTIFICATION = "profile_view"


@dataclass(frozen=True)
class IncrementViewCounter:
    candidate_id: uuid.UUID


@dataclass(frozen=True)
class UpsertViewRecord:
    viewer_id: uuid.UUID
    candidate_id: uuid.UUID
    week_start_date: date
    week_number: int


@dataclass(frozen=True)
class MarkViewed:
    viewer_id: uuid.UUID
    candidate_id: uuid.UUID
    ttl_seconds: int


@dataclass(frozen=True)
class CreateNotification:
    user_id: uuid.UUID
    viewer_id: uuid.UUID
    viewer_name: str


ViewEffect = Union[IncrementViewCounter, UpsertViewRecord, MarkViewed, CreateNotification]


class ViewTracker:
    def __init__(self, store: Any, cache_store: RedisCacheStore, suppression_ttl: int = 86400) -> None:
        self.store = store
        self.cache_store = cache_store
        self.suppression_ttl = suppression_ttl

    async def plan(self, viewer: Any, candidate_id: uuid.UUID, today: date | None = None) -> list[ViewEffect]:
        """Return the effects for this view, or ``[]`` inside the 24 h window."""
        key = profile_view_key(viewer.id, candidate_id)
        if await self.cache_store.exists(key):
            logger.debug("profile_view_suppressed", key=key)
            return []

        day = today or utcnow().date()
        effects: list[ViewEffect] = [
            IncrementViewCounter(candidate_id=candidate_id),
            UpsertViewRecord(
                viewer_id=viewer.id,
                candidate_id=candidate_id,
                week_start_date=week_start(day),
                week_number=week_number(day),
            ),
            MarkViewed(viewer_id=viewer.id, candidate_id=candidate_id, ttl_seconds=self.suppression_ttl),
        ]
        if str(viewer.id) != str(candidate_id):
            name = " ".join(
                part for part in (getattr(viewer, "first_name", None), getattr(viewer, "last_name", None)) if part
            )
            effects.append(
                CreateNotification(user_id=candidate_id, viewer_id=viewer.id, viewer_name=name or "Someone")
            )
        return effects

    async def _run(self, effect: ViewEffect) -> None:
        if isinstance(effect, IncrementViewCounter):
            await self.store.increment_view_counter(effect.candidate_id)
        elif isinstance(effect, UpsertViewRecord):
            await self.store.upsert_view_record(
                effect.viewer_id, effect.candidate_id, effect.week_start_date, effect.week_number
            )
        elif isinstance(effect, MarkViewed):
            await self.cache_store.set_with_ttl(
                profile_view_key(effect.viewer_id, effect.candidate_id), "1", effect.ttl_seconds
            )
        elif isinstance(effect, CreateNotification):
            await self.store.create_notification(
                user_id=effect.user_id,
                type=PROFILE_VIEW_NOTIFICATION,
                title="Profile viewed",
                message=f"{effect.viewer_name} viewed your profile",
                meta={"viewer_id": str(effect.viewer_id)},
            )
        else:
            raise TypeError(f"Unknown view effect: {effect!r}")

    async def apply(self, effects: list[ViewEffect]) -> list[ViewEffect]:
        """Run *effects* concurrently; return the ones that failed."""
        if not effects:
            return []
        results = await asyncio.gather(*(self._run(e) for e in effects), return_exceptions=True)
        failed: list[ViewEffect] = []
        for effect, result in zip(effects, results):
            if isinstance(result, Exception):
                failed.append(effect)
                logger.warning(
                    "view_effect_failed",
                    effect=type(effect).__name__,
                    error=str(result),
                )
        return failed
