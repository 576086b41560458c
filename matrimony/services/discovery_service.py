"""
Matrimony Matching — Candidate discovery.

Builds the eligible candidate pool for a seeker and batch-loads every
attribute collection the ranking stage needs:

  1. Seeker context (identity, preferences, favourites, health), loaded
     concurrently.
  2. Base SQL filter: opposite gender, active, not deleted, not self,
     blocked in neither direction.
  3. Drop candidates already in the seeker's favourites.
  4. Batch-load personal / education / profession / health / profile
     records and the seeker's connection requests, one query per
     collection, all concurrently.
  5. HIV-status partition: an explicit True or False on the seeker keeps
     only candidates with the same explicit value; unset applies no
     partition.  An empty partition ends discovery with an empty pool.
  6. Drop candidates with a connection request of any status with the
     seeker.

Store errors propagate; ``MatchingService`` turns them into an empty
result (fail closed).
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any

import structlog

from matrimony.services.preferences import PreferenceSet, normalize_preferences, parse_flag
from matrimony.services.profile_store import ATTRIBUTE_MODELS, ProfileStore, as_id_set

logger = structlog.get_logger("matrimony.discovery_service")


@dataclass
class SeekerContext:
    user: Any
    raw_preferences: Any
    preferences: PreferenceSet
    favorites: set[str] = field(default_factory=set)
    has_hiv: bool | None = None


@dataclass
class CandidatePool:
    """Discovered candidates plus ``user_id -> record`` maps per collection."""

    seeker: SeekerContext
    candidates: list[Any] = field(default_factory=list)
    records: dict[str, dict[uuid.UUID, Any]] = field(default_factory=dict)

    def record(self, collection: str, user_id: uuid.UUID) -> Any | None:
        return self.records.get(collection, {}).get(user_id)

    def __len__(self) -> int:
        return len(self.candidates)


class CandidateDiscovery:
    """Eligibility filtering and batch attribute loading."""

    def __init__(self, store: ProfileStore) -> None:
        self.store = store

    async def load_seeker(self, seeker_id: uuid.UUID) -> SeekerContext | None:
        user, raw_prefs, profile, health = await asyncio.gather(
            self.store.get_user(seeker_id),
            self.store.get_preferences(seeker_id),
            self.store.get_profile(seeker_id),
            self.store.get_health(seeker_id),
        )
        if user is None:
            return None
        favorites = as_id_set(getattr(profile, "favorite_profiles", None))
        return SeekerContext(
            user=user,
            raw_preferences=raw_prefs,
            preferences=normalize_preferences(raw_prefs),
            favorites=favorites,
            has_hiv=parse_flag(getattr(health, "has_hiv", None)),
        )

    async def discover(self, seeker_id: uuid.UUID) -> CandidatePool | None:
        """Return the eligible pool, or ``None`` if the seeker does not exist."""
        log = logger.bind(seeker_id=str(seeker_id))

        seeker = await self.load_seeker(seeker_id)
        if seeker is None:
            log.warning("seeker_not_found")
            return None

        candidates = await self.store.find_candidates(seeker.user)
        log.info("base_pool_loaded", count=len(candidates))

        if seeker.favorites:
            candidates = [c for c in candidates if str(c.id) not in seeker.favorites]

        pool = CandidatePool(seeker=seeker)
        if not candidates:
            return pool

        ids = [c.id for c in candidates]
        names = list(ATTRIBUTE_MODELS)
        *maps, connected = await asyncio.gather(
            *(self.store.load_many(ATTRIBUTE_MODELS[name], ids) for name in names),
            self.store.connected_user_ids(seeker_id, ids),
        )
        pool.records = dict(zip(names, maps))

        if seeker.has_hiv is not None:
            health = pool.records.get("health", {})
            candidates = [
                c
                for c in candidates
                if parse_flag(getattr(health.get(c.id), "has_hiv", None)) is seeker.has_hiv
            ]
            log.info("health_partition_applied", seeker_flag=seeker.has_hiv, count=len(candidates))
            if not candidates:
                return pool

        if connected:
            candidates = [c for c in candidates if c.id not in connected]

        pool.candidates = candidates
        log.info("candidate_pool_ready", count=len(candidates), excluded_connected=len(connected))
        return pool
