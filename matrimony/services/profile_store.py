"""
Matrimony Matching — SQLAlchemy data access for the matching engine.

Every public method opens its own short-lived ``AsyncSession`` from the
injected factory.  Discovery fires several of these concurrently with
``asyncio.gather``; a single session cannot run statements concurrently,
so sessions are never shared between calls.

Store errors (``SQLAlchemyError``, ``OSError``) propagate to the caller.
The matching service decides whether a failure is fatal (discovery fails
closed) or tolerable (view-tracking effects).
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Iterable, Sequence

import structlog
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert

from matrimony.models.attributes import (
    UserEducation,
    UserFamily,
    UserHealth,
    UserPersonal,
    UserProfession,
)
from matrimony.models.connection import ConnectionRequest, ConnectionState, Notification
from matrimony.models.preference import PartnerPreference
from matrimony.models.profile import Profile
from matrimony.models.profile_view import ProfileView
from matrimony.models.user import User

logger = structlog.get_logger("matrimony.profile_store")

# Collections batch-loaded for a candidate set, keyed by the name used in
# the preloaded-record maps.
ATTRIBUTE_MODELS: dict[str, Any] = {
    "personal": UserPersonal,
    "education": UserEducation,
    "profession": UserProfession,
    "health": UserHealth,
    "profile": Profile,
}


def opposite_gender(gender: str | None) -> str:
    """Binary gender model: male seekers see female candidates, everyone else male."""
    return "female" if (gender or "").lower() == "male" else "male"


class ProfileStore:
    """Read and write access to identity, attribute and connection data."""

    def __init__(self, session_factory: Any | None = None) -> None:
        if session_factory is None:
            from matrimony.database import async_session_factory

            session_factory = async_session_factory
        self._session_factory = session_factory

    # ── Single-record reads ───────────────────────────────────────────────

    async def _get_by_user(self, model: Any, user_id: uuid.UUID) -> Any | None:
        async with self._session_factory() as session:
            result = await session.execute(select(model).where(model.user_id == user_id))
            return result.scalar_one_or_none()

    async def get_user(self, user_id: uuid.UUID) -> User | None:
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def get_preferences(self, user_id: uuid.UUID) -> PartnerPreference | None:
        return await self._get_by_user(PartnerPreference, user_id)

    async def get_profile(self, user_id: uuid.UUID) -> Profile | None:
        return await self._get_by_user(Profile, user_id)

    async def get_personal(self, user_id: uuid.UUID) -> UserPersonal | None:
        return await self._get_by_user(UserPersonal, user_id)

    async def get_education(self, user_id: uuid.UUID) -> UserEducation | None:
        return await self._get_by_user(UserEducation, user_id)

    async def get_profession(self, user_id: uuid.UUID) -> UserProfession | None:
        return await self._get_by_user(UserProfession, user_id)

    async def get_health(self, user_id: uuid.UUID) -> UserHealth | None:
        return await self._get_by_user(UserHealth, user_id)

    async def get_family(self, user_id: uuid.UUID) -> UserFamily | None:
        return await self._get_by_user(UserFamily, user_id)

    # ── Candidate discovery ───────────────────────────────────────────────

    async def find_candidates(self, seeker: User) -> list[User]:
        """Base eligibility filter evaluated in SQL.

        Opposite gender, active, not deleted, not the seeker, not in the
        seeker's block list, and the seeker not in the candidate's block
        list.
        """
        conditions = [
            User.gender == opposite_gender(seeker.gender),
            User.is_active.is_(True),
            User.is_deleted.is_(False),
            User.id != seeker.id,
            ~User.blocked_users.contains([seeker.id]),
        ]
        blocked = list(seeker.blocked_users or [])
        if blocked:
            conditions.append(User.id.notin_(blocked))

        async with self._session_factory() as session:
            result = await session.execute(
                select(User).where(and_(*conditions)).order_by(User.created_at.desc())
            )
            return list(result.scalars().all())

    async def load_many(self, model: Any, user_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, Any]:
        """One query for the whole id set; returns ``user_id -> record``."""
        if not user_ids:
            return {}
        async with self._session_factory() as session:
            result = await session.execute(select(model).where(model.user_id.in_(user_ids)))
            return {row.user_id: row for row in result.scalars().all()}

    async def connected_user_ids(
        self, seeker_id: uuid.UUID, candidate_ids: Sequence[uuid.UUID]
    ) -> set[uuid.UUID]:
        """Ids with a connection request of any status with the seeker."""
        if not candidate_ids:
            return set()
        stmt = select(ConnectionRequest.sender_id, ConnectionRequest.receiver_id).where(
            or_(
                and_(
                    ConnectionRequest.sender_id == seeker_id,
                    ConnectionRequest.receiver_id.in_(candidate_ids),
                ),
                and_(
                    ConnectionRequest.receiver_id == seeker_id,
                    ConnectionRequest.sender_id.in_(candidate_ids),
                ),
            )
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            connected: set[uuid.UUID] = set()
            for sender_id, receiver_id in result.all():
                connected.add(receiver_id if sender_id == seeker_id else sender_id)
            return connected

    async def connection_state(self, user_a: uuid.UUID, user_b: uuid.UUID) -> ConnectionState:
        stmt = (
            select(ConnectionRequest.status)
            .where(
                or_(
                    and_(ConnectionRequest.sender_id == user_a, ConnectionRequest.receiver_id == user_b),
                    and_(ConnectionRequest.sender_id == user_b, ConnectionRequest.receiver_id == user_a),
                )
            )
            .order_by(ConnectionRequest.created_at.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return ConnectionState.parse(result.scalar_one_or_none())

    # ── View tracking writes ──────────────────────────────────────────────

    async def increment_view_counter(self, candidate_id: uuid.UUID) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(Profile)
                .where(Profile.user_id == candidate_id)
                .values(profile_viewed=Profile.profile_viewed + 1)
            )
            await session.commit()

    async def upsert_view_record(
        self,
        viewer_id: uuid.UUID,
        candidate_id: uuid.UUID,
        week_start_date: date,
        week_number: int,
    ) -> None:
        stmt = pg_insert(ProfileView).values(
            id=uuid.uuid4(),
            viewer_id=viewer_id,
            candidate_id=candidate_id,
            week_start_date=week_start_date,
            week_number=week_number,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_profile_view_week",
            set_={"viewed_at": func.now()},
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    async def create_notification(
        self,
        user_id: uuid.UUID,
        type: str,
        title: str,
        message: str,
        meta: dict[str, Any] | None = None,
    ) -> None:
        async with self._session_factory() as session:
            session.add(
                Notification(
                    user_id=user_id,
                    type=type,
                    title=title,
                    message=message,
                    meta=meta,
                )
            )
            await session.commit()

    async def weekly_view_counts(self, candidate_id: uuid.UUID) -> list[tuple[date, int, int]]:
        """``(week_start_date, week_number, views)`` rows, newest week first."""
        stmt = (
            select(
                ProfileView.week_start_date,
                ProfileView.week_number,
                func.count(ProfileView.id),
            )
            .where(ProfileView.candidate_id == candidate_id)
            .group_by(ProfileView.week_start_date, ProfileView.week_number)
            .order_by(ProfileView.week_start_date.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [(row[0], row[1], row[2]) for row in result.all()]

    async def ping(self) -> None:
        async with self._session_factory() as session:
            await session.execute(select(1))


def as_id_set(values: Iterable[Any] | None) -> set[str]:
    """Normalise a collection of UUIDs / strings to a set of strings."""
    return {str(v) for v in values or []}
