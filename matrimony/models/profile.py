"""
Matrimony Matching — Profile model (photos, favourites, view counter).

Photo JSON layout::

    {
        "closer_photo":    {"url": str, "uploaded_at": str},          # public
        "personal_photos": [{"url": str, "uploaded_at": str}, ...],   # connectionOnly
        "family_photo":    {"url": str, "uploaded_at": str},          # connectionOnly
        "other_photos":    [{"url": str, "title": str, ...}, ...],    # connectionOnly
    }

``government_id_image`` is stored separately and is admin-only.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from matrimony.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )
    photos: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB, nullable=True, comment="closer / personal / family / other photos"
    )
    government_id_image: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB, nullable=True, comment="Admin-only verification image"
    )
    is_visible: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true", nullable=False
    )
    favorite_profiles: Mapped[list[uuid.UUID]] = mapped_column(
        ARRAY(PgUUID(as_uuid=True)),
        default=list,
        server_default="{}",
        nullable=False,
    )
    profile_viewed: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Profile user={self.user_id} views={self.profile_viewed}>"
