"""
Matrimony Matching — Partner preference ("expectations") model.

Most preference columns are free-form JSONB: the onboarding UI has saved
plain strings, lists, and keyed objects over time.  Nothing reads them raw;
``normalize_preferences`` turns them into token lists first.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from matrimony.database import Base


class PartnerPreference(Base):
    __tablename__ = "partner_preferences"

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
    age_from: Mapped[int | None] = mapped_column(Integer, nullable=True)
    age_to: Mapped[int | None] = mapped_column(Integer, nullable=True)
    community: Mapped[Any] = mapped_column(JSONB, nullable=True)
    marital_status: Mapped[Any] = mapped_column(JSONB, nullable=True)
    education_level: Mapped[Any] = mapped_column(JSONB, nullable=True)
    living_in_country: Mapped[Any] = mapped_column(JSONB, nullable=True)
    living_in_state: Mapped[Any] = mapped_column(JSONB, nullable=True)
    profession: Mapped[Any] = mapped_column(JSONB, nullable=True)
    diet: Mapped[Any] = mapped_column(JSONB, nullable=True)
    alcohol: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="yes / no / occasionally"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<PartnerPreference user={self.user_id} "
            f"age={self.age_from}-{self.age_to}>"
        )
