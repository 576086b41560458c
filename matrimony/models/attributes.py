"""
Matrimony Matching — Per-user attribute sub-records.

Each record is keyed by ``user_id`` and lives in its own table, so
discovery loads every collection for a candidate set with one query per
table.
"""

import uuid
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from matrimony.database import Base


def _user_fk():
    return mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )


def _pk():
    return mapped_column(PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


class UserPersonal(Base):
    __tablename__ = "user_personal"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _user_fk()

    religion: Mapped[str | None] = mapped_column(String, nullable=True)
    sub_caste: Mapped[str | None] = mapped_column(String, nullable=True)
    marital_status: Mapped[str | None] = mapped_column(String, nullable=True)

    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    residing_country: Mapped[str | None] = mapped_column(String, nullable=True)
    nationality: Mapped[str | None] = mapped_column(String, nullable=True)

    height: Mapped[str | None] = mapped_column(String, nullable=True)
    weight: Mapped[str | None] = mapped_column(String, nullable=True)
    astrological_sign: Mapped[str | None] = mapped_column(String, nullable=True)
    birth_place: Mapped[str | None] = mapped_column(String, nullable=True)
    birth_state: Mapped[str | None] = mapped_column(String, nullable=True)
    time_of_birth: Mapped[str | None] = mapped_column(String, nullable=True)
    dosh: Mapped[str | None] = mapped_column(String, nullable=True)
    marry_to_other_religion: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    has_children: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    number_of_children: Mapped[int | None] = mapped_column(Integer, nullable=True)
    children_living_with_you: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    legally_separated: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    separated_since: Mapped[str | None] = mapped_column(String, nullable=True)
    divorce_status: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<UserPersonal user={self.user_id} status={self.marital_status!r}>"


class UserEducation(Base):
    __tablename__ = "user_education"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _user_fk()

    school_name: Mapped[str | None] = mapped_column(String, nullable=True)
    highest_education: Mapped[str | None] = mapped_column(String, nullable=True)
    field_of_study: Mapped[str | None] = mapped_column(String, nullable=True)
    university: Mapped[str | None] = mapped_column(String, nullable=True)
    country_of_education: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<UserEducation user={self.user_id} highest={self.highest_education!r}>"


class UserProfession(Base):
    __tablename__ = "user_profession"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _user_fk()

    organization_name: Mapped[str | None] = mapped_column(String, nullable=True)
    employment_status: Mapped[str | None] = mapped_column(String, nullable=True)
    annual_income: Mapped[str | None] = mapped_column(String, nullable=True)
    occupation: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<UserProfession user={self.user_id} occupation={self.occupation!r}>"


class UserHealth(Base):
    __tablename__ = "user_health"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _user_fk()

    alcohol: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="yes / no / occasional"
    )
    tobacco: Mapped[str | None] = mapped_column(String, nullable=True)
    tattoos: Mapped[str | None] = mapped_column(String, nullable=True)
    has_hiv: Mapped[bool | None] = mapped_column(
        Boolean, nullable=True, comment="NULL = not disclosed"
    )
    diet: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<UserHealth user={self.user_id} diet={self.diet!r}>"


class UserFamily(Base):
    __tablename__ = "user_family"

    id: Mapped[uuid.UUID] = _pk()
    user_id: Mapped[uuid.UUID] = _user_fk()

    father_name: Mapped[str | None] = mapped_column(String, nullable=True)
    mother_name: Mapped[str | None] = mapped_column(String, nullable=True)
    father_occupation: Mapped[str | None] = mapped_column(String, nullable=True)
    mother_occupation: Mapped[str | None] = mapped_column(String, nullable=True)
    father_native_place: Mapped[str | None] = mapped_column(String, nullable=True)
    grandfather_name: Mapped[str | None] = mapped_column(String, nullable=True)
    grandmother_name: Mapped[str | None] = mapped_column(String, nullable=True)
    nana_name: Mapped[str | None] = mapped_column(String, nullable=True)
    nana_native_place: Mapped[str | None] = mapped_column(String, nullable=True)
    nani_name: Mapped[str | None] = mapped_column(String, nullable=True)
    family_type: Mapped[str | None] = mapped_column(String, nullable=True)
    has_siblings: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    sibling_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sibling_details: Mapped[Any] = mapped_column(
        JSONB, nullable=True, comment="[{name, relation, marital_status}]"
    )

    def __repr__(self) -> str:
        return f"<UserFamily user={self.user_id}>"
