"""Initial schema — all 11 matrimony matching tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _user_fk(unique: bool = True) -> sa.Column:
    return sa.Column(
        "user_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        unique=unique,
        index=True,
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────────────
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("middle_name", sa.String(50), nullable=True),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("gender", sa.String, index=True, nullable=False),
        sa.Column("role", sa.String, server_default="user", nullable=False),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("email", sa.String, unique=True, index=True, nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=True),
        sa.Column("custom_id", sa.String, unique=True, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default="true", nullable=False),
        sa.Column("is_deleted", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "blocked_users",
            postgresql.ARRAY(postgresql.UUID(as_uuid=True)),
            server_default="{}",
            nullable=False,
            comment="Users this user has blocked",
        ),
        *_timestamps(),
    )
    # GIN index backs the "seeker not in candidate.blocked_users" filter
    op.create_index(
        "ix_users_blocked_users",
        "users",
        ["blocked_users"],
        postgresql_using="gin",
    )

    # ── 2. partner_preferences ──────────────────────────────────────
    op.create_table(
        "partner_preferences",
        _uuid_pk(),
        _user_fk(),
        sa.Column("age_from", sa.Integer, nullable=True),
        sa.Column("age_to", sa.Integer, nullable=True),
        sa.Column("community", postgresql.JSONB, nullable=True),
        sa.Column("marital_status", postgresql.JSONB, nullable=True),
        sa.Column("education_level", postgresql.JSONB, nullable=True),
        sa.Column("living_in_country", postgresql.JSONB, nullable=True),
        sa.Column("living_in_state", postgresql.JSONB, nullable=True),
        sa.Column("profession", postgresql.JSONB, nullable=True),
        sa.Column("diet", postgresql.JSONB, nullable=True),
        sa.Column(
            "alcohol",
            sa.String,
            nullable=True,
            comment="yes / no / occasionally / No Preference",
        ),
        *_timestamps(),
    )

    # ── 3. user_personal ────────────────────────────────────────────
    op.create_table(
        "user_personal",
        _uuid_pk(),
        _user_fk(),
        sa.Column("religion", sa.String, nullable=True),
        sa.Column("sub_caste", sa.String, nullable=True),
        sa.Column("marital_status", sa.String, nullable=True),
        sa.Column("city", sa.String, nullable=True),
        sa.Column("state", sa.String, nullable=True),
        sa.Column("residing_country", sa.String, nullable=True),
        sa.Column("nationality", sa.String, nullable=True),
        sa.Column("height", sa.String, nullable=True),
        sa.Column("weight", sa.String, nullable=True),
        sa.Column("astrological_sign", sa.String, nullable=True),
        sa.Column("birth_place", sa.String, nullable=True),
        sa.Column("birth_state", sa.String, nullable=True),
        sa.Column("time_of_birth", sa.String, nullable=True),
        sa.Column("dosh", sa.String, nullable=True),
        sa.Column("marry_to_other_religion", sa.Boolean, nullable=True),
        sa.Column("has_children", sa.Boolean, nullable=True),
        sa.Column("number_of_children", sa.Integer, nullable=True),
        sa.Column("children_living_with_you", sa.Boolean, nullable=True),
        sa.Column("legally_separated", sa.Boolean, nullable=True),
        sa.Column("separated_since", sa.String, nullable=True),
        sa.Column("divorce_status", sa.String, nullable=True),
    )

    # ── 4. user_education ───────────────────────────────────────────
    op.create_table(
        "user_education",
        _uuid_pk(),
        _user_fk(),
        sa.Column("school_name", sa.String, nullable=True),
        sa.Column("highest_education", sa.String, nullable=True),
        sa.Column("field_of_study", sa.String, nullable=True),
        sa.Column("university", sa.String, nullable=True),
        sa.Column("country_of_education", sa.String, nullable=True),
    )

    # ── 5. user_profession ──────────────────────────────────────────
    op.create_table(
        "user_profession",
        _uuid_pk(),
        _user_fk(),
        sa.Column("organization_name", sa.String, nullable=True),
        sa.Column("employment_status", sa.String, nullable=True),
        sa.Column("annual_income", sa.String, nullable=True),
        sa.Column("occupation", sa.String, nullable=True),
    )

    # ── 6. user_health ──────────────────────────────────────────────
    op.create_table(
        "user_health",
        _uuid_pk(),
        _user_fk(),
        sa.Column("alcohol", sa.String, nullable=True, comment="yes / no / occasional"),
        sa.Column("tobacco", sa.String, nullable=True),
        sa.Column("tattoos", sa.String, nullable=True),
        sa.Column("has_hiv", sa.Boolean, nullable=True, comment="NULL = not disclosed"),
        sa.Column("diet", sa.String, nullable=True),
    )

    # ── 7. user_family ──────────────────────────────────────────────
    op.create_table(
        "user_family",
        _uuid_pk(),
        _user_fk(),
        sa.Column("father_name", sa.String, nullable=True),
        sa.Column("mother_name", sa.String, nullable=True),
        sa.Column("father_occupation", sa.String, nullable=True),
        sa.Column("mother_occupation", sa.String, nullable=True),
        sa.Column("father_native_place", sa.String, nullable=True),
        sa.Column("grandfather_name", sa.String, nullable=True),
        sa.Column("grandmother_name", sa.String, nullable=True),
        sa.Column("nana_name", sa.String, nullable=True),
        sa.Column("nana_native_place", sa.String, nullable=True),
        sa.Column("nani_name", sa.String, nullable=True),
        sa.Column("family_type", sa.String, nullable=True),
        sa.Column("has_siblings", sa.Boolean, nullable=True),
        sa.Column("sibling_count", sa.Integer, nullable=True),
        sa.Column("sibling_details", postgresql.JSONB, nullable=True),
    )

    # ── 8. profiles ─────────────────────────────────────────────────
    op.create_table(
        "profiles",
        _uuid_pk(),
        _user_fk(),
        sa.Column("photos", postgresql.JSONB, nullable=True),
        sa.Column("government_id_image", postgresql.JSONB, nullable=True),
        sa.Column("is_visible", sa.Boolean, server_default="true", nullable=False),
        sa.Column(
            "favorite_profiles",
            postgresql.ARRAY(postgresql.UUID(as_uuid=True)),
            server_default="{}",
            nullable=False,
        ),
        sa.Column("profile_viewed", sa.Integer, server_default="0", nullable=False),
        *_timestamps(),
    )

    # ── 9. connection_requests ──────────────────────────────────────
    op.create_table(
        "connection_requests",
        _uuid_pk(),
        sa.Column(
            "sender_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "receiver_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String, index=True, nullable=False),
        sa.Column("actioned_by", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_connection_requests_pair",
        "connection_requests",
        ["sender_id", "receiver_id"],
    )

    # ── 10. profile_views ───────────────────────────────────────────
    op.create_table(
        "profile_views",
        _uuid_pk(),
        sa.Column(
            "viewer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "candidate_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("week_start_date", sa.Date, nullable=False),
        sa.Column("week_number", sa.Integer, nullable=False),
        sa.Column(
            "viewed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "viewer_id", "candidate_id", "week_start_date", name="uq_profile_view_week"
        ),
    )
    op.create_index(
        "ix_profile_views_candidate_week",
        "profile_views",
        ["candidate_id", "week_start_date"],
    )

    # ── 11. notifications ───────────────────────────────────────────
    op.create_table(
        "notifications",
        _uuid_pk(),
        _user_fk(unique=False),
        sa.Column("type", sa.String, nullable=False),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("message", sa.String, nullable=False),
        sa.Column("meta", postgresql.JSONB, nullable=True),
        sa.Column("is_read", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_table("notifications")

    op.drop_index("ix_profile_views_candidate_week", table_name="profile_views")
    op.drop_table("profile_views")

    op.drop_index("ix_connection_requests_pair", table_name="connection_requests")
    op.drop_table("connection_requests")

    op.drop_table("profiles")
    op.drop_table("user_family")
    op.drop_table("user_health")
    op.drop_table("user_profession")
    op.drop_table("user_education")
    op.drop_table("user_personal")
    op.drop_table("partner_preferences")

    op.drop_index("ix_users_blocked_users", table_name="users")
    op.drop_table("users")
