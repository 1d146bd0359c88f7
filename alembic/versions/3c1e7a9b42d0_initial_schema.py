"""initial_schema

Revision ID: 3c1e7a9b42d0
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the users, fields and push_subscriptions tables plus their enum
types.  Requires PostgreSQL with the uuid-ossp and postgis extensions,
which this revision enables when missing.
"""

from collections.abc import Sequence

import geoalchemy2
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c1e7a9b42d0"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_FIELD_STATUS = postgresql.ENUM(
    "needs_irrigation",
    "normal",
    "irrigating",
    name="field_status",
    create_type=False,
)
ENUM_DEVICE_TYPE = postgresql.ENUM(
    "mobile", "desktop", name="device_type", create_type=False
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # ── 0. Extensions ───────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── 1. Create enum types ────────────────────────────────────────────
    ENUM_FIELD_STATUS.create(op.get_bind(), checkfirst=True)
    ENUM_DEVICE_TYPE.create(op.get_bind(), checkfirst=True)

    # ── 2. Tables ───────────────────────────────────────────────────────

    # users
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("hashed_password", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("farm_name", sa.String(255), nullable=True),
        sa.Column(
            "is_active",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # fields
    op.create_table(
        "fields",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("crop", sa.String(100), nullable=False),
        sa.Column("crop_category", sa.String(50), nullable=True),
        sa.Column("area", sa.Float(), nullable=False),
        sa.Column(
            "color",
            sa.String(7),
            server_default=sa.text("'#22c55e'"),
            nullable=False,
        ),
        sa.Column("coordinates", postgresql.JSONB(), nullable=False),
        sa.Column(
            "boundary",
            geoalchemy2.types.Geography(
                geometry_type="POLYGON",
                srid=4326,
                from_text="ST_GeogFromText",
            ),
            nullable=True,
        ),
        sa.Column("moisture", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("temperature", sa.Float(), server_default=sa.text("20"), nullable=False),
        sa.Column("salinity", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "sensor_updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "irrigation_active",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("total_minutes", sa.Float(), server_default=sa.text("60"), nullable=False),
        sa.Column("remaining_minutes", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("flow_rate", sa.Float(), server_default=sa.text("2.5"), nullable=False),
        sa.Column("last_irrigation", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_fertigation", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status",
            ENUM_FIELD_STATUS,
            server_default="normal",
            nullable=False,
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_fields_user_id", "fields", ["user_id"])
    op.create_index("ix_fields_user_created", "fields", ["user_id", "created_at"])

    # push_subscriptions
    op.create_table(
        "push_subscriptions",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("endpoint", sa.Text(), nullable=False),
        sa.Column("p256dh", sa.String(255), nullable=False),
        sa.Column("auth", sa.String(255), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("device_type", ENUM_DEVICE_TYPE, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("endpoint"),
    )
    op.create_index(
        "ix_push_subscriptions_user_id", "push_subscriptions", ["user_id"]
    )


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("push_subscriptions")
    op.drop_table("fields")
    op.drop_table("users")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_DEVICE_TYPE.drop(op.get_bind(), checkfirst=True)
    ENUM_FIELD_STATUS.drop(op.get_bind(), checkfirst=True)
