"""Field ORM model: a user's farm plot with sensor and irrigation state.

The polygon drawn on the map is kept twice: ``coordinates`` (JSONB list of
``[lng, lat]`` pairs, the shape the dashboard round-trips) and ``boundary``
(PostGIS geography, for spatial queries).  ``status`` is a cache of the
last classifier run and is rewritten whenever a classifier input changes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from geoalchemy2 import Geography
from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, String, func, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.enums import FieldStatusEnum

if TYPE_CHECKING:
    from app.models.user import User


class Field(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A bounded plot with an assigned crop (called "zone" in early UIs)."""

    __tablename__ = "fields"
    __table_args__ = (
        Index("ix_fields_user_created", "user_id", "created_at"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    crop: Mapped[str] = mapped_column(String(100), nullable=False)
    crop_category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    area: Mapped[float] = mapped_column(Float, nullable=False)
    color: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        default="#22c55e",
        server_default=text("'#22c55e'"),
    )
    coordinates: Mapped[list[list[float]]] = mapped_column(JSONB, nullable=False)
    boundary: Mapped[Any] = mapped_column(
        Geography(geometry_type="POLYGON", srid=4326),
        nullable=True,
    )

    # ── Latest sensor reading ────────────────────────────────────────────
    moisture: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    temperature: Mapped[float] = mapped_column(
        Float, nullable=False, default=20.0, server_default=text("20")
    )
    salinity: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    sensor_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Irrigation state ─────────────────────────────────────────────────
    irrigation_active: Mapped[bool] = mapped_column(
        default=False,
        server_default=text("false"),
        nullable=False,
    )
    total_minutes: Mapped[float] = mapped_column(
        Float, nullable=False, default=60.0, server_default=text("60")
    )
    remaining_minutes: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default=text("0")
    )
    flow_rate: Mapped[float] = mapped_column(
        Float, nullable=False, default=2.5, server_default=text("2.5")
    )
    last_irrigation: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_fertigation: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    status: Mapped[FieldStatusEnum] = mapped_column(
        Enum(
            FieldStatusEnum,
            name="field_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=FieldStatusEnum.normal,
        server_default="normal",
    )

    # ── Relationships ────────────────────────────────────────────────────
    user: Mapped[User] = relationship(back_populates="fields")

    def __repr__(self) -> str:
        return f"<Field id={self.id} name={self.name!r} status={self.status}>"
