"""PushSubscription ORM model: one row per browser push endpoint."""

from __future__ import annotations

import uuid

from sqlalchemy import Enum, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.enums import DeviceTypeEnum


class PushSubscription(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Web-push subscription registered by a signed-in browser.

    ``endpoint`` is globally unique: a browser that signs in with another
    account re-owns its existing row instead of creating a second one.
    """

    __tablename__ = "push_subscriptions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    endpoint: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    p256dh: Mapped[str] = mapped_column(String(255), nullable=False)
    auth: Mapped[str] = mapped_column(String(255), nullable=False)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_type: Mapped[DeviceTypeEnum | None] = mapped_column(
        Enum(
            DeviceTypeEnum,
            name="device_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )

    def subscription_info(self) -> dict[str, object]:
        """Shape expected by the web-push sender."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }

    def __repr__(self) -> str:
        return f"<PushSubscription id={self.id} user={self.user_id}>"
