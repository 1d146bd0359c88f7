"""Enum types shared by ORM models, schemas and the status classifier.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM where it is
stored in a column.
"""

from enum import StrEnum

# ── Field enums ─────────────────────────────────────────────────────────────


class FieldStatusEnum(StrEnum):
    """Derived field condition shown on the map.

    Stored on ``fields.status`` only as a cache of the last classification.
    """

    needs_irrigation = "needs_irrigation"
    normal = "normal"
    irrigating = "irrigating"


# ── Notification enums ──────────────────────────────────────────────────────


class DeviceTypeEnum(StrEnum):
    """Browser class that registered a push subscription."""

    mobile = "mobile"
    desktop = "desktop"
