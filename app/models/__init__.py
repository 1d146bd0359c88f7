"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from app.models import Field, PushSubscription, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# ── Crop reference (static, not a table) ────────────────────────────────────
from app.models.crops import DEFAULT_CROP_CATEGORIES, Band, CropCategory, CropThresholds

# ── Enums ───────────────────────────────────────────────────────────────────
from app.models.enums import DeviceTypeEnum, FieldStatusEnum

# ── Field & notification models ─────────────────────────────────────────────
from app.models.field import Field
from app.models.push import PushSubscription
from app.models.user import User

__all__ = [
    # Base & mixins
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Crop reference
    "DEFAULT_CROP_CATEGORIES",
    "Band",
    "CropCategory",
    "CropThresholds",
    # Enums
    "DeviceTypeEnum",
    "FieldStatusEnum",
    # Tables
    "Field",
    "PushSubscription",
    "User",
]
