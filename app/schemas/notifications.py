"""Pydantic schemas for web-push subscriptions and delivery."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import DeviceTypeEnum


class SubscriptionKeys(BaseModel):
	p256dh: str = Field(min_length=1)
	auth: str = Field(min_length=1)


class SubscriptionCreate(BaseModel):
	endpoint: str = Field(min_length=1)
	keys: SubscriptionKeys
	user_agent: str | None = None
	device_type: DeviceTypeEnum | None = None


class SubscriptionDelete(BaseModel):
	endpoint: str = Field(min_length=1)


class SubscriptionRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	endpoint: str
	user_agent: str | None = None
	device_type: DeviceTypeEnum | None = None
	created_at: datetime
	updated_at: datetime


class SubscriptionReceipt(BaseModel):
	message: str
	created: bool
	subscription: SubscriptionRead


class SubscriptionListRead(BaseModel):
	items: list[SubscriptionRead]


class NotificationSendRequest(BaseModel):
	title: str = Field(min_length=1, max_length=255)
	message: str = Field(min_length=1, max_length=2000)
	target_user_id: uuid.UUID | None = None
	icon: str | None = None
	badge: str | None = None
	tag: str = "general"
	url: str = "/"


class DeliveryResult(BaseModel):
	endpoint: str
	success: bool
	error: str | None = None


class DeliveryStats(BaseModel):
	total: int
	successful: int
	failed: int


class NotificationSendReceipt(BaseModel):
	message: str
	stats: DeliveryStats
	results: list[DeliveryResult] = Field(default_factory=list)
