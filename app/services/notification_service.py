"""Web-push subscription storage and notification delivery."""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from typing import Any

import structlog
from pywebpush import WebPushException, webpush
from requests.exceptions import RequestException
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.models.push import PushSubscription
from app.schemas.notifications import (
	DeliveryResult,
	DeliveryStats,
	NotificationSendReceipt,
	NotificationSendRequest,
	SubscriptionCreate,
)

logger = structlog.get_logger("fieldsense.notifications")

# Push services answer these for subscriptions that will never work again.
_GONE_STATUS_CODES = {404, 410}


class PushNotConfiguredError(RuntimeError):
	"""VAPID keys are missing, so nothing can be delivered."""


class NotificationService:
	def __init__(self, db: AsyncSession, settings: Settings | None = None):
		self.db = db
		self.settings = settings or get_settings()

	async def subscribe(
		self,
		user_id: uuid.UUID,
		payload: SubscriptionCreate,
	) -> tuple[PushSubscription, bool]:
		"""Upsert by endpoint; returns the row and whether it was newly created."""
		row = await self.db.execute(
			select(PushSubscription).where(PushSubscription.endpoint == payload.endpoint)
		)
		existing = row.scalar_one_or_none()
		if existing is not None:
			if existing.user_id != user_id:
				existing.user_id = user_id
			existing.p256dh = payload.keys.p256dh
			existing.auth = payload.keys.auth
			await self.db.flush()
			await self.db.refresh(existing)
			return existing, False

		subscription = PushSubscription(
			user_id=user_id,
			endpoint=payload.endpoint,
			p256dh=payload.keys.p256dh,
			auth=payload.keys.auth,
			user_agent=payload.user_agent,
			device_type=payload.device_type,
		)
		self.db.add(subscription)
		await self.db.flush()
		await self.db.refresh(subscription)
		return subscription, True

	async def list_subscriptions(self, user_id: uuid.UUID) -> list[PushSubscription]:
		rows = await self.db.execute(
			select(PushSubscription)
			.where(PushSubscription.user_id == user_id)
			.order_by(PushSubscription.created_at.desc())
		)
		return list(rows.scalars().all())

	async def unsubscribe(self, user_id: uuid.UUID, endpoint: str) -> None:
		await self.db.execute(
			delete(PushSubscription).where(
				PushSubscription.endpoint == endpoint,
				PushSubscription.user_id == user_id,
			)
		)

	async def send(
		self,
		sender_id: uuid.UUID,
		request: NotificationSendRequest,
	) -> NotificationSendReceipt:
		if not self.settings.push_configured:
			raise PushNotConfiguredError("VAPID keys are missing")

		target_id = request.target_user_id or sender_id
		subscriptions = await self.list_subscriptions(target_id)
		if not subscriptions:
			raise LookupError("No subscriptions found for user")

		payload = json.dumps(
			{
				"title": request.title,
				"body": request.message,
				"icon": request.icon or self.settings.push_default_icon,
				"badge": request.badge or self.settings.push_default_icon,
				"tag": request.tag,
				"data": {"url": request.url, "timestamp": int(time.time() * 1000)},
			}
		)

		outcomes = await asyncio.gather(
			*(self._deliver(subscription, payload) for subscription in subscriptions)
		)
		results = [result for result, _ in outcomes]
		for subscription, (_, gone) in zip(subscriptions, outcomes):
			if gone:
				await self.db.delete(subscription)
		successful = sum(1 for result in results if result.success)
		logger.info(
			"push_sent",
			target_user_id=str(target_id),
			total=len(results),
			successful=successful,
			tag=request.tag,
		)
		return NotificationSendReceipt(
			message="Notifications sent",
			stats=DeliveryStats(
				total=len(results),
				successful=successful,
				failed=len(results) - successful,
			),
			results=list(results),
		)

	async def send_low_moisture_alert(
		self,
		user_id: uuid.UUID,
		field_name: str,
		moisture: float,
	) -> NotificationSendReceipt:
		return await self.send(
			user_id,
			NotificationSendRequest(
				title="Low Moisture Alert",
				message=(
					f"{field_name} moisture level is at {moisture:g}%. "
					"Irrigation recommended."
				),
				tag="low-moisture",
			),
		)

	async def send_irrigation_complete(
		self,
		user_id: uuid.UUID,
		field_name: str,
	) -> NotificationSendReceipt:
		return await self.send(
			user_id,
			NotificationSendRequest(
				title="Irrigation Complete",
				message=f"{field_name} irrigation cycle has finished.",
				tag="irrigation-complete",
			),
		)

	async def _deliver(
		self,
		subscription: PushSubscription,
		payload: str,
	) -> tuple[DeliveryResult, bool]:
		try:
			await asyncio.to_thread(
				webpush,
				subscription_info=subscription.subscription_info(),
				data=payload,
				vapid_private_key=self.settings.vapid_private_key,
				vapid_claims={"sub": self.settings.vapid_email},
			)
		except WebPushException as exc:
			status_code = _status_code(exc)
			logger.warning(
				"push_delivery_failed",
				endpoint=subscription.endpoint,
				status_code=status_code,
				error=str(exc),
			)
			failed = DeliveryResult(endpoint=subscription.endpoint, success=False, error=str(exc))
			return failed, status_code in _GONE_STATUS_CODES
		except RequestException as exc:
			logger.warning(
				"push_transport_failed",
				endpoint=subscription.endpoint,
				error=str(exc),
			)
			return DeliveryResult(endpoint=subscription.endpoint, success=False, error=str(exc)), False
		return DeliveryResult(endpoint=subscription.endpoint, success=True), False


def _status_code(exc: WebPushException) -> int | None:
	response: Any = getattr(exc, "response", None)
	if response is None:
		return None
	return getattr(response, "status_code", None)
