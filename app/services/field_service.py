"""Field CRUD, status recomputation and change broadcasting."""

from __future__ import annotations

import json
import random
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from geoalchemy2 import WKTElement
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.crops import DEFAULT_CROP_CATEGORIES, CropCategory
from app.models.enums import FieldStatusEnum
from app.models.field import Field
from app.schemas.field import FieldCreate, FieldSummaryRead, FieldUpdate
from app.services.field_status import SensorReading, StatusEvaluation, evaluate
from app.services.notification_service import NotificationService, PushNotConfiguredError

logger = structlog.get_logger("fieldsense.fields")

_SENSOR_COLUMNS = ("moisture", "temperature", "salinity")
_IRRIGATION_COLUMNS = {
	"is_active": "irrigation_active",
	"total_minutes": "total_minutes",
	"remaining_minutes": "remaining_minutes",
	"flow_rate": "flow_rate",
	"last_irrigation": "last_irrigation",
	"last_fertigation": "last_fertigation",
}


def live_channel(user_id: uuid.UUID) -> str:
	return f"user:{user_id}:fields"


def simulate_reading(rng: random.Random | None = None) -> SensorReading:
	"""Plausible starting values for a field that has no sensor attached yet."""
	rng = rng or random.Random()
	return SensorReading(
		moisture=float(rng.randint(50, 79)),
		temperature=float(rng.randint(20, 29)),
		salinity=round(rng.uniform(0.5, 2.0), 2),
	)


def polygon_wkt(coordinates: list[list[float]]) -> str:
	ring = [list(point) for point in coordinates]
	if ring[0] != ring[-1]:
		ring.append(ring[0])
	points = ", ".join(f"{lng} {lat}" for lng, lat in ring)
	return f"POLYGON(({points}))"


def evaluate_field(
	field: Field,
	categories: Mapping[str, CropCategory] = DEFAULT_CROP_CATEGORIES,
) -> StatusEvaluation:
	reading = SensorReading(
		moisture=float(field.moisture),
		temperature=float(field.temperature),
		salinity=float(field.salinity),
	)
	return evaluate(field.crop_category, reading, bool(field.irrigation_active), categories)


class FieldService:
	"""Service for a user's fields; every query is scoped to ``user_id``."""

	def __init__(
		self,
		db: AsyncSession,
		redis_client: Redis | None = None,
		notifier: NotificationService | None = None,
		categories: Mapping[str, CropCategory] = DEFAULT_CROP_CATEGORIES,
	):
		self.db = db
		self.redis_client = redis_client
		self.notifier = notifier
		self.categories = categories

	async def list_fields(self, user_id: uuid.UUID) -> list[Field]:
		stmt = (
			select(Field)
			.where(Field.user_id == user_id)
			.order_by(Field.created_at.desc())
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def get_field(self, user_id: uuid.UUID, field_id: uuid.UUID) -> Field:
		stmt = select(Field).where(Field.id == field_id, Field.user_id == user_id)
		row = await self.db.execute(stmt)
		field = row.scalar_one_or_none()
		if field is None:
			raise LookupError(f"Field {field_id} not found")
		return field

	async def create_field(
		self,
		user_id: uuid.UUID,
		payload: FieldCreate,
		rng: random.Random | None = None,
	) -> Field:
		reading = simulate_reading(rng) if get_settings().simulate_sensor_data else SensorReading(0.0, 20.0, 0.0)
		field = Field(
			user_id=user_id,
			name=payload.name,
			crop=payload.crop,
			crop_category=payload.crop_category,
			area=payload.area,
			color=payload.color,
			coordinates=payload.coordinates,
			boundary=WKTElement(polygon_wkt(payload.coordinates), srid=4326),
			moisture=reading.moisture,
			temperature=reading.temperature,
			salinity=reading.salinity,
			sensor_updated_at=datetime.now(UTC),
			irrigation_active=False,
			total_minutes=60.0,
			remaining_minutes=0.0,
			flow_rate=2.5,
		)
		evaluation = self._apply_status(field)
		self.db.add(field)
		await self.db.flush()
		await self.db.refresh(field)
		logger.info(
			"field_created",
			field_id=str(field.id),
			crop_category=field.crop_category,
			status=evaluation.status.value,
		)
		await self._publish(user_id, "field_created", field, evaluation, previous=None)
		return field

	async def update_field(
		self,
		user_id: uuid.UUID,
		field_id: uuid.UUID,
		payload: FieldUpdate,
	) -> Field:
		field = await self.get_field(user_id, field_id)
		previous_status = FieldStatusEnum(field.status)
		was_irrigating = bool(field.irrigation_active)

		for attr in ("name", "crop", "color"):
			value = getattr(payload, attr)
			if value is not None:
				setattr(field, attr, value)
		# An explicit null clears the category; an omitted key leaves it alone.
		if "crop_category" in payload.model_fields_set:
			field.crop_category = payload.crop_category

		if payload.sensor_data is not None:
			changes = payload.sensor_data.model_dump(exclude_none=True)
			for column in _SENSOR_COLUMNS:
				if column in changes:
					setattr(field, column, changes[column])
			if changes:
				field.sensor_updated_at = datetime.now(UTC)

		if payload.irrigation is not None:
			changes = payload.irrigation.model_dump(exclude_none=True)
			for key, column in _IRRIGATION_COLUMNS.items():
				if key in changes:
					setattr(field, column, changes[key])
			if changes.get("is_active") is True and not was_irrigating and "last_irrigation" not in changes:
				field.last_irrigation = datetime.now(UTC)

		self._validate_irrigation(field)
		evaluation = self._apply_status(field)
		await self.db.flush()
		await self.db.refresh(field)

		if evaluation.status != previous_status:
			logger.info(
				"field_status_changed",
				field_id=str(field.id),
				previous=previous_status.value,
				status=evaluation.status.value,
			)
		await self._publish(user_id, "field_updated", field, evaluation, previous=previous_status)
		await self._notify_transitions(user_id, field, evaluation, previous_status, was_irrigating)
		return field

	async def delete_field(self, user_id: uuid.UUID, field_id: uuid.UUID) -> None:
		field = await self.get_field(user_id, field_id)
		await self.db.delete(field)
		await self.db.flush()
		logger.info("field_deleted", field_id=str(field_id))
		if self.redis_client is not None:
			await self.redis_client.publish(
				live_channel(user_id),
				json.dumps({"event_type": "field_deleted", "field_id": str(field_id)}),
			)

	async def get_status(self, user_id: uuid.UUID, field_id: uuid.UUID) -> tuple[Field, StatusEvaluation]:
		"""Recompute from the stored inputs; the cached ``status`` column is not trusted."""
		field = await self.get_field(user_id, field_id)
		return field, evaluate_field(field, self.categories)

	async def summarize(self, user_id: uuid.UUID) -> FieldSummaryRead:
		fields = await self.list_fields(user_id)
		counts = {status: 0 for status in FieldStatusEnum}
		for field in fields:
			counts[evaluate_field(field, self.categories).status] += 1

		average_moisture = None
		if fields:
			average_moisture = round(sum(float(f.moisture) for f in fields) / len(fields), 2)

		return FieldSummaryRead(
			total_fields=len(fields),
			total_area=round(sum(float(f.area) for f in fields), 2),
			status_counts=counts,
			average_moisture=average_moisture,
			active_irrigations=sum(1 for f in fields if f.irrigation_active),
		)

	def _apply_status(self, field: Field) -> StatusEvaluation:
		evaluation = evaluate_field(field, self.categories)
		field.status = evaluation.status
		return evaluation

	@staticmethod
	def _validate_irrigation(field: Field) -> None:
		if field.remaining_minutes > field.total_minutes:
			raise ValueError("remaining_minutes cannot exceed total_minutes")

	async def _publish(
		self,
		user_id: uuid.UUID,
		event_type: str,
		field: Field,
		evaluation: StatusEvaluation,
		previous: FieldStatusEnum | None,
	) -> None:
		if self.redis_client is None:
			return
		payload: dict[str, Any] = {
			"event_type": event_type,
			"field_id": str(field.id),
			"status": evaluation.status.value,
			"color": evaluation.color,
			"previous_status": previous.value if previous is not None else None,
			"moisture": float(field.moisture),
			"irrigation_active": bool(field.irrigation_active),
			"published_at": datetime.now(UTC).isoformat(),
		}
		await self.redis_client.publish(live_channel(user_id), json.dumps(payload))

	async def _notify_transitions(
		self,
		user_id: uuid.UUID,
		field: Field,
		evaluation: StatusEvaluation,
		previous: FieldStatusEnum,
		was_irrigating: bool,
	) -> None:
		if self.notifier is None:
			return
		try:
			if evaluation.moisture_low and previous != FieldStatusEnum.needs_irrigation:
				await self.notifier.send_low_moisture_alert(user_id, field.name, float(field.moisture))
			if was_irrigating and not field.irrigation_active:
				await self.notifier.send_irrigation_complete(user_id, field.name)
		except (PushNotConfiguredError, LookupError) as exc:
			logger.info("field_alert_skipped", field_id=str(field.id), reason=str(exc))
