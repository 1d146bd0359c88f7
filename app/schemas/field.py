"""Pydantic request/response schemas for fields and their status."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import FieldStatusEnum

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


def _validate_polygon(value: list[list[float]]) -> list[list[float]]:
	for point in value:
		if len(point) != 2:
			raise ValueError("each coordinate must be a [lng, lat] pair")
		lng, lat = point
		if not -180.0 <= lng <= 180.0 or not -90.0 <= lat <= 90.0:
			raise ValueError("coordinate out of range")
	ring = [tuple(point) for point in value]
	if ring[0] == ring[-1]:
		ring = ring[:-1]
	if len(set(ring)) < 3:
		raise ValueError("polygon needs at least 3 distinct vertices")
	return value


class FieldCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	crop: str = Field(min_length=1, max_length=100)
	crop_category: str | None = Field(default=None, min_length=1, max_length=50)
	area: float = Field(ge=0.1)
	color: str = Field(default="#22c55e", pattern=HEX_COLOR_PATTERN)
	coordinates: list[list[float]] = Field(min_length=3)

	@field_validator("name", "crop")
	@classmethod
	def _strip(cls, value: str) -> str:
		stripped = value.strip()
		if not stripped:
			raise ValueError("must not be blank")
		return stripped

	@field_validator("coordinates")
	@classmethod
	def _check_polygon(cls, value: list[list[float]]) -> list[list[float]]:
		return _validate_polygon(value)


class SensorDataUpdate(BaseModel):
	moisture: float | None = Field(default=None, ge=0, le=100)
	temperature: float | None = None
	salinity: float | None = Field(default=None, ge=0)


class IrrigationUpdate(BaseModel):
	is_active: bool | None = None
	total_minutes: float | None = Field(default=None, ge=0)
	remaining_minutes: float | None = Field(default=None, ge=0)
	flow_rate: float | None = Field(default=None, ge=0)
	last_irrigation: datetime | None = None
	last_fertigation: datetime | None = None


class FieldUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=255)
	crop: str | None = Field(default=None, min_length=1, max_length=100)
	crop_category: str | None = Field(default=None, min_length=1, max_length=50)
	color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
	sensor_data: SensorDataUpdate | None = None
	irrigation: IrrigationUpdate | None = None


class SensorDataRead(BaseModel):
	moisture: float
	temperature: float
	salinity: float
	last_updated: datetime


class IrrigationRead(BaseModel):
	is_active: bool
	total_minutes: float
	remaining_minutes: float
	flow_rate: float
	progress_pct: float
	last_irrigation: datetime | None = None
	last_fertigation: datetime | None = None


class FieldRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	user_id: uuid.UUID
	name: str
	crop: str
	crop_category: str | None = None
	area: float
	color: str
	coordinates: list[list[float]]
	sensor_data: SensorDataRead
	irrigation: IrrigationRead
	status: FieldStatusEnum
	status_color: str
	created_at: datetime
	updated_at: datetime


class FieldListRead(BaseModel):
	items: list[FieldRead]


class ThresholdCheck(BaseModel):
	ok: bool
	value: float
	min: float | None = None
	max: float | None = None
	unit: str


class FieldStatusRead(BaseModel):
	field_id: uuid.UUID
	status: FieldStatusEnum
	label: str
	color: str
	crop_category: str | None = None
	checks: dict[str, ThresholdCheck] = Field(default_factory=dict)
	evaluated_at: datetime


class FieldSummaryRead(BaseModel):
	total_fields: int
	total_area: float
	status_counts: dict[FieldStatusEnum, int]
	average_moisture: float | None = None
	active_irrigations: int
