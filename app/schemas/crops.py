"""Pydantic response schemas for the crop category reference table."""

from __future__ import annotations

from pydantic import BaseModel


class BandRead(BaseModel):
	min: float
	max: float
	unit: str


class SalinityLimitRead(BaseModel):
	max: float
	unit: str


class CropThresholdsRead(BaseModel):
	temperature: BandRead
	moisture: BandRead
	salinity: SalinityLimitRead


class CropCategoryRead(BaseModel):
	id: str
	name: str
	emoji: str
	description: str
	thresholds: CropThresholdsRead
	examples: list[str]


class CropCategoryListRead(BaseModel):
	items: list[CropCategoryRead]
