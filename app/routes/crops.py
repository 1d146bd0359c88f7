"""Crop category reference routes (read-only)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from app.models.crops import DEFAULT_CROP_CATEGORIES, CropCategory
from app.schemas.crops import (
	BandRead,
	CropCategoryListRead,
	CropCategoryRead,
	CropThresholdsRead,
	SalinityLimitRead,
)

router = APIRouter(prefix="/crop-categories", tags=["crops"])


def _to_category_read(category: CropCategory) -> CropCategoryRead:
	thresholds = category.thresholds
	return CropCategoryRead(
		id=category.id,
		name=category.name,
		emoji=category.emoji,
		description=category.description,
		thresholds=CropThresholdsRead(
			temperature=BandRead(
				min=thresholds.temperature.min,
				max=thresholds.temperature.max,
				unit=thresholds.temperature_unit,
			),
			moisture=BandRead(
				min=thresholds.moisture.min,
				max=thresholds.moisture.max,
				unit=thresholds.moisture_unit,
			),
			salinity=SalinityLimitRead(
				max=thresholds.salinity_max,
				unit=thresholds.salinity_unit,
			),
		),
		examples=list(category.examples),
	)


@router.get("", response_model=CropCategoryListRead)
async def list_crop_categories() -> CropCategoryListRead:
	return CropCategoryListRead(
		items=[_to_category_read(category) for category in DEFAULT_CROP_CATEGORIES.values()]
	)


@router.get("/{category_id}", response_model=CropCategoryRead)
async def get_crop_category(category_id: str) -> CropCategoryRead:
	category = DEFAULT_CROP_CATEGORIES.get(category_id)
	if category is None:
		raise HTTPException(
			status_code=status.HTTP_404_NOT_FOUND,
			detail=f"Crop category {category_id} not found",
		)
	return _to_category_read(category)
