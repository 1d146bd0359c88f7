"""Field CRUD and status routes."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.field import (
	FieldCreate,
	FieldListRead,
	FieldRead,
	FieldStatusRead,
	FieldSummaryRead,
	FieldUpdate,
	IrrigationRead,
	SensorDataRead,
	ThresholdCheck,
)
from app.services.field_service import FieldService
from app.services.field_status import STATUS_LABELS, StatusEvaluation, UnknownStatusError, color_for
from app.services.notification_service import NotificationService

router = APIRouter(prefix="/fields", tags=["fields"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, UnknownStatusError):
		return HTTPException(
			status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
			detail="Field status is corrupt",
		)
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected field service failure",
	)


def _service(request: Request, db: AsyncSession) -> FieldService:
	return FieldService(
		db,
		redis_client=getattr(request.app.state, "redis", None),
		notifier=NotificationService(db),
	)


def _progress_pct(total: float, remaining: float) -> float:
	if total <= 0:
		return 0.0
	return round(max(0.0, min(100.0, (total - remaining) / total * 100.0)), 1)


def _to_field_read(field: Any) -> FieldRead:
	return FieldRead(
		id=field.id,
		user_id=field.user_id,
		name=field.name,
		crop=field.crop,
		crop_category=field.crop_category,
		area=field.area,
		color=field.color,
		coordinates=field.coordinates,
		sensor_data=SensorDataRead(
			moisture=field.moisture,
			temperature=field.temperature,
			salinity=field.salinity,
			last_updated=field.sensor_updated_at,
		),
		irrigation=IrrigationRead(
			is_active=field.irrigation_active,
			total_minutes=field.total_minutes,
			remaining_minutes=field.remaining_minutes,
			flow_rate=field.flow_rate,
			progress_pct=_progress_pct(field.total_minutes, field.remaining_minutes),
			last_irrigation=field.last_irrigation,
			last_fertigation=field.last_fertigation,
		),
		status=field.status,
		status_color=color_for(field.status),
		created_at=field.created_at,
		updated_at=field.updated_at,
	)


def _to_status_read(field: Any, evaluation: StatusEvaluation) -> FieldStatusRead:
	checks: dict[str, ThresholdCheck] = {}
	category = evaluation.category
	if category is not None:
		thresholds = category.thresholds
		checks["temperature"] = ThresholdCheck(
			ok=bool(evaluation.temperature_ok),
			value=field.temperature,
			min=thresholds.temperature.min,
			max=thresholds.temperature.max,
			unit=thresholds.temperature_unit,
		)
		checks["moisture"] = ThresholdCheck(
			ok=bool(evaluation.moisture_ok),
			value=field.moisture,
			min=thresholds.moisture.min,
			max=thresholds.moisture.max,
			unit=thresholds.moisture_unit,
		)
		checks["salinity"] = ThresholdCheck(
			ok=bool(evaluation.salinity_ok),
			value=field.salinity,
			max=thresholds.salinity_max,
			unit=thresholds.salinity_unit,
		)
	return FieldStatusRead(
		field_id=field.id,
		status=evaluation.status,
		label=STATUS_LABELS[evaluation.status],
		color=evaluation.color,
		crop_category=category.id if category is not None else None,
		checks=checks,
		evaluated_at=datetime.now(UTC),
	)


@router.get("", response_model=FieldListRead)
async def list_fields(
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldListRead:
	service = _service(request, db)
	try:
		fields = await service.list_fields(user.id)
		return FieldListRead(items=[_to_field_read(field) for field in fields])
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("", response_model=FieldRead, status_code=status.HTTP_201_CREATED)
async def create_field(
	payload: FieldCreate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldRead:
	service = _service(request, db)
	try:
		field = await service.create_field(user.id, payload)
		return _to_field_read(field)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/summary", response_model=FieldSummaryRead)
async def get_summary(
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldSummaryRead:
	service = _service(request, db)
	try:
		return await service.summarize(user.id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{field_id}", response_model=FieldRead)
async def get_field(
	field_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldRead:
	service = _service(request, db)
	try:
		field = await service.get_field(user.id, field_id)
		return _to_field_read(field)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.patch("/{field_id}", response_model=FieldRead)
async def update_field(
	field_id: uuid.UUID,
	payload: FieldUpdate,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldRead:
	service = _service(request, db)
	try:
		field = await service.update_field(user.id, field_id, payload)
		return _to_field_read(field)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_field(
	field_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> Response:
	service = _service(request, db)
	try:
		await service.delete_field(user.id, field_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{field_id}/status", response_model=FieldStatusRead)
async def get_field_status(
	field_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> FieldStatusRead:
	service = _service(request, db)
	try:
		field, evaluation = await service.get_status(user.id, field_id)
		return _to_status_read(field, evaluation)
	except Exception as exc:
		raise _map_error(exc) from exc
