"""Web-push subscription and delivery routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.notifications import (
	NotificationSendReceipt,
	NotificationSendRequest,
	SubscriptionCreate,
	SubscriptionDelete,
	SubscriptionListRead,
	SubscriptionRead,
	SubscriptionReceipt,
)
from app.services.notification_service import NotificationService, PushNotConfiguredError

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, PushNotConfiguredError):
		return HTTPException(
			status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
			detail={"error": "push_not_configured", "message": str(exc)},
		)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="notification failure")


@router.post("/subscribe", response_model=SubscriptionReceipt)
async def subscribe(
	payload: SubscriptionCreate,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> SubscriptionReceipt:
	service = NotificationService(db)
	try:
		subscription, created = await service.subscribe(user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SubscriptionReceipt(
		message="Subscription created successfully" if created else "Subscription already exists",
		created=created,
		subscription=SubscriptionRead.model_validate(subscription),
	)


@router.get("/subscribe", response_model=SubscriptionListRead)
async def list_subscriptions(
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> SubscriptionListRead:
	service = NotificationService(db)
	try:
		subscriptions = await service.list_subscriptions(user.id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SubscriptionListRead(
		items=[SubscriptionRead.model_validate(item) for item in subscriptions]
	)


@router.delete("/subscribe")
async def unsubscribe(
	payload: SubscriptionDelete,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> dict[str, str]:
	service = NotificationService(db)
	try:
		await service.unsubscribe(user.id, payload.endpoint)
	except Exception as exc:
		raise _map_error(exc) from exc
	return {"message": "Subscription deleted successfully"}


@router.post("/send", response_model=NotificationSendReceipt)
async def send_notification(
	payload: NotificationSendRequest,
	db: AsyncSession = Depends(get_db),
	user: User = Depends(get_current_user),
) -> NotificationSendReceipt:
	service = NotificationService(db)
	try:
		return await service.send(user.id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
