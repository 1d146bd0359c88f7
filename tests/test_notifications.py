from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import pytest
import requests
from httpx import AsyncClient
from pywebpush import WebPushException

from app.config import Settings
from app.models.push import PushSubscription
from app.schemas.notifications import NotificationSendRequest, SubscriptionCreate, SubscriptionKeys
from app.services import notification_service
from app.services.notification_service import NotificationService, PushNotConfiguredError


def _configured_settings() -> Settings:
    return Settings(
        vapid_public_key="test-public-key",
        vapid_private_key="test-private-key",
        vapid_email="mailto:ops@example.com",
    )


def _subscription(user_id: uuid.UUID, endpoint: str) -> PushSubscription:
    return PushSubscription(
        id=uuid.uuid4(),
        user_id=user_id,
        endpoint=endpoint,
        p256dh="p256dh-key",
        auth="auth-secret",
    )


@pytest.mark.asyncio
async def test_send_without_vapid_keys_returns_503(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(notification_service, "get_settings", lambda: Settings(vapid_public_key="", vapid_private_key=""))

    response = await client.post(
        "/api/v1/notifications/send",
        json={"title": "Hello", "message": "World"},
    )
    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "push_not_configured"


@pytest.mark.asyncio
async def test_send_without_subscriptions_returns_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(notification_service, "get_settings", _configured_settings)

    response = await client.post(
        "/api/v1/notifications/send",
        json={"title": "Hello", "message": "World"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_subscribe_route_reports_creation(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_subscribe(self: NotificationService, user_id: uuid.UUID, payload: SubscriptionCreate) -> Any:
        now = datetime.now(UTC)
        row = SimpleNamespace(
            id=uuid.uuid4(),
            endpoint=payload.endpoint,
            user_agent=payload.user_agent,
            device_type=payload.device_type,
            created_at=now,
            updated_at=now,
        )
        return row, True

    monkeypatch.setattr(NotificationService, "subscribe", fake_subscribe)

    response = await client.post(
        "/api/v1/notifications/subscribe",
        json={
            "endpoint": "https://push.example.com/abc",
            "keys": {"p256dh": "key", "auth": "secret"},
            "device_type": "mobile",
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["created"] is True
    assert body["subscription"]["device_type"] == "mobile"


@pytest.mark.asyncio
async def test_subscribe_rejects_missing_keys(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/notifications/subscribe",
        json={"endpoint": "https://push.example.com/abc"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unsubscribe_route(client: AsyncClient, fake_db_session: Any) -> None:
    response = await client.request(
        "DELETE",
        "/api/v1/notifications/subscribe",
        json={"endpoint": "https://push.example.com/abc"},
    )
    assert response.status_code == 200
    fake_db_session.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_subscribe_creates_new_row(fake_db_session: Any) -> None:
    service = NotificationService(fake_db_session, settings=_configured_settings())
    payload = SubscriptionCreate(
        endpoint="https://push.example.com/new",
        keys=SubscriptionKeys(p256dh="key", auth="secret"),
        user_agent="Mozilla/5.0",
    )

    row, created = await service.subscribe(uuid.uuid4(), payload)

    assert created is True
    fake_db_session.add.assert_called_once_with(row)
    assert row.subscription_info() == {
        "endpoint": "https://push.example.com/new",
        "keys": {"p256dh": "key", "auth": "secret"},
    }


@pytest.mark.asyncio
async def test_subscribe_existing_endpoint_is_reowned(fake_db_session: Any, make_result: Any) -> None:
    original_owner = uuid.uuid4()
    new_owner = uuid.uuid4()
    existing = _subscription(original_owner, "https://push.example.com/shared")
    fake_db_session.execute.return_value = make_result([existing])
    service = NotificationService(fake_db_session, settings=_configured_settings())

    row, created = await service.subscribe(
        new_owner,
        SubscriptionCreate(
            endpoint="https://push.example.com/shared",
            keys=SubscriptionKeys(p256dh="rotated", auth="rotated-secret"),
        ),
    )

    assert created is False
    assert row is existing
    assert row.user_id == new_owner
    assert row.p256dh == "rotated"
    fake_db_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_send_not_configured_raises(fake_db_session: Any) -> None:
    service = NotificationService(fake_db_session, settings=Settings(vapid_public_key="", vapid_private_key=""))
    with pytest.raises(PushNotConfiguredError):
        await service.send(uuid.uuid4(), NotificationSendRequest(title="t", message="m"))


@pytest.mark.asyncio
async def test_send_drops_gone_subscriptions(
    fake_db_session: Any,
    make_result: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    user_id = uuid.uuid4()
    alive = _subscription(user_id, "https://push.example.com/alive")
    gone = _subscription(user_id, "https://push.example.com/gone")
    fake_db_session.execute.return_value = make_result([alive, gone])
    calls: list[dict[str, Any]] = []

    def fake_webpush(**kwargs: Any) -> None:
        calls.append(kwargs)
        if kwargs["subscription_info"]["endpoint"].endswith("/gone"):
            raise WebPushException("Push failed: 410 Gone", response=SimpleNamespace(status_code=410))

    monkeypatch.setattr(notification_service, "webpush", fake_webpush)
    service = NotificationService(fake_db_session, settings=_configured_settings())

    receipt = await service.send(
        user_id,
        NotificationSendRequest(title="Low Moisture Alert", message="North is dry", tag="low-moisture"),
    )

    assert receipt.stats.total == 2
    assert receipt.stats.successful == 1
    assert receipt.stats.failed == 1
    fake_db_session.delete.assert_awaited_once_with(gone)

    assert len(calls) == 2
    assert calls[0]["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert calls[0]["vapid_private_key"] == "test-private-key"
    body = json.loads(calls[0]["data"])
    assert body["title"] == "Low Moisture Alert"
    assert body["tag"] == "low-moisture"
    assert body["icon"] == "/icon-192x192.png"


@pytest.mark.asyncio
async def test_send_keeps_subscription_on_transient_failure(
    fake_db_session: Any,
    make_result: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    user_id = uuid.uuid4()
    flaky = _subscription(user_id, "https://push.example.com/flaky")
    fake_db_session.execute.return_value = make_result([flaky])

    def fake_webpush(**kwargs: Any) -> None:
        raise WebPushException("Push failed: 500", response=SimpleNamespace(status_code=500))

    monkeypatch.setattr(notification_service, "webpush", fake_webpush)
    service = NotificationService(fake_db_session, settings=_configured_settings())

    receipt = await service.send(user_id, NotificationSendRequest(title="t", message="m"))

    assert receipt.stats.failed == 1
    assert receipt.results[0].error is not None
    fake_db_session.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_survives_transport_error_on_one_endpoint(
    fake_db_session: Any,
    make_result: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    user_id = uuid.uuid4()
    laptop = _subscription(user_id, "https://push.example.com/laptop")
    phone = _subscription(user_id, "https://push.example.com/phone")
    fake_db_session.execute.return_value = make_result([laptop, phone])

    def fake_webpush(**kwargs: Any) -> None:
        if kwargs["subscription_info"]["endpoint"].endswith("/phone"):
            raise requests.exceptions.Timeout("read timed out")

    monkeypatch.setattr(notification_service, "webpush", fake_webpush)
    service = NotificationService(fake_db_session, settings=_configured_settings())

    receipt = await service.send(user_id, NotificationSendRequest(title="t", message="m"))

    assert receipt.stats.total == 2
    assert receipt.stats.successful == 1
    assert receipt.stats.failed == 1
    failed = next(result for result in receipt.results if not result.success)
    assert failed.endpoint == "https://push.example.com/phone"
    assert "timed out" in (failed.error or "")
    fake_db_session.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_irrigation_complete_message(
    fake_db_session: Any,
    make_result: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    user_id = uuid.uuid4()
    fake_db_session.execute.return_value = make_result([_subscription(user_id, "https://push.example.com/a")])
    sent: list[str] = []
    monkeypatch.setattr(notification_service, "webpush", lambda **kwargs: sent.append(kwargs["data"]))
    service = NotificationService(fake_db_session, settings=_configured_settings())

    receipt = await service.send_irrigation_complete(user_id, "South Field")

    assert receipt.stats.successful == 1
    body = json.loads(sent[0])
    assert body["title"] == "Irrigation Complete"
    assert body["body"] == "South Field irrigation cycle has finished."
