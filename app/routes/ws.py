"""WebSocket live feed of field status events."""

from __future__ import annotations

import asyncio
import json
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.auth.dependencies import resolve_user_from_token
from app.auth.jwt import AuthError
from app.config import get_settings
from app.database import async_session_factory
from app.services.field_service import live_channel

router = APIRouter(tags=["websocket"])


async def _authenticate_token(token: str) -> uuid.UUID | None:
	async with async_session_factory() as session:
		try:
			user = await resolve_user_from_token(session, token)
		except AuthError:
			return None
		return user.id


@router.websocket("/ws/fields/live")
async def ws_field_feed(websocket: WebSocket) -> None:
	await websocket.accept()

	token = websocket.query_params.get("token") or websocket.cookies.get(
		get_settings().session_cookie_name
	)
	if token is None or not token.strip():
		await websocket.send_json({"error": "auth_required"})
		await websocket.close(code=1008)
		return

	user_id = await _authenticate_token(token.strip())
	if user_id is None:
		await websocket.send_json({"error": "auth_invalid"})
		await websocket.close(code=1008)
		return

	redis_client = getattr(websocket.app.state, "redis", None)
	if redis_client is None:
		await websocket.send_json({"error": "redis_unavailable"})
		await websocket.close(code=1011)
		return

	channel = live_channel(user_id)
	pubsub = redis_client.pubsub()
	await pubsub.subscribe(channel)

	try:
		while True:
			message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
			if message is not None and message.get("type") == "message":
				payload = message.get("data")
				if isinstance(payload, bytes):
					payload = payload.decode("utf-8")
				if isinstance(payload, str):
					try:
						await websocket.send_json(json.loads(payload))
					except json.JSONDecodeError:
						await websocket.send_text(payload)
			await asyncio.sleep(0.05)
	except WebSocketDisconnect:
		return
	finally:
		await pubsub.unsubscribe(channel)
		await pubsub.close()
