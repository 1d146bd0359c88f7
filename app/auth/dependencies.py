"""Authentication dependencies: session cookie resolution and password hashing."""

from __future__ import annotations

import re
import uuid

from fastapi import Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import AuthError, decode_session_token
from app.config import get_settings
from app.database import get_db
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_FIELD_PATH = re.compile(r"/api/v1/fields/([0-9a-fA-F\-]{36})(?:/|$)")


def _raise_auth(exc: AuthError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"error": exc.code, "message": exc.detail},
	)


def hash_password(plaintext: str) -> str:
	return pwd_context.hash(plaintext)


def verify_password(plaintext: str, hashed: str) -> bool:
	try:
		return pwd_context.verify(plaintext, hashed)
	except ValueError:
		return False


def set_session_cookie(response: Response, token: str) -> None:
	settings = get_settings()
	response.set_cookie(
		key=settings.session_cookie_name,
		value=token,
		max_age=settings.session_cookie_max_age_seconds,
		httponly=True,
		secure=settings.is_production,
		samesite="lax",
	)


def clear_session_cookie(response: Response) -> None:
	settings = get_settings()
	response.delete_cookie(
		key=settings.session_cookie_name,
		httponly=True,
		secure=settings.is_production,
		samesite="lax",
	)


def extract_request_field_id(request: Request) -> uuid.UUID | None:
	token = request.path_params.get("field_id")
	if token is not None:
		try:
			return uuid.UUID(str(token))
		except ValueError:
			return None

	match = _FIELD_PATH.search(request.url.path)
	if match is None:
		return None
	try:
		return uuid.UUID(match.group(1))
	except ValueError:
		return None


def extract_rate_limit_identity(request: Request) -> str:
	"""Bucket key for the caller: the verified token subject, else ``anonymous``.

	Only the signature and expiry are checked here; the user row is not loaded.
	"""
	settings = get_settings()
	token = request.cookies.get(settings.session_cookie_name)
	if not token:
		scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
		if scheme.lower() == "bearer" and credentials:
			token = credentials
	if not token:
		return "anonymous"
	try:
		payload = decode_session_token(token)
	except AuthError:
		return "anonymous"
	return f"user:{payload['sub']}"


async def _session_token(request: Request) -> str | None:
	settings = get_settings()
	cookie = request.cookies.get(settings.session_cookie_name)
	if cookie:
		return cookie
	credentials: HTTPAuthorizationCredentials | None = await bearer_scheme(request)
	if credentials is not None and credentials.scheme.lower() == "bearer":
		return credentials.credentials
	return None


async def resolve_user_from_token(db: AsyncSession, token: str) -> User:
	payload = decode_session_token(token)
	try:
		user_id = uuid.UUID(str(payload["sub"]))
	except (ValueError, KeyError) as exc:
		raise AuthError(code="token_invalid", detail="Token subject is invalid") from exc

	row = await db.execute(select(User).where(User.id == user_id))
	user = row.scalar_one_or_none()
	if user is None or not user.is_active:
		raise AuthError(code="user_invalid", detail="User is not active")
	return user


async def get_current_user(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> User:
	token = await _session_token(request)
	if token is None:
		raise _raise_auth(AuthError(code="auth_required", detail="Session is required"))
	try:
		return await resolve_user_from_token(db, token)
	except AuthError as exc:
		raise _raise_auth(exc) from exc
