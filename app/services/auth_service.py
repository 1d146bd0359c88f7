"""User registration and credential checks."""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import hash_password, verify_password
from app.auth.jwt import AuthError
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest

logger = structlog.get_logger("fieldsense.auth")


class AuthService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def register(self, payload: RegisterRequest) -> User:
		email = payload.email.strip().lower()
		if await self._find_by_email(email) is not None:
			raise ValueError("User with this email already exists")

		user = User(
			email=email,
			hashed_password=hash_password(payload.password),
			name=payload.name.strip(),
			farm_name=payload.farm_name.strip() if payload.farm_name else None,
		)
		self.db.add(user)
		await self.db.flush()
		await self.db.refresh(user)
		logger.info("user_registered", user_id=str(user.id))
		return user

	async def authenticate(self, payload: LoginRequest) -> User:
		user = await self._find_by_email(payload.email.strip().lower())
		if user is None or not verify_password(payload.password, user.hashed_password):
			raise AuthError(code="credentials_invalid", detail="Invalid email or password")
		if not user.is_active:
			raise AuthError(code="user_invalid", detail="User is not active")
		return user

	async def _find_by_email(self, email: str) -> User | None:
		row = await self.db.execute(select(User).where(User.email == email))
		return row.scalar_one_or_none()
