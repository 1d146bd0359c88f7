"""Pydantic schemas for registration, login and the current user."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
	email: EmailStr
	password: str = Field(min_length=6, max_length=128)
	name: str = Field(min_length=2, max_length=255)
	farm_name: str | None = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
	email: EmailStr
	password: str = Field(min_length=1, max_length=128)


class UserRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	email: str
	name: str
	farm_name: str | None = None
	created_at: datetime | None = None


class AuthResponse(BaseModel):
	message: str
	user: UserRead
