"""Registration, login, logout and current-user routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import (
	clear_session_cookie,
	get_current_user,
	set_session_cookie,
)
from app.auth.jwt import AuthError, create_session_token
from app.database import get_db
from app.models.user import User
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserRead
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, AuthError):
		return HTTPException(
			status_code=exc.status_code,
			detail={"error": exc.code, "message": exc.detail},
		)
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="auth failure")


def _issue_session(response: Response, user: User) -> None:
	token = create_session_token(str(user.id), email=user.email)
	set_session_cookie(response, token)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
	payload: RegisterRequest,
	response: Response,
	db: AsyncSession = Depends(get_db),
) -> AuthResponse:
	service = AuthService(db)
	try:
		user = await service.register(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	_issue_session(response, user)
	return AuthResponse(message="User registered successfully", user=UserRead.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
	payload: LoginRequest,
	response: Response,
	db: AsyncSession = Depends(get_db),
) -> AuthResponse:
	service = AuthService(db)
	try:
		user = await service.authenticate(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	_issue_session(response, user)
	return AuthResponse(message="Login successful", user=UserRead.model_validate(user))


@router.post("/logout")
async def logout(response: Response) -> dict[str, str]:
	clear_session_cookie(response)
	return {"message": "Logged out"}


@router.get("/me", response_model=UserRead)
async def me(user: User = Depends(get_current_user)) -> UserRead:
	return UserRead.model_validate(user)
