"""structlog setup shared by app and library loggers, plus per-request logging."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import LogFormat, get_settings

REQUEST_ID_HEADER = "x-request-id"

# Library loggers that should render through the same pipeline as ours.
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine", "alembic")


def configure_structured_logging() -> None:
	"""Render structlog events and stdlib records with one formatter.

	Safe to call more than once: the root handler is replaced, not stacked.
	"""
	settings = get_settings()
	level = logging.getLevelName(settings.log_level.upper())
	if not isinstance(level, int):
		level = logging.INFO

	pre_chain: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.stdlib.add_logger_name,
		structlog.stdlib.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
	]
	renderer: Any = (
		structlog.processors.JSONRenderer()
		if settings.log_format == LogFormat.json
		else structlog.dev.ConsoleRenderer()
	)

	structlog.configure(
		processors=[
			*pre_chain,
			structlog.stdlib.filter_by_level,
			structlog.processors.StackInfoRenderer(),
			structlog.processors.format_exc_info,
			structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
		],
		wrapper_class=structlog.stdlib.BoundLogger,
		logger_factory=structlog.stdlib.LoggerFactory(),
		cache_logger_on_first_use=True,
	)

	handler = logging.StreamHandler()
	handler.setFormatter(
		structlog.stdlib.ProcessorFormatter(
			foreign_pre_chain=pre_chain,
			processors=[
				structlog.stdlib.ProcessorFormatter.remove_processors_meta,
				renderer,
			],
		)
	)
	root = logging.getLogger()
	root.handlers = [handler]
	root.setLevel(level)

	for name in _ROUTED_LOGGERS:
		library_logger = logging.getLogger(name)
		library_logger.handlers = []
		library_logger.propagate = True
	# Request lines come from RequestLoggingMiddleware instead.
	logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def level_for_status(status_code: int) -> int:
	if status_code >= 500:
		return logging.ERROR
	if status_code >= 400:
		return logging.WARNING
	return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request context for the whole call and log one line when it ends."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(
			request_id=request_id,
			method=request.method,
			path=request.url.path,
		)
		logger = structlog.get_logger("fieldsense.request")
		started = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception:
			logger.exception("http_request_failed", duration_ms=_elapsed_ms(started))
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		logger.log(
			level_for_status(response.status_code),
			"http_request",
			status_code=response.status_code,
			duration_ms=_elapsed_ms(started),
			client=request.client.host if request.client else None,
		)
		return response


def _elapsed_ms(start: float) -> float:
	return round((time.perf_counter() - start) * 1000.0, 2)
