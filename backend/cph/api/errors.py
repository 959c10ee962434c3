"""Global error handlers rendering ``{"error": ..., "request_id": ...}`` bodies."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cph.api.backend_error import backend_error_message
from cph.domain.exceptions import DomainError
from cph.infra.docstore import DocumentStoreError
from cph.obs import logging as obs_logging

LOGGER = logging.getLogger(__name__)


def get_request_id(request: Request) -> str:
	return getattr(request.state, "request_id", None) or obs_logging.current_request_id()


def error_response(request: Request, status_code: int, message: str, **extra: Any) -> JSONResponse:
	payload = {"error": message, "request_id": get_request_id(request), **extra}
	return JSONResponse(status_code=status_code, content=payload)


def first_validation_message(exc: RequestValidationError) -> str:
	errors = exc.errors()
	if not errors:
		return "Invalid payload"
	first = errors[0]
	if first.get("type") == "json_invalid":
		return "Invalid JSON body"
	message = str(first.get("msg") or "Invalid payload")
	for prefix in ("Value error, ", "Assertion failed, "):
		if message.startswith(prefix):
			return message[len(prefix):]
	return message


def install_error_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
		return error_response(request, exc.status_code, str(exc.detail))

	@app.exception_handler(RequestValidationError)
	async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
		return error_response(request, status.HTTP_400_BAD_REQUEST, first_validation_message(exc))

	@app.exception_handler(DomainError)
	async def domain_exc_handler(request: Request, exc: DomainError):  # type: ignore[override]
		return error_response(request, exc.status_code, exc.detail)

	@app.exception_handler(DocumentStoreError)
	async def docstore_exc_handler(request: Request, exc: DocumentStoreError):  # type: ignore[override]
		LOGGER.warning("docstore_request_failed", extra={"error_type": type(exc).__name__, "path": request.url.path})
		return error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, backend_error_message(exc))


__all__ = ["error_response", "first_validation_message", "get_request_id", "install_error_handlers"]
