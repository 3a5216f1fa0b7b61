from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.economy.errors import EngineError

logger = structlog.get_logger(__name__)


def error_body(*, code: str, message: str) -> dict[str, Any]:
    return {"success": False, "code": code, "message": message}


def success_body(*, message: str, data: Any = None) -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Request validation failed"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = first.get("msg", "invalid value")
    return f"{location}: {detail}" if location else str(detail)


async def handle_engine_error(request: Request, exc: EngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code, exc_info=exc)
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=error_body(code=exc.code, message=exc.message))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(code="E_VALIDATION", message=_validation_message(exc)),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(code="E_INTERNAL", message="Internal error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EngineError, handle_engine_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
