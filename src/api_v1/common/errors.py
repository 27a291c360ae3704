"""JSON API error envelope and exception handlers."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.config import settings

from .schemas import ErrorDetail, ErrorResponse, SimpleMeta

logger = logging.getLogger(__name__)

JSON_API_PATH_PREFIXES = (f"{settings.api_v1_prefix}/metrics",)


class JsonApiError(Exception):
    def __init__(self, status_code: int, code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


def _is_json_api_path(path: str) -> bool:
    return any(path.startswith(prefix) for prefix in JSON_API_PATH_PREFIXES)


async def json_api_error_handler(_: Request, exc: JsonApiError):
    error = ErrorDetail(code=exc.code, message=exc.message)
    body = ErrorResponse(meta=SimpleMeta(error=error))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    if not _is_json_api_path(request.url.path):
        return await request_validation_exception_handler(request, exc)
    logger.info("Request validation failed | path=%s | errors=%s", request.url.path, len(exc.errors()))
    error = ErrorDetail(code=4000, message="Validation error", details=jsonable_errors(exc))
    body = ErrorResponse(meta=SimpleMeta(error=error))
    return JSONResponse(status_code=422, content=body.model_dump())


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # pydantic puts the raw exception in ctx for some errors, which JSONResponse cannot encode
    errors = []
    for item in exc.errors():
        entry = dict(item)
        ctx = entry.get("ctx")
        if isinstance(ctx, dict):
            entry["ctx"] = {key: str(value) for key, value in ctx.items()}
        errors.append(entry)
    return errors
