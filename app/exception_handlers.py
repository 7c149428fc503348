from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.errors import AppError
from tablesync.errors.exceptions import WorkflowError


def _error_response(
    request: Request,
    *,
    status: int,
    code: str,
    message: str,
    retryable: bool,
    details: Optional[List[str]],
    extra: Dict[str, Any],
) -> JSONResponse:
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    payload = {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "retryable": retryable,
            "request_id": request_id,
            "extra": extra,
        }
    }

    headers = {"X-Request-ID": request_id}
    if retryable:
        headers["Retry-After"] = "2"

    return JSONResponse(status_code=status, content=payload, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers for the FastAPI application."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _error_response(
            request,
            status=exc.http_status,
            code=exc.code,
            message=exc.message,
            retryable=bool(exc.retryable),
            details=exc.details,
            extra=exc.extra or {},
        )

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(
        request: Request, exc: WorkflowError
    ) -> JSONResponse:
        return _error_response(
            request,
            status=exc.http_status,
            code=exc.code.value,
            message=exc.message,
            retryable=bool(exc.retryable),
            details=exc.details,
            extra=exc.extra or {},
        )
