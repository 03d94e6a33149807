from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.errors import DomainError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """
    Map domain errors to JSON responses.

    Unexpected exceptions become a generic 500; the exception text is
    exposed only outside production.
    """

    @app.exception_handler(DomainError)
    async def _domain_error(request: Request, exc: DomainError) -> JSONResponse:
        logger.info(
            "domain error",
            extra={
                "code": exc.code,
                "status": exc.status_code,
                "path": request.url.path,
                "request_id": getattr(request.state, "request_id", None),
            },
        )
        body = {"detail": exc.message, "code": exc.code}
        if exc.details:
            body["context"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled error",
            extra={
                "path": request.url.path,
                "request_id": getattr(request.state, "request_id", None),
            },
        )
        body = {"detail": "Internal server error.", "code": "internal"}
        if not get_settings().is_production:
            body["error"] = str(exc)
        return JSONResponse(status_code=500, content=body)
