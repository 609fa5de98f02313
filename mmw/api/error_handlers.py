"""
MMW — Global Error Handlers
============================
Maps exceptions to ``BaseResponse`` error bodies.

- ``MMWError`` -> its ``http_status``, with the error code in ``data``
- ``RequestValidationError`` -> 400 with field-level details
- anything else -> 500 with a generic message; internals are only logged
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mmw.core.exceptions import MMWError
from mmw.core.logging import get_logger
from mmw.models.common import BaseResponse

logger = get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MMWError, _mmw_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)


def _body(msg: str, data: object = None) -> dict:
    response = BaseResponse.error(msg)
    response.data = data
    return response.model_dump(mode="json")


async def _mmw_error_handler(request: Request, exc: MMWError) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        "api.error",
        error_code=exc.error_code,
        severity=exc.severity.value,
        path=request.url.path,
        message=exc.message,
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=_body(exc.message, {"error_code": exc.error_code}),
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning("api.validation_error", path=request.url.path, errors=details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_body("Invalid request data", details),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "api.unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body("An unexpected error occurred"),
    )
