"""
Domain errors → JSON `{"error": ...}` responses.

    ValidationFailed, BusinessRuleError    400  (insufficient stock adds details)
    OrderNotFound, CouponNotFound          404
    GatewayError, InvoiceCreationFailed    upstream status, public message
    UpstreamError                          500
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.errors import (
    BusinessRuleError,
    CouponNotFound,
    GatewayError,
    InsufficientStock,
    InvoiceCreationFailed,
    OrderNotFound,
    StorefrontError,
    UpstreamError,
    ValidationFailed,
)
from storefront.log import SecurityEvent, log_security_event

logger = logging.getLogger(__name__)


def error_body(exc: StorefrontError) -> dict[str, Any]:
    body: dict[str, Any] = {"error": exc.message}
    match exc:
        case InsufficientStock():
            body.update(
                insufficientStock=True,
                productName=exc.product_name,
                availableStock=exc.available,
            )
        case InvoiceCreationFailed():
            body["orderId"] = exc.order_id
    return body


def status_for(exc: StorefrontError) -> int:
    match exc:
        case OrderNotFound() | CouponNotFound():
            return 404
        case ValidationFailed() | BusinessRuleError():
            return 400
        case GatewayError() | InvoiceCreationFailed():
            return exc.status_code
        case _:
            return 500


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    status = status_for(exc)
    if isinstance(exc, UpstreamError):
        logger.error("%s %s failed upstream: %s", request.method, request.url.path, exc.message)
        log_security_event(
            SecurityEvent.API_ERROR,
            "Upstream failure",
            endpoint=request.url.path,
            code=exc.code,
            status=status,
        )
    return JSONResponse(status_code=status, content=error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request data")
    log_security_event(
        SecurityEvent.VALIDATION_ERROR,
        "Request validation failed",
        endpoint=request.url.path,
        error=message,
        field=location,
    )
    return JSONResponse(
        status_code=400,
        content={"error": f"{location}: {message}" if location else message},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]


__all__ = (
    "error_body",
    "status_for",
    "install_error_handlers",
)
