from typing import Any, Dict, Optional
from fastapi import FastAPI, HTTPException, Request,status
from fastapi.exceptions import RequestValidationError
from storefront.common.logging_setup import get_logger
from storefront.common.utils import build_error, json_error
from storefront.common.constants import request_id_ctx

logger = get_logger("storefront.errors")


class AppError(Exception):
    """Base for errors raised by services and repositories.

    `message` is user facing. `details` is logged only.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "SERVER_ERROR"
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None,
                 payload: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        self.payload = payload or {}
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class AuthError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "AUTH_ERROR"
    default_message = "Invalid or expired OTP"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ProductNotFoundError(NotFoundError):
    code = "PRODUCT_NOT_FOUND"
    default_message = "One or more products do not exist"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists"


class PersistenceError(AppError):
    code = "PERSISTENCE_ERROR"
    default_message = "The request could not be completed"


class DeliveryError(AppError):
    code = "DELIVERY_ERROR"
    default_message = "The request could not be completed"


async def app_error_handler(request: Request, exc: AppError):
    rid = request_id_ctx.get(None)

    log_extra = {
        "path": request.url.path,
        "method": request.method,
        "error_code": exc.code,
        **exc.details,
    }
    if exc.status_code >= 500:
        logger.error("app.error", extra=log_extra, exc_info=exc)
    else:
        logger.info("app.rejected", extra=log_extra)

    body = {"message": exc.message, **exc.payload}
    payload = build_error(code=exc.code, details=body, request_id=rid)
    return json_error(payload, status_code=exc.status_code)


async def fallback_handler(request: Request, exc: Exception):

    rid = request_id_ctx.get(None)
    body = {"message": "Internal Server Error"}

    logger.error(
        "unexpected.exception",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )

    payload = build_error(code="SERVER_ERROR", details=body, request_id=rid)
    return json_error(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = request_id_ctx.get(None)
    logger.warning(
        "request.validation_failed",
        extra={
            "errors": exc.errors(),
            "path": request.url.path,
        },
    )

    payload = build_error(code="UNPROCESSABLE_ENTITY", details={"message":"invalid request"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def http_exception_handler(request: Request, exc: HTTPException):

    rid = request_id_ctx.get(None)

    error_code = f"HTTP_{exc.status_code}"
    message = exc.detail

    payload = build_error(code=error_code, details={"message":message}, request_id=rid)
    return json_error(payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def register_all_exceptions(app: FastAPI):

    app.add_exception_handler(
        Exception, # catch all unidentified/unhandled exceptions
        fallback_handler
    )

    app.add_exception_handler(
        AppError,
        app_error_handler
    )

    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler
    )

    app.add_exception_handler(
        HTTPException,
        http_exception_handler
    )
