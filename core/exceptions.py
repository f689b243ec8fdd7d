"""
Global exception handlers mapping UnipayError codes to HTTP responses.
"""
import traceback
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status as http_status

from .response import error_response
from core.logging_config import get_logger
from domain.common.exceptions import UnipayError
from shared.codes import ErrorCode


_ERROR_CODE_TO_HTTP_STATUS = {
    # Configuration problems are server-side
    ErrorCode.INVALID_PROVIDER_CONFIG: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.MISSING_PROVIDER: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DUPLICATE_PROVIDER: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INVALID_RESOLUTION_STRATEGY: http_status.HTTP_500_INTERNAL_SERVER_ERROR,

    ErrorCode.NO_PROVIDER_AVAILABLE: http_status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PROVIDER_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    ErrorCode.UNSUPPORTED_CAPABILITY: http_status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.UNSUPPORTED_CURRENCY: http_status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.UNSUPPORTED_CHECKOUT_MODE: http_status.HTTP_422_UNPROCESSABLE_ENTITY,

    ErrorCode.PAYMENT_CREATION_FAILED: http_status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PAYMENT_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    ErrorCode.PAYMENT_RETRIEVAL_FAILED: http_status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PAYMENT_ALREADY_CAPTURED: http_status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_EXPIRED: http_status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_CANCELLED: http_status.HTTP_409_CONFLICT,

    ErrorCode.REFUND_CREATION_FAILED: http_status.HTTP_502_BAD_GATEWAY,
    ErrorCode.REFUND_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    ErrorCode.REFUND_RETRIEVAL_FAILED: http_status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PARTIAL_REFUND_NOT_SUPPORTED: http_status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.REFUND_EXCEEDS_PAYMENT: http_status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PAYMENT_NOT_REFUNDABLE: http_status.HTTP_409_CONFLICT,
    ErrorCode.REFUND_ALREADY_PROCESSED: http_status.HTTP_409_CONFLICT,

    ErrorCode.WEBHOOK_SIGNATURE_INVALID: http_status.HTTP_401_UNAUTHORIZED,
    ErrorCode.WEBHOOK_TIMESTAMP_EXPIRED: http_status.HTTP_401_UNAUTHORIZED,
    ErrorCode.WEBHOOK_PARSING_FAILED: http_status.HTTP_400_BAD_REQUEST,
    ErrorCode.WEBHOOK_PROVIDER_NOT_CONFIGURED: http_status.HTTP_404_NOT_FOUND,

    ErrorCode.INVALID_AMOUNT: http_status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_CURRENCY: http_status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_URL: http_status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_UNIPAY_ID: http_status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_REQUIRED_FIELD: http_status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_METADATA: http_status.HTTP_400_BAD_REQUEST,

    ErrorCode.SYSTEM_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_code_to_http_status(code: ErrorCode) -> int:
    return _ERROR_CODE_TO_HTTP_STATUS.get(code, http_status.HTTP_400_BAD_REQUEST)


def _request_id(request: Request) -> str:
    return getattr(getattr(request, "state", object()), "request_id", None) or str(uuid.uuid4())


def register_exception_handlers(app: FastAPI):
    """
    Register global exception handlers.

    Args:
        app: FastAPI application
    """

    logger = get_logger(__name__)

    @app.exception_handler(UnipayError)
    async def unipay_exception_handler(request: Request, exc: UnipayError):
        request_id = _request_id(request)
        status_code = error_code_to_http_status(exc.code)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "unipay_error",
            request_id=request_id,
            code=exc.code.value,
            error_type=exc.error_type,
            provider=exc.provider,
            error=exc.message,
        )
        response = error_response(
            code=exc.code.value,
            message=exc.message,
            error_type=exc.error_type,
            provider=exc.provider,
            details=exc.details or None,
            field=exc.field,
            request_id=request_id,
        )
        return JSONResponse(status_code=status_code, content=response.model_dump(mode='json'))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        request_id = _request_id(request)
        errors = exc.errors()

        first_error = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])

        response = error_response(
            code=ErrorCode.MISSING_REQUIRED_FIELD.value if first_error.get("type") == "missing" else "VALIDATION_ERROR",
            message=f"Request validation failed: {first_error.get('msg', 'unknown')}",
            error_type="ValidationError",
            details={"errors": [{"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")} for e in errors]},
            field=field,
            request_id=request_id,
        )
        return JSONResponse(
            status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=response.model_dump(mode='json')
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        request_id = _request_id(request)
        response = error_response(
            code="HTTP_ERROR",
            message=str(exc.detail),
            error_type="HTTPError",
            details={"status_code": exc.status_code},
            request_id=request_id,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=response.model_dump(mode='json'),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        request_id = _request_id(request)

        details = None
        if app.debug:
            details = {
                "exception": str(exc),
                "traceback": traceback.format_exc()
            }

        response = error_response(
            code=ErrorCode.SYSTEM_ERROR.value,
            message="Internal server error",
            error_type="SystemError",
            details=details,
            request_id=request_id,
        )

        logger.error(
            "unhandled_exception",
            request_id=request_id,
            error=str(exc),
            exc_info=True,
        )

        return JSONResponse(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=response.model_dump(mode='json')
        )
