"""
Unified response envelope.
"""
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, field_serializer


T = TypeVar("T")

SUCCESS_CODE = "SUCCESS"


class ErrorDetail(BaseModel):
    """Error details"""
    type: str
    provider: Optional[str] = None
    details: Optional[dict] = None
    field: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer('timestamp')
    def serialize_timestamp(self, timestamp: datetime) -> str:
        """UTC ISO8601 with a trailing Z"""
        ts = timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        else:
            ts = ts.astimezone(timezone.utc)
        s = ts.isoformat()
        return s.replace("+00:00", "Z")


class Response(BaseModel, Generic[T]):
    """Unified response model"""
    code: str
    message: str
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None


def success_response(
    data: Any = None,
    message: str = "Success",
    code: str = SUCCESS_CODE
) -> Response:
    return Response(
        code=code,
        message=message,
        data=data,
        error=None
    )


def error_response(
    code: str,
    message: str,
    error_type: str = "UnipayError",
    provider: Optional[str] = None,
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None
) -> Response:
    """
    Build an error envelope.

    Args:
        code: ErrorCode value
        message: human readable message
        error_type: exception class name
        provider: gateway that produced the error, if any
        details: category-specific fields
        field: offending input field for validation errors
        request_id: correlation id

    Returns:
        Response: envelope with ``data`` unset
    """
    return Response(
        code=code,
        message=message,
        data=None,
        error=ErrorDetail(
            type=error_type,
            provider=provider,
            details=details,
            field=field,
            request_id=request_id
        )
    )
