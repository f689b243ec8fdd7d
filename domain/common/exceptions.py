"""Base error shared by every payment component.

The core (API) layer only maps these to HTTP responses; domain and
infrastructure raise them directly.
"""
from __future__ import annotations

from typing import Any, Optional

from shared.codes import ErrorCode


class UnipayError(Exception):
    """Base class for all UniPay errors.

    Every error carries a machine-readable ``code``, a human ``message`` and,
    when relevant, the ``provider`` that produced it and the underlying
    ``cause``. Category-specific fields go to ``details``.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        provider: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[dict[str, Any]] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.provider = _provider_value(provider)
        self.cause = cause
        self.details = details or {}
        self.field = field
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.error_type,
            "code": self.code.value,
            "message": self.message,
            "provider": self.provider,
            "cause": str(self.cause) if self.cause is not None else None,
        }
        if self.field is not None:
            data["field"] = self.field
        data.update(self.details)
        return data

    def __repr__(self) -> str:
        return f"{self.error_type}(code={self.code.value!r}, message={self.message!r}, provider={self.provider!r})"


def _provider_value(provider: Any) -> Optional[str]:
    if provider is None:
        return None
    return getattr(provider, "value", provider)
