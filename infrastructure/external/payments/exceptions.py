"""
Transport-level error raised by REST-based gateway clients.

Never leaves the infrastructure layer: adapters translate it into the
payment/refund error taxonomy with the provider's own error code attached.
"""
from __future__ import annotations

from typing import Any, Optional


class ProviderAPIError(Exception):
    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int,
        provider_code: Optional[str] = None,
        body: Any = None,
    ) -> None:
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.provider_code = provider_code
        self.body = body
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404
