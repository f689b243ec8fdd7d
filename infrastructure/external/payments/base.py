"""
Base payment client implementing shared concerns: http, retry, logging, mapping.

Concrete providers subclass and implement provider-specific logic. Retries
cover transport failures only (timeouts, connection errors); a gateway's
4xx/5xx answer is surfaced immediately as ProviderAPIError.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.logging_config import get_logger
from domain.payment.capability import AdapterCapabilities
from domain.payment.enums import PaymentProvider, PaymentStatus, RefundStatus
from infrastructure.external.payments.exceptions import ProviderAPIError
from shared.codes.payment_codes import map_payment_status, map_refund_status


logger = get_logger(__name__)


class BasePaymentClient:
    provider: PaymentProvider
    capabilities: AdapterCapabilities

    def __init__(
        self,
        *,
        base_url: str = "",
        auth: Optional[httpx.Auth | tuple[str, str]] = None,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeouts_cfg = timeouts or {"connect": 1.0, "read": 10.0, "write": 10.0, "total": 30.0}
        self._retry_cfg = retry or {"max": 2, "base": 0.2}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                auth=self._auth,
                timeout=self.timeouts,
                transport=self._transport,
            )
        try:
            yield self._client
        finally:
            # Keep open for reuse; explicit aclose() will close.
            ...

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _retry(self, fn: Callable[[], Any]):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0.1, max=2.0),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
            reraise=True,
        ):
            with attempt:
                return await fn()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        async def _send() -> httpx.Response:
            async with self.client() as client:
                return await client.request(method, path, json=json, params=params)

        self._log("payment_http_request", method=method, path=path)
        response = await self._retry(_send)
        if response.is_error:
            raise self._api_error(response)
        return response.json()

    def _api_error(self, response: httpx.Response) -> ProviderAPIError:
        """Override to read the gateway's error envelope."""
        return ProviderAPIError(
            response.text or response.reason_phrase,
            provider=self.provider.value,
            status_code=response.status_code,
        )

    # Helpers
    def _map_status(self, kind: str, provider_status: Optional[str]) -> PaymentStatus:
        return map_payment_status(f"{self.provider.value}.{kind}", provider_status or "")

    def _map_refund_status(self, provider_status: Optional[str]) -> RefundStatus:
        return map_refund_status(self.provider.value, provider_status or "")

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider.value,
            **kwargs,
        )
