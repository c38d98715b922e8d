"""Shared plumbing for the bot's outbound HTTP clients.

Every client owns one ``httpx.AsyncClient`` and funnels requests through
``JsonServiceClient._request``, which records telemetry and normalises all
failures into ``ServiceAPIError``.  Nothing is retried.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from dentabot.services.metrics import MetricsClient

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15.0


class ServiceAPIError(Exception):
    """Raised when an outbound call fails.

    ``status_code`` is set for non-2xx responses and ``None`` for transport
    errors or undecodable bodies.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        body: str | None = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class JsonServiceClient:
    """Base class for a JSON-over-HTTP service client."""

    #: Label used in logs and telemetry dimensions.
    service_name = "service"

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        telemetry: MetricsClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )
        self._telemetry = telemetry

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
        operation: str | None = None,
    ) -> Any:
        """Execute one request and return the decoded JSON body."""
        operation = operation or f"{method} {path}"
        t0 = time.perf_counter()
        try:
            response = await self._client.request(
                method, path, params=params, json=json_body, headers=headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._record_failure(operation, type(exc).__name__, t0)
            raise ServiceAPIError(
                f"{self.service_name} request {operation} failed: "
                f"{type(exc).__name__}: {exc}"
            ) from exc

        if response.status_code >= 400:
            kind = "Server" if response.status_code >= 500 else "Client"
            self._record_failure(operation, f"{response.status_code // 100}xx", t0)
            raise ServiceAPIError(
                f"{kind} error {response.status_code} from {self.service_name}: "
                f"{response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            self._record_failure(operation, "InvalidJSON", t0)
            raise ServiceAPIError(
                f"{self.service_name} returned a non-JSON body for {operation}",
                body=response.text,
            ) from exc

        if self._telemetry is not None:
            self._telemetry.record_success(
                self.service_name, operation, latency_ms=_elapsed_ms(t0),
            )
        return data

    def _record_failure(self, operation: str, error_type: str, t0: float) -> None:
        if self._telemetry is not None:
            self._telemetry.record_failure(
                self.service_name, operation,
                error_type=error_type, latency_ms=_elapsed_ms(t0),
            )


def _elapsed_ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000
