"""HTTP client for the clinic scheduling API.

Each method maps to one endpoint and returns the decoded JSON payload
unchanged; formatting for the patient happens in ``dentabot.handlers``.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from dentabot.services.base import REQUEST_TIMEOUT_SECONDS, JsonServiceClient
from dentabot.services.metrics import MetricsClient


class SchedulerClient(JsonServiceClient):
    service_name = "scheduler"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        telemetry: MetricsClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            base_url, timeout=timeout, telemetry=telemetry, transport=transport,
        )

    async def get_availability(self) -> dict[str, Any]:
        """Open slots: ``{"date": ..., "available_slots": [...]}``."""
        return await self._request("GET", "/api/availability")

    async def create_appointment(self, datetime_text: str) -> dict[str, Any]:
        """Book an appointment at the time the patient mentioned."""
        return await self._request(
            "POST", "/api/appointments", json_body={"datetime": datetime_text},
        )

    async def cancel_appointment(self, appointment_id: str) -> dict[str, Any]:
        return await self._request(
            "DELETE",
            f"/api/appointments/{quote(appointment_id, safe='')}",
            operation="DELETE /api/appointments/{id}",
        )

    async def list_services(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/services")

    async def get_service_price(self, service_id: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/api/services/{quote(service_id, safe='')}/price",
            operation="GET /api/services/{id}/price",
        )

    async def list_insurance(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/api/insurance")

    async def verify_insurance(self, insurance_id: str) -> dict[str, Any]:
        """Check coverage for a provider.  Not used by any intent yet."""
        return await self._request(
            "POST", "/api/insurance/verify", json_body={"insuranceId": insurance_id},
        )
