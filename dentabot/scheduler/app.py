"""FastAPI mock scheduler for the Contoso Dental bot.

Run with:
    uvicorn dentabot.scheduler.app:app --port 3000
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import uvicorn
from fastapi import APIRouter, FastAPI, Request, status

from dentabot.models import (
    Appointment,
    Availability,
    CancellationResult,
    InsuranceProvider,
    InsuranceVerification,
    Service,
    ServicePrice,
)
from dentabot.scheduler import catalog

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_json(request: Request) -> Any:
    """Best-effort body decode; the stub never rejects a request."""
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")


@router.get("/availability", response_model=Availability)
async def get_availability():
    """Return the fixed list of open slots."""
    logger.info("Returning mock available slots for %s", catalog.AVAILABILITY.date)
    return catalog.AVAILABILITY


@router.post(
    "/appointments",
    response_model=Appointment,
    status_code=status.HTTP_201_CREATED,
)
async def create_appointment(request: Request):
    """Pretend to book an appointment; the payload is only logged."""
    logger.info("Creating mock appointment with data: %s", await _read_json(request))
    return catalog.APPOINTMENT


@router.delete("/appointments/{appointment_id}", response_model=CancellationResult)
async def cancel_appointment(appointment_id: str):
    logger.info("Simulating appointment cancellation for ID: %s", appointment_id)
    return CancellationResult(message=catalog.CANCELLATION_MESSAGE, id=appointment_id)


@router.get("/services", response_model=list[Service])
async def list_services():
    logger.info("Returning mock services list")
    return catalog.SERVICES


@router.get("/services/{service_id}/price", response_model=ServicePrice)
async def get_service_price(service_id: str):
    """Return the price record.  The same record is served for every id."""
    logger.info("Returning mock price for service ID: %s", service_id)
    return catalog.SERVICE_PRICE


@router.get("/insurance", response_model=list[InsuranceProvider])
async def list_insurance():
    logger.info("Returning mock insurance providers list")
    return catalog.INSURANCE_PROVIDERS


@router.post("/insurance/verify", response_model=InsuranceVerification)
async def verify_insurance(request: Request):
    payload = await _read_json(request)
    insurance_id = payload.get("insuranceId") if isinstance(payload, dict) else None
    logger.info(
        "Returning mock insurance verification for insurance ID: %s", insurance_id,
    )
    return catalog.INSURANCE_VERIFICATION


app = FastAPI(
    title="Contoso Dental Scheduler (mock)",
    description="Stateless scheduling backend returning fixed data.",
    version="1.0.0",
)
app.include_router(router, prefix="/api")


if __name__ == "__main__":
    port = int(os.getenv("SCHEDULER_PORT", "3000"))
    logger.info("Scheduler is running on port %d", port)
    uvicorn.run("dentabot.scheduler.app:app", host="0.0.0.0", port=port)
