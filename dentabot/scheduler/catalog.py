"""Static payloads served by the scheduler stub."""

from __future__ import annotations

from dentabot.models import (
    Appointment,
    Availability,
    InsuranceProvider,
    InsuranceVerification,
    Service,
    ServicePrice,
)

AVAILABILITY = Availability(
    date="2024-12-10",
    available_slots=["09:00", "10:00", "11:00", "14:00", "15:00", "16:00"],
)

APPOINTMENT = Appointment(
    id=123,
    patient_name="John Doe",
    date="2024-12-10",
    time="09:00",
    service_id=1,
    status="confirmed",
)

SERVICES: list[Service] = [
    Service(id=1, name="Cleaning", duration=60, price=100),
    Service(id=2, name="Checkup", duration=30, price=50),
    Service(id=3, name="Whitening", duration=90, price=200),
    Service(id=4, name="Root Canal", duration=120, price=500),
]

INSURANCE_PROVIDERS: list[InsuranceProvider] = [
    InsuranceProvider(id=1, name="BlueCross", coverage="80%"),
    InsuranceProvider(id=2, name="Aetna", coverage="75%"),
    InsuranceProvider(id=3, name="Cigna", coverage="70%"),
]

SERVICE_PRICE = ServicePrice(service="Cleaning", price=100, currency="USD")

INSURANCE_VERIFICATION = InsuranceVerification(
    verified=True, provider="BlueCross", coverage="80%",
)

CANCELLATION_MESSAGE = "Appointment successfully canceled"
