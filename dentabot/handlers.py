"""Intent handlers: one coroutine per supported CLU intent.

Each handler pulls what it needs from the prediction's entities, makes a
single scheduler call, and replies with a patient-facing message.  Backend
failures are logged and answered with a "please try again later" reply,
so nothing raised by the scheduler leaves a handler.

``INTENT_HANDLERS`` maps intent names to handlers and is what the message
router dispatches on.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from botbuilder.core import TurnContext

from dentabot.models import Prediction
from dentabot.services.scheduler_client import SchedulerClient

logger = logging.getLogger(__name__)

IntentHandler = Callable[[TurnContext, Prediction, SchedulerClient], Awaitable[None]]

# Entity categories defined in the CLU project
DATETIME_ENTITY = "DateTime"
APPOINTMENT_ID_ENTITY = "AppointmentId"
SERVICE_ID_ENTITY = "ServiceId"

# Placeholders used when the patient didn't mention an id
DEFAULT_APPOINTMENT_ID = "123"
DEFAULT_SERVICE_ID = "1"

MISSING_DATETIME_PROMPT = "⚠️ Please provide a time for the appointment."


async def handle_availability(
    turn_context: TurnContext, prediction: Prediction, scheduler: SchedulerClient,
) -> None:
    logger.info("Checking available slots")
    try:
        data = await scheduler.get_availability()
        slots = data["available_slots"]
        message = "\n".join(
            [f"📅 Available slots for {data['date']}:", *(f"⏰ {slot}" for slot in slots)]
        )
    except Exception:
        logger.exception("Failed to check availability")
        await turn_context.send_activity(
            "Unable to check available slots. Please try again later."
        )
        return

    logger.info("Availability handled: date=%s slots=%d", data["date"], len(slots))
    await turn_context.send_activity(message)


async def handle_scheduling(
    turn_context: TurnContext, prediction: Prediction, scheduler: SchedulerClient,
) -> None:
    """Book an appointment at the ``DateTime`` the patient mentioned.

    Without a ``DateTime`` entity the patient is asked for one and the
    backend is not called.
    """
    datetime_text = prediction.find_entity(DATETIME_ENTITY)
    if not datetime_text:
        await turn_context.send_activity(MISSING_DATETIME_PROMPT)
        return

    logger.info("Scheduling appointment for %r", datetime_text)
    try:
        appointment = await scheduler.create_appointment(datetime_text)
        message = "\n".join(
            [
                "✅ Appointment scheduled successfully!",
                f"📅 Date: {appointment['date']}",
                f"⏰ Time: {appointment['time']}",
                f"👤 Patient Name: {appointment['patientName']}",
                f"🏥 Service ID: {appointment['serviceId']}",
                f"📋 Status: {appointment['status']}",
            ]
        )
    except Exception:
        logger.exception("Failed to schedule appointment")
        await turn_context.send_activity(
            "Unable to schedule appointment. Please try again later."
        )
        return

    logger.info("Appointment scheduled: %s", appointment)
    await turn_context.send_activity(message)


async def handle_cancellation(
    turn_context: TurnContext, prediction: Prediction, scheduler: SchedulerClient,
) -> None:
    appointment_id = (
        prediction.find_entity(APPOINTMENT_ID_ENTITY) or DEFAULT_APPOINTMENT_ID
    )
    logger.info("Cancelling appointment %s", appointment_id)
    try:
        result = await scheduler.cancel_appointment(appointment_id)
        message = f"✅ {result['message']} (ID: {appointment_id})"
    except Exception:
        logger.exception("Failed to cancel appointment %s", appointment_id)
        await turn_context.send_activity(
            "Unable to cancel the appointment. Please try again later."
        )
        return

    await turn_context.send_activity(message)


async def handle_service_inquiry(
    turn_context: TurnContext, prediction: Prediction, scheduler: SchedulerClient,
) -> None:
    logger.info("Retrieving service list")
    try:
        services = await scheduler.list_services()
        message = "\n".join(
            [
                "📋 List of our services:",
                *(
                    f"🔹 {s['name']}: {s['duration']} minutes - ${s['price']}"
                    for s in services
                ),
            ]
        )
    except Exception:
        logger.exception("Failed to retrieve services")
        await turn_context.send_activity(
            "Unable to retrieve service information. Please try again later."
        )
        return

    await turn_context.send_activity(message)


async def handle_cost_inquiry(
    turn_context: TurnContext, prediction: Prediction, scheduler: SchedulerClient,
) -> None:
    service_id = prediction.find_entity(SERVICE_ID_ENTITY) or DEFAULT_SERVICE_ID
    logger.info("Retrieving price for service %s", service_id)
    try:
        price = await scheduler.get_service_price(service_id)
        message = f"💰 Service {price['service']}: ${price['price']} {price['currency']}"
    except Exception:
        logger.exception("Failed to retrieve price for service %s", service_id)
        await turn_context.send_activity(
            "Unable to retrieve cost information. Please try again later."
        )
        return

    await turn_context.send_activity(message)


async def handle_insurance_inquiry(
    turn_context: TurnContext, prediction: Prediction, scheduler: SchedulerClient,
) -> None:
    logger.info("Retrieving insurance provider list")
    try:
        providers = await scheduler.list_insurance()
        message = "\n".join(
            [
                "📄 List of accepted insurance providers:",
                *(f"🔹 {p['name']}: Coverage {p['coverage']}" for p in providers),
            ]
        )
    except Exception:
        logger.exception("Failed to retrieve insurance providers")
        await turn_context.send_activity(
            "Unable to retrieve insurance information. Please try again later."
        )
        return

    await turn_context.send_activity(message)


INTENT_HANDLERS: dict[str, IntentHandler] = {
    "GetAvailability": handle_availability,
    "ScheduleAppointment": handle_scheduling,
    "CancelAppointment": handle_cancellation,
    "ServiceInquiry": handle_service_inquiry,
    "CostInquiry": handle_cost_inquiry,
    "InsuranceInquiry": handle_insurance_inquiry,
}
