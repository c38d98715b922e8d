"""Pydantic models shared by the bot and the scheduler stub.

Field names are snake_case in Python and camelCase on the wire, matching
the JSON produced by Azure AI Language and the scheduler API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Language understanding ───────────────────────────────────────────


class Entity(_CamelModel):
    """A typed span extracted from the utterance (e.g. a date mention)."""

    category: str
    text: str
    confidence_score: float | None = None


class Prediction(_CamelModel):
    """Normalised result of one intent classification call."""

    top_intent: str
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)
    entities: list[Entity] = Field(default_factory=list)
    raw: dict[str, Any] = Field(default_factory=dict)

    def find_entity(self, category: str) -> str | None:
        """Return the text of the first entity of *category*, if any."""
        for entity in self.entities:
            if entity.category == category:
                return entity.text
        return None


# ── Scheduler payloads ───────────────────────────────────────────────


class Availability(BaseModel):
    date: str
    available_slots: list[str]


class Appointment(_CamelModel):
    id: int
    patient_name: str
    date: str
    time: str
    service_id: int
    status: str


class CancellationResult(BaseModel):
    message: str
    id: str


class Service(BaseModel):
    id: int
    name: str
    duration: int = Field(..., description="Duration in minutes")
    price: int


class ServicePrice(BaseModel):
    service: str
    price: int
    currency: str


class InsuranceProvider(BaseModel):
    id: int
    name: str
    coverage: str = Field(..., description="Coverage percentage, e.g. '80%'")


class InsuranceVerification(BaseModel):
    verified: bool
    provider: str
    coverage: str
