"""Pydantic schemas for the bot server's own endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dentabot import __version__


class HealthResponse(BaseModel):
    """Health check response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str = "ok"
    version: str = __version__
    bot_status: str = Field(..., description="'ready' once the bot is wired up")
    timestamp: datetime


class MetricsResponse(BaseModel):
    """Conversation counters since process start."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    requests: int
    intents: dict[str, int]
    qna_queries: int
    errors: int
    start_time: datetime
    uptime_seconds: float
