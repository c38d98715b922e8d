"""Shared test fixtures for the Contoso Dental bot test suite."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from botbuilder.core import TurnContext
from botbuilder.schema import Activity, ActivityTypes, ChannelAccount, ConversationAccount

from dentabot.config import Settings


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    The server lifespan calls ``load_settings()``, which fails fast on
    missing required values.
    """
    os.environ.setdefault("AZURE_LANGUAGE_ENDPOINT", "https://language.test")
    os.environ.setdefault("AZURE_LANGUAGE_KEY", "test-language-key-123")
    os.environ.setdefault("CLU_PROJECT_NAME", "dental-clu")
    os.environ.setdefault("CLU_DEPLOYMENT_NAME", "production")
    os.environ.setdefault("QNA_PROJECT_NAME", "dental-qna")
    os.environ.setdefault("QNA_DEPLOYMENT_NAME", "production")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        language_endpoint="https://language.test",
        language_key="test-language-key-123",
        clu_project_name="dental-clu",
        clu_deployment_name="production",
        qna_project_name="dental-qna",
        qna_deployment_name="production",
        scheduler_endpoint="http://scheduler.test",
    )


@pytest.fixture
def make_turn_context():
    """Factory for a mock TurnContext carrying a message activity."""

    def _make(text: str = "", **activity_fields) -> MagicMock:
        context = MagicMock(spec=TurnContext)
        fields = {
            "type": ActivityTypes.message,
            "text": text,
            "from_property": ChannelAccount(id="user-1", name="Patient"),
            "recipient": ChannelAccount(id="bot-1", name="Dental Assistant"),
            "conversation": ConversationAccount(id="conv-1"),
            "channel_id": "test",
        }
        fields.update(activity_fields)
        context.activity = Activity(**fields)
        context.send_activity = AsyncMock()
        return context

    return _make


@pytest.fixture
def json_transport():
    """Factory for an ``httpx.MockTransport`` that records requests.

    ``responder`` is either a ``(status, payload)`` tuple or a callable
    receiving the ``httpx.Request``.
    """

    def _make(responder):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if callable(responder):
                return responder(request)
            status, payload = responder
            return httpx.Response(status, json=payload)

        transport = httpx.MockTransport(handler)
        transport.requests = seen
        return transport

    return _make
