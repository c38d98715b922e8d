"""Tests for confidence-threshold routing between intent handlers and QnA."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from dentabot.handlers import INTENT_HANDLERS, handle_availability
from dentabot.models import Prediction
from dentabot.router import MessageRouter
from dentabot.scheduler.app import app as scheduler_app
from dentabot.services.clu_client import IntentClassifierClient
from dentabot.services.metrics import ConversationMetrics
from dentabot.services.qna_client import QnAClient
from dentabot.services.scheduler_client import SchedulerClient

# ── Helpers ──────────────────────────────────────────────────────────


def _prediction(intent: str, score: float) -> Prediction:
    return Prediction(top_intent=intent, confidence_score=score)


@pytest.fixture
def classifier():
    return AsyncMock(spec=IntentClassifierClient)


@pytest.fixture
def qna():
    mock = AsyncMock(spec=QnAClient)
    mock.answer.return_value = "We are open 9 to 5."
    return mock


@pytest.fixture
def handlers():
    """One AsyncMock per known intent, so dispatch can be asserted."""
    return {name: AsyncMock(name=name) for name in INTENT_HANDLERS}


@pytest.fixture
def router(classifier, qna, handlers):
    return MessageRouter(
        classifier,
        qna,
        AsyncMock(spec=SchedulerClient),
        ConversationMetrics(),
        handlers=handlers,
    )


# ── Dispatch ─────────────────────────────────────────────────────────


class TestDispatch:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("intent", sorted(INTENT_HANDLERS))
    async def test_confident_known_intent_calls_its_handler(
        self, router, classifier, qna, handlers, make_turn_context, intent,
    ):
        prediction = _prediction(intent, 0.9)
        classifier.classify.return_value = prediction
        context = make_turn_context("some request")

        await router.route(context)

        handlers[intent].assert_awaited_once()
        assert handlers[intent].call_args.args[:2] == (context, prediction)
        for name, handler in handlers.items():
            if name != intent:
                handler.assert_not_awaited()
        qna.answer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispatch_is_counted_per_intent(
        self, classifier, qna, handlers, make_turn_context,
    ):
        metrics = ConversationMetrics()
        router = MessageRouter(
            classifier, qna, AsyncMock(spec=SchedulerClient), metrics, handlers=handlers,
        )
        classifier.classify.return_value = _prediction("CostInquiry", 0.8)

        await router.route(make_turn_context("price?"))
        await router.route(make_turn_context("price?"))

        assert metrics.intents == {"CostInquiry": 2}


class TestFallback:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [0.0, 0.5, 0.7])
    async def test_low_confidence_goes_to_qna(
        self, router, classifier, qna, handlers, make_turn_context, score,
    ):
        classifier.classify.return_value = _prediction("GetAvailability", score)
        context = make_turn_context("hmm")

        await router.route(context)

        qna.answer.assert_awaited_once_with("hmm")
        handlers["GetAvailability"].assert_not_awaited()
        context.send_activity.assert_awaited_once_with("We are open 9 to 5.")

    @pytest.mark.asyncio
    async def test_no_prediction_goes_to_qna(self, router, classifier, qna, make_turn_context):
        classifier.classify.return_value = None

        await router.route(make_turn_context("Do you have parking?"))

        qna.answer.assert_awaited_once_with("Do you have parking?")

    @pytest.mark.asyncio
    async def test_unknown_intent_goes_to_qna(self, router, classifier, qna, make_turn_context):
        classifier.classify.return_value = _prediction("None", 0.99)

        await router.route(make_turn_context("tell me a joke"))

        qna.answer.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_threshold_is_configurable(
        self, classifier, qna, handlers, make_turn_context,
    ):
        router = MessageRouter(
            classifier,
            qna,
            AsyncMock(spec=SchedulerClient),
            ConversationMetrics(),
            threshold=0.5,
            handlers=handlers,
        )
        classifier.classify.return_value = _prediction("ServiceInquiry", 0.6)

        await router.route(make_turn_context("services?"))

        handlers["ServiceInquiry"].assert_awaited_once()
        qna.answer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_qna_error_propagates(self, router, classifier, qna, make_turn_context):
        classifier.classify.return_value = None
        qna.answer.side_effect = RuntimeError("qna down")

        with pytest.raises(RuntimeError):
            await router.route(make_turn_context("hello"))


# ── End to end with real clients ─────────────────────────────────────


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_availability_question_reaches_scheduler(
        self, json_transport, qna, make_turn_context,
    ):
        clu_body = {
            "result": {
                "prediction": {
                    "topIntent": "GetAvailability",
                    "intents": [{"category": "GetAvailability", "confidenceScore": 0.9}],
                    "entities": [],
                }
            }
        }
        classifier = IntentClassifierClient(
            "https://language.test", "key", "clu", "prod",
            transport=json_transport((200, clu_body)),
        )
        scheduler = SchedulerClient(
            "http://scheduler.test", transport=httpx.ASGITransport(app=scheduler_app),
        )
        router = MessageRouter(classifier, qna, scheduler, ConversationMetrics())
        context = make_turn_context("What time are you open tomorrow?")

        await router.route(context)

        qna.answer.assert_not_awaited()
        reply = context.send_activity.call_args.args[0]
        assert "2024-12-10" in reply
        for slot in ("09:00", "10:00", "11:00", "14:00", "15:00", "16:00"):
            assert slot in reply

    @pytest.mark.asyncio
    async def test_classifier_network_error_falls_back_to_qna(
        self, json_transport, qna, make_turn_context,
    ):
        def boom(request):
            raise httpx.ConnectError("network unreachable", request=request)

        classifier = IntentClassifierClient(
            "https://language.test", "key", "clu", "prod", transport=json_transport(boom),
        )
        router = MessageRouter(
            classifier, qna, AsyncMock(spec=SchedulerClient), ConversationMetrics(),
        )

        await router.route(make_turn_context("What time are you open tomorrow?"))

        qna.answer.assert_awaited_once_with("What time are you open tomorrow?")

    @pytest.mark.asyncio
    async def test_malformed_classifier_body_falls_back_to_qna(
        self, json_transport, qna, make_turn_context,
    ):
        classifier = IntentClassifierClient(
            "https://language.test", "key", "clu", "prod",
            transport=json_transport((200, {"result": "unexpected"})),
        )
        router = MessageRouter(
            classifier, qna, AsyncMock(spec=SchedulerClient), ConversationMetrics(),
        )
        context = make_turn_context("Do you have parking?")

        await router.route(context)

        qna.answer.assert_awaited_once_with("Do you have parking?")
        context.send_activity.assert_awaited_once_with("We are open 9 to 5.")

    def test_default_table_is_used(self, classifier, qna):
        router = MessageRouter(
            classifier, qna, AsyncMock(spec=SchedulerClient), ConversationMetrics(),
        )
        handler = router.select_handler(_prediction("GetAvailability", 0.71))
        assert handler is handle_availability
        assert router.threshold == 0.7
