"""Message routing: intent handlers when the classifier is confident,
question answering otherwise.

    classify(text)
      ├─ prediction and score > threshold and known intent → INTENT_HANDLERS[intent]
      └─ anything else                                     → QnA answer
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from botbuilder.core import TurnContext

from dentabot.config import DEFAULT_CONFIDENCE_THRESHOLD
from dentabot.handlers import INTENT_HANDLERS, IntentHandler
from dentabot.models import Prediction
from dentabot.services.clu_client import IntentClassifierClient
from dentabot.services.metrics import ConversationMetrics
from dentabot.services.qna_client import QnAClient
from dentabot.services.scheduler_client import SchedulerClient

logger = logging.getLogger(__name__)


class MessageRouter:
    """Routes one inbound message to an intent handler or to QnA."""

    def __init__(
        self,
        classifier: IntentClassifierClient,
        qna: QnAClient,
        scheduler: SchedulerClient,
        metrics: ConversationMetrics,
        *,
        threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        handlers: Mapping[str, IntentHandler] | None = None,
    ):
        self._classifier = classifier
        self._qna = qna
        self._scheduler = scheduler
        self._metrics = metrics
        self._threshold = threshold
        self._handlers = dict(INTENT_HANDLERS if handlers is None else handlers)

    @property
    def threshold(self) -> float:
        return self._threshold

    def select_handler(self, prediction: Prediction | None) -> IntentHandler | None:
        """Return the handler for a confident, known intent, else ``None``."""
        if prediction is None:
            return None
        if prediction.confidence_score <= self._threshold:
            logger.info(
                "Low confidence for %s (%.2f <= %.2f), falling back to QnA",
                prediction.top_intent, prediction.confidence_score, self._threshold,
            )
            return None
        handler = self._handlers.get(prediction.top_intent)
        if handler is None:
            logger.info("No handler for intent %s, falling back to QnA", prediction.top_intent)
        return handler

    async def route(self, turn_context: TurnContext) -> None:
        text = turn_context.activity.text or ""
        prediction = await self._classifier.classify(text)
        if prediction is not None:
            logger.info(
                "Intent: %s (%.2f)", prediction.top_intent, prediction.confidence_score,
            )

        handler = self.select_handler(prediction)
        if handler is not None:
            self._metrics.record_intent(prediction.top_intent)
            await handler(turn_context, prediction, self._scheduler)
            return

        answer = await self._qna.answer(text)
        await turn_context.send_activity(answer)
