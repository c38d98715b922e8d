"""The Contoso Dental activity handler.

Plugs the message router into the Bot Framework turn pipeline: message
activities are routed and timed, and new conversation members get a
welcome message.
"""

from __future__ import annotations

import logging
import time

from botbuilder.core import ActivityHandler, MessageFactory, TurnContext
from botbuilder.schema import ChannelAccount

from dentabot.router import MessageRouter
from dentabot.services.metrics import ConversationMetrics

logger = logging.getLogger(__name__)

WELCOME_TEXT = """👋 Welcome to Dental Assistant!

I can help you with:
📋 Answering service-related questions
🕒 Checking available appointment slots
📅 Scheduling an appointment
💰 Retrieving cost information
📄 Insurance inquiries

How can I assist you today?"""


class DentaBot(ActivityHandler):
    def __init__(self, router: MessageRouter, metrics: ConversationMetrics):
        self._router = router
        self._metrics = metrics

    @property
    def metrics(self) -> ConversationMetrics:
        return self._metrics

    async def on_message_activity(self, turn_context: TurnContext):
        """Route the message.  Errors are counted, then left to the
        adapter's ``on_turn_error`` which replies to the user."""
        logger.info("Received message: %r", turn_context.activity.text)
        start = time.perf_counter()
        try:
            await self._router.route(turn_context)
            self._metrics.record_request()
        except Exception:
            self._metrics.record_error()
            logger.exception("Unhandled error while routing message")
            raise
        finally:
            logger.info("Processing time: %.0fms", (time.perf_counter() - start) * 1000)

    async def on_members_added_activity(
        self, members_added: list[ChannelAccount], turn_context: TurnContext,
    ):
        bot_id = turn_context.activity.recipient.id if turn_context.activity.recipient else None
        for member in members_added:
            if member.id != bot_id:
                await turn_context.send_activity(MessageFactory.text(WELCOME_TEXT))
