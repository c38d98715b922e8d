"""CLI entry point for the Contoso Dental bot.

Runs the bot in-process through a console adapter: no Bot Framework
channel or emulator needed, but the CLU, QnA and scheduler services
configured in ``.env`` are called for real.

Usage:
    python -m dentabot.main            # normal mode (quiet)
    python -m dentabot.main --debug    # debug mode (shows API calls)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import uuid
from datetime import UTC, datetime

from botbuilder.core import BotAdapter, TurnContext
from botbuilder.schema import (
    Activity,
    ActivityTypes,
    ChannelAccount,
    ConversationAccount,
    ConversationReference,
    ResourceResponse,
)

from dentabot.adapter import on_turn_error
from dentabot.config import load_settings
from dentabot.server import build_bot

logger = logging.getLogger(__name__)

USER = ChannelAccount(id="console-user", name="You")
BOT = ChannelAccount(id="dentabot", name="Dental Assistant")


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    root_level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        force=True,
    )

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("dentabot").setLevel(logging.DEBUG if debug else logging.WARNING)


class ConsoleAdapter(BotAdapter):
    """Prints outbound activities instead of posting them to a channel."""

    def __init__(self) -> None:
        super().__init__(on_turn_error=on_turn_error)
        self.conversation = ConversationAccount(id=str(uuid.uuid4()))

    def _activity(self, activity_type: str, **fields) -> Activity:
        return Activity(
            type=activity_type,
            id=str(uuid.uuid4()),
            channel_id="console",
            service_url="",
            conversation=self.conversation,
            from_property=USER,
            recipient=BOT,
            timestamp=datetime.now(UTC),
            **fields,
        )

    async def process(self, activity: Activity, logic) -> None:
        await self.run_pipeline(TurnContext(self, activity), logic)

    def new_conversation(self) -> None:
        self.conversation = ConversationAccount(id=str(uuid.uuid4()))

    def join_activity(self) -> Activity:
        return self._activity(
            ActivityTypes.conversation_update, members_added=[USER, BOT],
        )

    def message_activity(self, text: str) -> Activity:
        return self._activity(ActivityTypes.message, text=text)

    async def send_activities(self, context, activities):
        for activity in activities:
            if activity.type == ActivityTypes.message and activity.text:
                print(f"\nBot: {activity.text}\n")
        return [ResourceResponse(id=activity.id or "") for activity in activities]

    async def update_activity(self, context, activity):
        raise NotImplementedError()

    async def delete_activity(self, context, reference: ConversationReference):
        raise NotImplementedError()


async def _chat_loop(adapter: ConsoleAdapter, bot) -> None:
    await adapter.process(adapter.join_activity(), bot.on_turn)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, "You: ")).strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye! Have a great day!")
            break

        if user_input.lower() == "new":
            adapter.new_conversation()
            print(f"\n>> New conversation started: {adapter.conversation.id[:8]}...\n")
            await adapter.process(adapter.join_activity(), bot.on_turn)
            continue

        await adapter.process(adapter.message_activity(user_input), bot.on_turn)


async def _run(debug: bool) -> None:
    settings = load_settings()
    bot, clients = build_bot(settings)
    try:
        await _chat_loop(ConsoleAdapter(), bot)
    finally:
        for client in clients:
            await client.aclose()
        if debug:
            logger.debug("Session metrics: %s", bot.metrics.snapshot())


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="Contoso Dental bot CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    args = parser.parse_args()

    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  Contoso Dental Bot - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'new' for a new conversation.")
    print("=" * 60 + "\n")

    try:
        asyncio.run(_run(args.debug))
    except KeyboardInterrupt:
        print("\n\nGoodbye!")


if __name__ == "__main__":
    main()
