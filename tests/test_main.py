"""Tests for the console adapter behind the CLI chat."""

from __future__ import annotations

import pytest
from botbuilder.core import TurnContext

from dentabot.main import BOT, USER, ConsoleAdapter


@pytest.mark.asyncio
async def test_bot_replies_are_printed(capsys):
    adapter = ConsoleAdapter()

    async def logic(turn_context: TurnContext):
        await turn_context.send_activity(f"You said {turn_context.activity.text}")

    await adapter.process(adapter.message_activity("hello"), logic)

    assert "Bot: You said hello" in capsys.readouterr().out


def test_join_activity_adds_user_and_bot():
    activity = ConsoleAdapter().join_activity()

    assert [member.id for member in activity.members_added] == [USER.id, BOT.id]
    assert activity.recipient.id == BOT.id


def test_new_conversation_changes_id():
    adapter = ConsoleAdapter()
    first = adapter.conversation.id

    adapter.new_conversation()

    assert adapter.conversation.id != first
