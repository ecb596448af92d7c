"""Tests for the Textual chat app."""

import pytest
from textual.widgets import Input

from contextchat.session import ConversationManager, MemoryHistoryStore
from contextchat.tui import ContextChatApp
from contextchat.tui.app import ChatMessage
from contextchat.tui.widgets import StatusBar
from tests.helpers import ScriptedTransport


async def submit(app, pilot, text):
    app.query_one("#prompt", Input).value = text
    await pilot.press("enter")
    await app.workers.wait_for_complete()
    await pilot.pause()


@pytest.fixture
def tui_manager(chat_config):
    return ConversationManager(
        transport=ScriptedTransport(fragments=["Hi", " back"]),
        store=MemoryHistoryStore(),
        config=chat_config,
    )


@pytest.mark.asyncio
async def test_chat_turn_updates_history_and_status(tui_manager):
    app = ContextChatApp(tui_manager, model="test-model")
    async with app.run_test() as pilot:
        await submit(app, pilot, "Hello")

        assert [m.content for m in tui_manager.history] == ["Hello", "Hi back"]
        roles = [w.role for w in app.query(ChatMessage)]
        assert roles == ["user", "assistant"]
        status = app.query_one("#status", StatusBar)
        assert status.used_tokens == tui_manager.status().used_tokens
        assert not status.busy


@pytest.mark.asyncio
async def test_clear_command(tui_manager):
    app = ContextChatApp(tui_manager)
    async with app.run_test() as pilot:
        await submit(app, pilot, "one")
        await submit(app, pilot, "/clear 50")

        assert len(tui_manager.history) == 1


@pytest.mark.asyncio
async def test_invalid_clear_keeps_history(tui_manager):
    app = ContextChatApp(tui_manager)
    async with app.run_test() as pilot:
        await submit(app, pilot, "one")
        await submit(app, pilot, "/clear 500")

        assert len(tui_manager.history) == 2


@pytest.mark.asyncio
async def test_too_long_message_is_not_shown(tui_manager):
    app = ContextChatApp(tui_manager)
    async with app.run_test() as pilot:
        await submit(app, pilot, "x" * 901)

        assert tui_manager.history == []
        assert [w.role for w in app.query(ChatMessage)] == ["system", "system"]
