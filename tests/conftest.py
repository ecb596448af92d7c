"""Shared fixtures for contextchat tests."""

from datetime import datetime, timedelta

import pytest

from contextchat.exceptions import TransportError
from contextchat.session import ChatConfig, ConversationManager, MemoryHistoryStore
from contextchat.session.models import Message
from tests.helpers import ScriptedTransport


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def failing_transport():
    return ScriptedTransport(fragments=[], error=TransportError("boom"))


@pytest.fixture
def store():
    return MemoryHistoryStore()


@pytest.fixture
def chat_config():
    return ChatConfig(system_prompt="You are a test assistant.", request_timeout=1.0)


@pytest.fixture
def manager(transport, store, chat_config):
    return ConversationManager(transport=transport, store=store, config=chat_config)


@pytest.fixture
def history():
    """Seven alternating messages, one minute apart."""
    start = datetime(2024, 1, 1, 12, 0, 0)
    return [
        Message(
            role="user" if i % 2 == 0 else "assistant",
            content=f"message {i}",
            timestamp=start + timedelta(minutes=i),
        )
        for i in range(7)
    ]
