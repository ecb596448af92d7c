"""
Conversation state for contextchat.

Provides the message model, history persistence and the conversation
manager that ties the context window to a transport.

Usage:
    from contextchat.session import ConversationManager, SQLiteHistoryStore

    manager = ConversationManager(transport, store=SQLiteHistoryStore(path))
    manager.load()
    reply = await manager.send("Hello")
    manager.clear(50)
"""

from .models import Message, strip_stale_images, ROLES
from .store import (
    DEFAULT_CONVERSATION_ID,
    HistoryStore,
    MemoryHistoryStore,
    SQLiteHistoryStore,
)
from .manager import ChatConfig, ConversationManager, DEFAULT_SYSTEM_PROMPT

__all__ = [
    "Message",
    "strip_stale_images",
    "ROLES",
    "DEFAULT_CONVERSATION_ID",
    "HistoryStore",
    "MemoryHistoryStore",
    "SQLiteHistoryStore",
    "ChatConfig",
    "ConversationManager",
    "DEFAULT_SYSTEM_PROMPT",
]
