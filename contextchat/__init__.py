"""
contextchat - Terminal chat client with a token-budgeted context window.

Forwards user turns to a hosted chat-completion endpoint, streams the
replies, and keeps the conversation inside the model's token budget.

Features:
- Length-based token estimation with a flat image surcharge
- Most-recent-first context window selection under a safe limit
- Automatic trim-to-fit and manual percentage clearing of history
- SQLite history persistence
- Streaming transport for OpenAI-compatible endpoints
- Textual TUI with live context usage

Example usage:
    # CLI
    $ contextchat
    $ contextchat --ask "Summarize our chat"
    $ contextchat --clear 50

    # Python API
    from contextchat import ConversationManager, select_messages_for_context
    from contextchat.transport import OpenAITransport

    manager = ConversationManager(OpenAITransport(config))
    reply = await manager.send("Hello")
"""

__version__ = "0.1.0"

from .context import (
    BudgetConfig,
    ContextMonitor,
    ContextSelector,
    ContextStatus,
    EstimatorConfig,
    EvictionPolicy,
    TokenCounter,
    estimate_message_tokens,
    estimate_tokens,
    select_messages_for_context,
)
from .session import (
    ChatConfig,
    ConversationManager,
    HistoryStore,
    MemoryHistoryStore,
    Message,
    SQLiteHistoryStore,
)
from .exceptions import (
    ContextChatError,
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    ContextError,
    ContextBudgetError,
    InvalidRetentionPercentageError,
    MessageTooLargeError,
    ChatInputError,
    EmptyMessageError,
    MessageTooLongError,
    ConversationBusyError,
    TransportError,
    RequestTimeoutError,
    ConnectivityError,
    PayloadError,
    ImageProcessingError,
    StorageError,
)

__all__ = [
    # Version
    "__version__",
    # Context window
    "BudgetConfig",
    "ContextMonitor",
    "ContextSelector",
    "ContextStatus",
    "EstimatorConfig",
    "EvictionPolicy",
    "TokenCounter",
    "estimate_message_tokens",
    "estimate_tokens",
    "select_messages_for_context",
    # Conversation
    "ChatConfig",
    "ConversationManager",
    "HistoryStore",
    "MemoryHistoryStore",
    "Message",
    "SQLiteHistoryStore",
    # Exceptions - Base
    "ContextChatError",
    # Exceptions - Config
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    # Exceptions - Context
    "ContextError",
    "ContextBudgetError",
    "InvalidRetentionPercentageError",
    "MessageTooLargeError",
    # Exceptions - Chat input
    "ChatInputError",
    "EmptyMessageError",
    "MessageTooLongError",
    "ConversationBusyError",
    # Exceptions - Transport
    "TransportError",
    "RequestTimeoutError",
    "ConnectivityError",
    "PayloadError",
    "ImageProcessingError",
    # Exceptions - Storage
    "StorageError",
]
