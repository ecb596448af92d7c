"""
Transports for hosted chat-completion services.

A transport accepts a budget-fitted message list plus the system prompt
and yields the reply as a stream of text fragments.
"""

from .base import (
    BaseTransport,
    ChatRequest,
    TransportConfig,
    build_wire_messages,
    format_message,
)
from .openai_compat import OpenAITransport, map_openai_error

__all__ = [
    "BaseTransport",
    "ChatRequest",
    "TransportConfig",
    "build_wire_messages",
    "format_message",
    "OpenAITransport",
    "map_openai_error",
]
