"""
Base transport class for chat-completion services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator

if TYPE_CHECKING:
    from ..session.models import Message


# Sent with an image when the user typed no text
IMAGE_ONLY_PROMPT = "Please analyze this image."


@dataclass
class TransportConfig:
    """Configuration for a transport."""

    base_url: str = "https://router.huggingface.co/v1"
    api_key: str = ""
    model: str = "meta-llama/Llama-3.2-11B-Vision-Instruct"

    # Sampling options
    max_tokens: int = 1000
    temperature: float = 0.7
    top_p: float = 0.95

    # Extra options passed through to the client
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatRequest:
    """A finalized, budget-fitted request."""

    system_prompt: str
    messages: list["Message"]
    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None


def format_message(message: "Message") -> dict[str, Any]:
    """
    Convert one message to the chat-completion wire shape.

    User turns with an image become multi-part content; everything else
    is a plain ``{role, content}`` pair.
    """
    wire = message.to_wire()
    image = wire.pop("image", None)
    if image and message.role == "user":
        wire["content"] = [
            {"type": "text", "text": message.content or IMAGE_ONLY_PROMPT},
            {
                "type": "image_url",
                "image_url": {"url": image, "detail": "high"},
            },
        ]
    return wire


def build_wire_messages(request: ChatRequest) -> list[dict[str, Any]]:
    """
    Build the message list sent upstream.

    Args:
        request: Fitted chat request

    Returns:
        System prompt first, then every selected message in order
    """
    wire = [{"role": "system", "content": request.system_prompt}]
    for msg in request.messages:
        if msg.role == "system":
            continue
        wire.append(format_message(msg))
    return wire


class BaseTransport(ABC):
    """
    Base class for chat-completion transports.

    Subclass and implement:
    - name: Transport identifier
    - stream(): Yield reply fragments as they arrive
    """

    name: str = "base"
    display_name: str = "Base Transport"

    def __init__(self, config: TransportConfig | None = None):
        self.config = config or TransportConfig()

    @abstractmethod
    def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        """
        Stream the reply to a request.

        Args:
            request: Fitted chat request

        Yields:
            Text fragments, in order

        Raises:
            TransportError: Or a subclass, on failure
        """

    async def complete(self, request: ChatRequest) -> str:
        """Collect the whole streamed reply."""
        parts = []
        async for fragment in self.stream(request):
            parts.append(fragment)
        return "".join(parts)
