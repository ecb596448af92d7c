"""Test helpers shared across modules."""

import asyncio
from datetime import datetime
from typing import AsyncIterator

from contextchat.session.models import Message
from contextchat.transport import BaseTransport, ChatRequest


def content_for_cost(cost: int, overhead: int = 4, chars_per_token: int = 3) -> str:
    """Text whose message estimate under the default calibration is ``cost``."""
    return "x" * ((cost - overhead) * chars_per_token)


def message_with_cost(cost: int, role: str = "user", image: str | None = None) -> Message:
    return Message(
        role=role,
        content=content_for_cost(cost),
        timestamp=datetime.now(),
        image=image,
    )


class ScriptedTransport(BaseTransport):
    """Transport that replays canned fragments, then optionally raises."""

    name = "scripted"
    display_name = "Scripted"

    def __init__(
        self,
        fragments: list[str] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        super().__init__()
        self.fragments = fragments if fragments is not None else ["Hello", " there"]
        self.error = error
        self.delay = delay
        self.requests: list[ChatRequest] = []

    async def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        for fragment in self.fragments:
            yield fragment
        if self.error is not None:
            raise self.error
