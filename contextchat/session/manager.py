"""
Conversation manager for contextchat.

Drives one chat turn: append the user message, fit the history to the
context window, stream the reply, fit again and persist.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable

from ..context import (
    ContextMonitor,
    ContextSelector,
    ContextStatus,
    EvictionPolicy,
    TokenCounter,
    validate_percent,
)
from ..context.eviction import FULL_CLEAR
from ..exceptions import (
    ConversationBusyError,
    EmptyMessageError,
    MessageTooLargeError,
    MessageTooLongError,
    RequestTimeoutError,
    StorageError,
    TransportError,
)
from ..transport import BaseTransport, ChatRequest
from .models import DEFAULT_IMAGE_MAX_AGE, Message, strip_stale_images
from .store import DEFAULT_CONVERSATION_ID, HistoryStore, MemoryHistoryStore

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """You are Hendrix, a helpful AI assistant.

You keep a running context of the conversation, but the user may erase it to start over.
Answer clearly and directly, and use the current context to personalize your answers."""


@dataclass
class ChatConfig:
    """Configuration for the chat loop."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_message_length: int = 900
    image_max_age: timedelta = field(default=DEFAULT_IMAGE_MAX_AGE)

    # Deadline for one streamed reply, in seconds
    request_timeout: float = 30.0


def failure_reply(had_image: bool) -> str:
    """Text of the assistant message recorded when a turn fails."""
    hint = "This may have been caused by a problem with the image. " if had_image else ""
    return (
        "Sorry, something went wrong while processing your message. "
        f"{hint}Please try again."
    )


class ConversationManager:
    """
    High-level chat interface around the context window.

    Owns the in-memory history of a single conversation and keeps the
    persisted copy equal to what would be transmitted upstream.
    """

    def __init__(
        self,
        transport: BaseTransport | None = None,
        store: HistoryStore | None = None,
        config: ChatConfig | None = None,
        selector: ContextSelector | None = None,
        monitor: ContextMonitor | None = None,
        conversation_id: str = DEFAULT_CONVERSATION_ID,
    ):
        """
        Initialize conversation manager.

        Args:
            transport: Chat-completion transport (history-only use if omitted)
            store: History store (in-memory if omitted)
            config: Chat configuration
            selector: Context selector carrying the estimator and budget
            monitor: Usage monitor for status display
            conversation_id: Key of the stored conversation

        Raises:
            ContextBudgetError: If the system prompt alone exceeds the budget
        """
        self.transport = transport
        self.store = store or MemoryHistoryStore()
        self.config = config or ChatConfig()
        self.selector = selector or ContextSelector()
        self.eviction = EvictionPolicy(self.selector)
        self.monitor = monitor or ContextMonitor(self.selector)
        self.conversation_id = conversation_id

        self.base_prompt_tokens = self.counter.count(self.config.system_prompt)
        self.selector.validate_base_prompt(self.base_prompt_tokens)

        self._history: list[Message] = []
        self._busy = False

    @property
    def counter(self) -> TokenCounter:
        return self.selector.counter

    @property
    def history(self) -> list[Message]:
        """Copy of the current history, oldest first."""
        return list(self._history)

    @property
    def busy(self) -> bool:
        """True while a reply is streaming."""
        return self._busy

    def load(self) -> list[Message]:
        """
        Load the stored conversation and fit it to the current budget.

        Returns:
            The loaded history
        """
        stored = self.store.load(self.conversation_id)
        self._history = self._fit(stored)
        if len(self._history) != len(stored):
            self.store.save(self.conversation_id, self._history)
        logger.info("Loaded %d messages", len(self._history))
        return self.history

    def status(self) -> ContextStatus:
        """Current context usage."""
        return self.monitor.get_status(self._history, self.base_prompt_tokens)

    async def send(
        self,
        text: str,
        image: str | None = None,
        on_fragment: Callable[[str], None] | None = None,
    ) -> Message:
        """
        Send one user turn and wait for the streamed reply.

        Args:
            text: User text (may be empty when an image is attached)
            image: Optional image handle, usually a data: URI
            on_fragment: Called with each reply fragment as it arrives

        Returns:
            The assistant reply appended to the history

        Raises:
            EmptyMessageError: Neither text nor image given
            ConversationBusyError: A previous reply is still streaming
            MessageTooLongError: Text longer than max_message_length
            MessageTooLargeError: The turn cannot fit the context window
            TransportError: Upstream failure (timeout, connectivity, payload)
        """
        if self.transport is None:
            raise TransportError("No chat transport configured")

        content = (text or "").strip()
        if not content and not image:
            raise EmptyMessageError()
        if self._busy:
            raise ConversationBusyError()
        if len(content) > self.config.max_message_length:
            raise MessageTooLongError(len(content), self.config.max_message_length)

        user_message = Message.user(content, image=image)
        fitted = self._fit(self._history + [user_message])
        if not fitted or fitted[-1] is not user_message:
            raise MessageTooLargeError(
                self.counter.count_message(user_message),
                self.selector.safe_limit - self.base_prompt_tokens,
            )
        self._history = fitted

        request = ChatRequest(
            system_prompt=self.config.system_prompt,
            messages=list(fitted),
        )

        self._busy = True
        try:
            reply_text = await asyncio.wait_for(
                self._collect(request, on_fragment),
                timeout=self.config.request_timeout,
            )
        except asyncio.TimeoutError as e:
            self._record_failure(image is not None)
            raise RequestTimeoutError(self.config.request_timeout) from e
        except TransportError:
            self._record_failure(image is not None)
            raise
        finally:
            self._busy = False

        reply = Message.assistant(reply_text.strip())
        self._append(reply)
        return reply

    def clear(self, percent: float) -> int:
        """
        Forget a percentage of the oldest messages.

        Args:
            percent: 0-100; 100 also deletes the persisted history

        Returns:
            Number of messages removed

        Raises:
            InvalidRetentionPercentageError: If percent is outside [0, 100]
        """
        validate_percent(percent)
        before = len(self._history)

        if percent == FULL_CLEAR:
            self._history = []
            self.store.clear(self.conversation_id)
        else:
            self._history = self.eviction.clear(self._history, percent)
            self.store.save(self.conversation_id, self._history)

        return before - len(self._history)

    def reset(self) -> int:
        """Discard the whole conversation."""
        return self.clear(FULL_CLEAR)

    async def _collect(
        self,
        request: ChatRequest,
        on_fragment: Callable[[str], None] | None,
    ) -> str:
        parts = []
        async for fragment in self.transport.stream(request):
            parts.append(fragment)
            if on_fragment:
                on_fragment(fragment)
        return "".join(parts)

    def _fit(self, messages: list[Message]) -> list[Message]:
        """Strip stale images, then trim to the context window."""
        fresh = strip_stale_images(messages, max_age=self.config.image_max_age)
        return self.eviction.trim_to_fit(fresh, self.base_prompt_tokens)

    def _append(self, message: Message) -> None:
        self._history = self._fit(self._history + [message])
        self.store.save(self.conversation_id, self._history)

    def _record_failure(self, had_image: bool) -> None:
        """Record the apology reply; a storage failure must not mask the turn error."""
        logger.warning("Turn failed, recording apology reply")
        try:
            self._append(Message.assistant(failure_reply(had_image)))
        except StorageError as e:
            logger.error("Could not persist apology reply: %s", e)
