"""
Token counting utilities for context management.

Provides approximate token counting for the hosted vision model.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..exceptions import ConfigValidationError

if TYPE_CHECKING:
    from ..session.models import Message


@dataclass(frozen=True)
class EstimatorConfig:
    """Calibration constants for the length-based token heuristic."""

    # Characters per token (conservative for non-English text)
    chars_per_token: int = 3

    # Flat vision-encoder cost of one attached image (512 plus headroom)
    image_token_cost: int = 650

    # Role and metadata framing added to every message
    per_message_overhead: int = 4

    def validate(self) -> None:
        """Validate calibration values."""
        if self.chars_per_token <= 0:
            raise ConfigValidationError(
                "chars_per_token must be a positive integer",
                field="context.chars_per_token"
            )
        if self.image_token_cost < 0:
            raise ConfigValidationError(
                "image_token_cost must not be negative",
                field="context.image_token_cost"
            )
        if self.per_message_overhead < 0:
            raise ConfigValidationError(
                "per_message_overhead must not be negative",
                field="context.per_message_overhead"
            )


class TokenCounter:
    """
    Token counter for context management.

    Uses a simple heuristic: ``ceil(len(text) / chars_per_token)``.
    This deliberately ignores the real tokenizer; it only promises that
    longer text never costs less than its prefixes and that the same
    message always costs the same.
    """

    def __init__(self, config: EstimatorConfig | None = None):
        """
        Initialize token counter.

        Args:
            config: Calibration constants (defaults to EstimatorConfig())
        """
        self.config = config or EstimatorConfig()
        self.config.validate()

    def count(self, text: str) -> int:
        """
        Count approximate tokens in text.

        Args:
            text: Text to count tokens for

        Returns:
            Approximate token count
        """
        if not text:
            return 0
        return math.ceil(len(text) / self.config.chars_per_token)

    def count_message(self, message: "Message") -> int:
        """
        Count tokens for one message including image and framing.

        Args:
            message: Message to estimate

        Returns:
            Approximate token count
        """
        total = self.count(message.content)
        if message.image:
            total += self.config.image_token_cost
        total += self.config.per_message_overhead
        return total

    def count_messages(self, messages: list["Message"]) -> int:
        """
        Count total tokens across messages.

        Args:
            messages: List of Message objects

        Returns:
            Total approximate token count
        """
        return sum(self.count_message(msg) for msg in messages)


_default_counter = TokenCounter()


def estimate_tokens(text: str) -> int:
    """Estimate tokens for text with the default calibration."""
    return _default_counter.count(text)


def estimate_message_tokens(message: "Message") -> int:
    """Estimate tokens for a message with the default calibration."""
    return _default_counter.count_message(message)
