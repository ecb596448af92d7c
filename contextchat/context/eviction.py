"""
History eviction policies.

Two independent ways of shrinking the stored conversation:

1. Automatic trim-to-fit: token based, re-runs the context selector
   after every appended message.
2. Manual clear: count based, drops a user-chosen percentage of the
   oldest messages.

The two policies do not agree in general. A clear of 50% keeps half of
the messages regardless of their size, while trim-to-fit keeps however
many of the newest messages fit the token budget. Neither is derived
from the other.
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import TYPE_CHECKING

from ..exceptions import InvalidRetentionPercentageError
from .selector import ContextSelector

if TYPE_CHECKING:
    from ..session.models import Message

logger = logging.getLogger(__name__)

FULL_CLEAR = 100


def validate_percent(percent: object) -> None:
    """
    Reject clear percentages outside [0, 100].

    Raises:
        InvalidRetentionPercentageError: For non-numbers, NaN, bools or
            values out of range
    """
    if isinstance(percent, bool) or not isinstance(percent, Real):
        raise InvalidRetentionPercentageError(percent)
    if math.isnan(percent) or not (0 <= percent <= FULL_CLEAR):
        raise InvalidRetentionPercentageError(percent)


def messages_to_remove(count: int, percent: float) -> int:
    """Number of oldest messages a ``percent`` clear removes from ``count``."""
    validate_percent(percent)
    if percent == FULL_CLEAR:
        return count
    return min(count, math.ceil(count * percent / 100))


class EvictionPolicy:
    """
    Applies the automatic and manual eviction policies.

    Both operations return a new list; the caller owns the history and
    decides what to persist.
    """

    def __init__(self, selector: ContextSelector | None = None):
        """
        Initialize eviction policy.

        Args:
            selector: Context selector used by trim_to_fit
        """
        self.selector = selector or ContextSelector()

    def trim_to_fit(
        self,
        history: list["Message"],
        base_prompt_tokens: int,
    ) -> list["Message"]:
        """
        Keep only the messages the context window would transmit.

        Args:
            history: Full stored history, oldest first
            base_prompt_tokens: Fixed cost of the system prompt

        Returns:
            The new stored history
        """
        kept = self.selector.select(history, base_prompt_tokens)
        evicted = len(history) - len(kept)
        if evicted:
            logger.info("Trimmed %d old messages to fit the context window", evicted)
        return kept

    def clear(self, history: list["Message"], percent: float) -> list["Message"]:
        """
        Drop the oldest ``ceil(n * percent / 100)`` messages.

        Args:
            history: Full stored history, oldest first
            percent: Share of messages to forget, 0-100; 100 empties the history

        Returns:
            The remaining newest messages

        Raises:
            InvalidRetentionPercentageError: If percent is outside [0, 100]
        """
        to_remove = messages_to_remove(len(history), percent)
        logger.info(
            "Manual clear of %s%% removes %d of %d messages",
            percent, to_remove, len(history),
        )
        return list(history[to_remove:])
