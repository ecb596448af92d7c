"""
Context window selection.

Decides which suffix of the conversation history fits in the prompt
sent upstream.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..exceptions import ConfigValidationError, ContextBudgetError
from .counter import TokenCounter

if TYPE_CHECKING:
    from ..session.models import Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetConfig:
    """Token budget of the host model."""

    # Nominal context ceiling of the model
    max_context_tokens: int = 4000

    # Fraction of the ceiling actually used; the rest is headroom for
    # estimator error and the model's reply
    safety_ratio: float = 0.85

    @property
    def safe_limit(self) -> int:
        """Working threshold enforced by the selector."""
        return math.floor(self.max_context_tokens * self.safety_ratio)

    def validate(self) -> None:
        """Validate budget values."""
        if self.max_context_tokens <= 0:
            raise ConfigValidationError(
                "max_context_tokens must be a positive integer",
                field="context.max_context_tokens"
            )
        if not (0 < self.safety_ratio <= 1.0):
            raise ConfigValidationError(
                "safety_ratio must be in (0, 1]",
                field="context.safety_ratio"
            )


class ContextSelector:
    """
    Most-recent-first greedy selection of messages.

    Walks the history from newest to oldest, keeps every message that
    still fits under the safe limit and stops at the first one that does
    not. Only a contiguous prefix of the oldest messages is ever dropped.
    """

    def __init__(
        self,
        counter: TokenCounter | None = None,
        budget: BudgetConfig | None = None,
    ):
        """
        Initialize selector.

        Args:
            counter: Token estimator
            budget: Token budget
        """
        self.counter = counter or TokenCounter()
        self.budget = budget or BudgetConfig()
        self.budget.validate()

    @property
    def safe_limit(self) -> int:
        return self.budget.safe_limit

    def validate_base_prompt(self, base_prompt_tokens: int) -> None:
        """
        Check once at startup that the system prompt leaves room for history.

        Raises:
            ContextBudgetError: If the prompt alone exceeds the safe limit
        """
        if base_prompt_tokens > self.safe_limit:
            raise ContextBudgetError(base_prompt_tokens, self.safe_limit)

    def select(
        self,
        history: list["Message"],
        base_prompt_tokens: int,
    ) -> list["Message"]:
        """
        Select the newest messages that fit the safe limit.

        Args:
            history: Conversation history, oldest first
            base_prompt_tokens: Fixed cost of the system prompt

        Returns:
            New list holding a chronological suffix of ``history``
        """
        total = base_prompt_tokens
        selected = []

        for message in reversed(history):
            cost = self.counter.count_message(message)
            if total + cost > self.safe_limit:
                break
            total += cost
            selected.append(message)

        selected.reverse()

        dropped = len(history) - len(selected)
        if dropped:
            logger.debug(
                "Context window dropped %d of %d messages (%d / %d tokens)",
                dropped, len(history), total, self.safe_limit,
            )
        return selected

    def total_tokens(self, messages: list["Message"], base_prompt_tokens: int) -> int:
        """Total estimated cost of a prompt built from ``messages``."""
        return base_prompt_tokens + self.counter.count_messages(messages)

    def fits(self, messages: list["Message"], base_prompt_tokens: int) -> bool:
        """Check whether ``messages`` fit the safe limit as a whole."""
        return self.total_tokens(messages, base_prompt_tokens) <= self.safe_limit


def select_messages_for_context(
    history: list["Message"],
    base_prompt_tokens: int,
    counter: TokenCounter | None = None,
    budget: BudgetConfig | None = None,
) -> list["Message"]:
    """
    Select the chronological suffix of ``history`` that fits the budget.

    Args:
        history: Conversation history, oldest first
        base_prompt_tokens: Fixed cost of the system prompt
        counter: Optional token estimator (default calibration otherwise)
        budget: Optional budget (4000 tokens at 85% otherwise)

    Returns:
        Selected messages, oldest first
    """
    return ContextSelector(counter=counter, budget=budget).select(
        history, base_prompt_tokens
    )
