"""
Context usage monitoring and threshold detection.

Reports how much of the model's context the current history uses and
flags when the user should consider clearing it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..exceptions import ConfigValidationError
from .selector import ContextSelector

if TYPE_CHECKING:
    from ..session.models import Message


@dataclass(frozen=True)
class ThresholdConfig:
    """
    Usage thresholds.

    ``moderate`` and ``high`` are fractions of the nominal context ceiling
    and only pick the status label. ``warn`` is a fraction of the safe
    limit, the point where older messages start being trimmed.
    """

    moderate: float = 0.70
    high: float = 0.85    # matches the selector's safety ratio
    warn: float = 0.90    # of the safe limit, suggest clearing the history

    def validate(self) -> None:
        """Validate threshold values."""
        if not (0 < self.moderate < self.high <= 1.0):
            raise ConfigValidationError(
                "Thresholds must be: 0 < moderate < high <= 1.0",
                field="context"
            )
        if not (0 < self.warn <= 1.0):
            raise ConfigValidationError(
                "warn_ratio must be in (0, 1]",
                field="context.warn_ratio"
            )


@dataclass(frozen=True)
class ContextStatus:
    """Snapshot of context usage."""

    used_tokens: int
    limit_tokens: int
    safe_limit: int
    usage_percent: float  # 0.0 to 1.0+
    message_count: int
    status: str
    near_limit: bool

    @property
    def remaining_tokens(self) -> int:
        """Tokens left under the safe limit (negative when over)."""
        return self.safe_limit - self.used_tokens

    def to_dict(self) -> dict:
        return {
            "used_tokens": self.used_tokens,
            "limit_tokens": self.limit_tokens,
            "safe_limit": self.safe_limit,
            "remaining_tokens": self.remaining_tokens,
            "usage_percent": self.usage_percent,
            "message_count": self.message_count,
            "status": self.status,
            "near_limit": self.near_limit,
        }


class ContextMonitor:
    """
    Computes context usage for display.

    Usage is measured against the nominal ceiling, as shown to the user
    ("Context: 1,234/4,000 tokens"), while the near-limit warning is
    measured against the safe limit the selector enforces.
    """

    def __init__(
        self,
        selector: ContextSelector | None = None,
        thresholds: ThresholdConfig | None = None,
    ):
        """
        Initialize context monitor.

        Args:
            selector: Selector providing the estimator and budget
            thresholds: Threshold configuration
        """
        self.selector = selector or ContextSelector()
        self.thresholds = thresholds or ThresholdConfig()
        self.thresholds.validate()

    def get_status(
        self,
        messages: list["Message"],
        base_prompt_tokens: int,
    ) -> ContextStatus:
        """
        Get detailed usage information.

        Args:
            messages: Current conversation history
            base_prompt_tokens: Fixed cost of the system prompt

        Returns:
            ContextStatus snapshot
        """
        used = self.selector.total_tokens(messages, base_prompt_tokens)
        limit = self.selector.budget.max_context_tokens
        usage = used / limit if limit > 0 else 0.0
        safe_limit = self.selector.safe_limit
        near_limit = used > self.thresholds.warn * safe_limit

        return ContextStatus(
            used_tokens=used,
            limit_tokens=limit,
            safe_limit=safe_limit,
            usage_percent=usage,
            message_count=len(messages),
            status=self._get_status_label(usage, near_limit),
            near_limit=near_limit,
        )

    def format_usage(self, messages: list["Message"], base_prompt_tokens: int) -> str:
        """
        Format usage as human-readable string.

        Returns:
            Formatted string like "1,234 / 4,000 tokens (31%)"
        """
        status = self.get_status(messages, base_prompt_tokens)
        return (
            f"{status.used_tokens:,} / {status.limit_tokens:,} tokens "
            f"({status.usage_percent * 100:.0f}%)"
        )

    def _get_status_label(self, usage: float, near_limit: bool) -> str:
        """Get human-readable status label."""
        if near_limit:
            return "critical"
        elif usage >= self.thresholds.high:
            return "high"
        elif usage >= self.thresholds.moderate:
            return "moderate"
        elif usage >= 0.5:
            return "normal"
        else:
            return "low"
