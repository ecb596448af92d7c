"""
Context management for contextchat.

Provides token estimation, context window selection and history
eviction to stay within the model's token budget.
"""

from .counter import (
    EstimatorConfig,
    TokenCounter,
    estimate_tokens,
    estimate_message_tokens,
)
from .selector import BudgetConfig, ContextSelector, select_messages_for_context
from .eviction import EvictionPolicy, validate_percent, messages_to_remove
from .monitor import ContextMonitor, ContextStatus, ThresholdConfig

__all__ = [
    "EstimatorConfig",
    "TokenCounter",
    "estimate_tokens",
    "estimate_message_tokens",
    "BudgetConfig",
    "ContextSelector",
    "select_messages_for_context",
    "EvictionPolicy",
    "validate_percent",
    "messages_to_remove",
    "ContextMonitor",
    "ContextStatus",
    "ThresholdConfig",
]
