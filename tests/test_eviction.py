"""Tests for history eviction."""

import math

import pytest

from contextchat.context import EvictionPolicy
from contextchat.context.eviction import messages_to_remove, validate_percent
from contextchat.exceptions import InvalidRetentionPercentageError
from tests.helpers import message_with_cost


@pytest.fixture
def policy():
    return EvictionPolicy()


class TestClear:
    def test_half_of_seven_removes_four(self, policy, history):
        remaining = policy.clear(history, 50)
        assert remaining == history[4:]
        assert len(remaining) == 3

    def test_full_clear_empties(self, policy, history):
        assert policy.clear(history, 100) == []

    def test_zero_keeps_everything(self, policy, history):
        assert policy.clear(history, 0) == history

    def test_small_percent_removes_at_least_one(self, policy, history):
        assert policy.clear(history, 1) == history[1:]

    def test_fractional_percent(self, policy, history):
        assert len(policy.clear(history, 12.5)) == 7 - math.ceil(7 * 0.125)

    def test_empty_history(self, policy):
        assert policy.clear([], 50) == []

    def test_returns_new_list(self, policy, history):
        remaining = policy.clear(history, 0)
        assert remaining is not history

    def test_keeps_newest_messages(self, policy, history):
        remaining = policy.clear(history, 30)
        assert remaining[-1] is history[-1]

    @pytest.mark.parametrize("percent", [-1, 100.01, 150, float("nan"), True, "50", None])
    def test_invalid_percent_rejected(self, policy, history, percent):
        with pytest.raises(InvalidRetentionPercentageError):
            policy.clear(history, percent)


class TestMessagesToRemove:
    @pytest.mark.parametrize(
        "count, percent, expected",
        [
            (7, 50, 4),
            (10, 25, 3),
            (3, 99, 3),
            (0, 100, 0),
            (4, 100, 4),
        ],
    )
    def test_counts(self, count, percent, expected):
        assert messages_to_remove(count, percent) == expected

    def test_validate_accepts_bounds(self):
        validate_percent(0)
        validate_percent(100)
        validate_percent(50.5)


class TestTrimToFit:
    def test_trims_to_selector_output(self, policy):
        history = [message_with_cost(c) for c in (50, 3000, 200, 100)]
        assert policy.trim_to_fit(history, 100) == history[1:]

    def test_fitting_history_unchanged(self, policy, history):
        assert policy.trim_to_fit(history, 100) == history

    def test_policies_are_independent(self, policy):
        # Clear counts messages, trim counts tokens
        history = [message_with_cost(1500), message_with_cost(10), message_with_cost(10)]
        assert len(policy.clear(history, 50)) == 1
        assert len(policy.trim_to_fit(history, 0)) == 3
