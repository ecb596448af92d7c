"""Tests for context window selection."""

import pytest

from contextchat.context import (
    BudgetConfig,
    ContextSelector,
    TokenCounter,
    select_messages_for_context,
)
from contextchat.exceptions import ConfigValidationError, ContextBudgetError
from contextchat.session.models import Message
from tests.helpers import content_for_cost, message_with_cost


@pytest.fixture
def selector():
    return ContextSelector()


def costs(selector, messages):
    return [selector.counter.count_message(m) for m in messages]


class TestBudget:
    def test_default_safe_limit(self):
        assert BudgetConfig().safe_limit == 3400

    def test_safe_limit_floors(self):
        assert BudgetConfig(max_context_tokens=1001, safety_ratio=0.5).safe_limit == 500

    @pytest.mark.parametrize("ratio", [0, -0.1, 1.5])
    def test_invalid_ratio(self, ratio):
        with pytest.raises(ConfigValidationError):
            ContextSelector(budget=BudgetConfig(safety_ratio=ratio))


class TestSelect:
    def test_drops_oldest_that_does_not_fit(self, selector):
        history = [message_with_cost(c) for c in (50, 3000, 200, 100)]
        assert costs(selector, history) == [50, 3000, 200, 100]

        selected = select_messages_for_context(history, 100)

        assert selected == history[1:]

    def test_exact_limit_is_included(self, selector):
        history = [message_with_cost(3300)]
        assert selector.select(history, 100) == history

    def test_single_oversized_message_yields_empty(self, selector):
        history = [message_with_cost(4000)]
        assert selector.select(history, 0) == []

    def test_oversized_message_blocks_older_ones(self, selector):
        history = [message_with_cost(10), message_with_cost(4000), message_with_cost(10)]
        # Greedy walk stops at the first message that does not fit
        assert selector.select(history, 0) == history[2:]

    def test_empty_history(self, selector):
        assert selector.select([], 100) == []

    def test_base_prompt_above_limit_selects_nothing(self, selector):
        history = [message_with_cost(10)]
        assert selector.select(history, 3401) == []

    def test_result_is_suffix_in_order(self, selector):
        history = [
            Message.user(f"{i:02d}" + content_for_cost(500)[2:]) for i in range(10)
        ]
        assert len(set(m.content for m in history)) == 10

        selected = selector.select(history, 0)

        assert len(selected) == 6
        for kept, original in zip(selected, history[4:]):
            assert kept is original

    def test_does_not_mutate_input(self, selector):
        history = [message_with_cost(2000), message_with_cost(2000)]
        snapshot = list(history)
        selector.select(history, 0)
        assert history == snapshot

    def test_idempotent(self, selector):
        history = [message_with_cost(c) for c in (700, 900, 1200, 400, 800)]
        once = selector.select(history, 200)
        assert selector.select(once, 200) == once

    def test_greedy_maximality(self, selector):
        history = [message_with_cost(c) for c in (700, 900, 1200, 400, 800)]
        base = 200
        selected = selector.select(history, base)
        assert selector.fits(selected, base)
        if len(selected) < len(history):
            longer = history[-(len(selected) + 1):]
            assert not selector.fits(longer, base)

    def test_images_count_toward_budget(self, selector):
        history = [
            message_with_cost(2000),
            message_with_cost(800, image="data:image/jpeg;base64,AAAA"),
        ]
        assert costs(selector, history)[1] == 1450
        assert selector.select(history, 0) == history[1:]

    def test_custom_budget(self):
        selector = ContextSelector(
            counter=TokenCounter(),
            budget=BudgetConfig(max_context_tokens=100, safety_ratio=1.0),
        )
        history = [message_with_cost(60), message_with_cost(40)]
        assert selector.select(history, 0) == history
        assert selector.select(history, 1) == history[1:]


class TestBasePrompt:
    def test_fitting_prompt_accepted(self, selector):
        selector.validate_base_prompt(3400)

    def test_oversized_prompt_rejected(self, selector):
        with pytest.raises(ContextBudgetError):
            selector.validate_base_prompt(3401)


class TestTotals:
    def test_total_tokens_includes_base(self, selector):
        history = [message_with_cost(10), message_with_cost(20)]
        assert selector.total_tokens(history, 5) == 35
