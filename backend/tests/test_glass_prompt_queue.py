"""Tests for the glass prompt queue."""

from decimal import Decimal

import pytest

from festbar.core.exceptions import NoPromptOpenError
from festbar.models.menu import GLASSES_CATEGORY, MenuItem
from festbar.services.glass_prompt_queue import GlassPromptQueue, PromptState

MENU = {
    item.item_id: item
    for item in [
        MenuItem(item_id="pils", name="Pils", unit_price=Decimal("3.00"), category="bier",
                 requires_glass_prompt=False, is_sold_out=False),
        MenuItem(item_id="flasche-wasser", name="Flasche Wasser", unit_price=Decimal("5.00"),
                 category="softdrinks", glass_type="beer", requires_glass_prompt=True, is_sold_out=False),
        MenuItem(item_id="flasche-wein-blanc", name="Flasche Blanc de noir", unit_price=Decimal("20.00"),
                 category="wein", glass_type="wine", requires_glass_prompt=True, is_sold_out=False),
        MenuItem(item_id="flasche-sekt", name="Flasche Sekt", unit_price=Decimal("22.00"),
                 category="wein", glass_type="sekt", requires_glass_prompt=True, is_sold_out=False),
        MenuItem(item_id="radler", name="Radler", unit_price=Decimal("3.50"), category="bier",
                 requires_glass_prompt=False, is_sold_out=True),
        MenuItem(item_id="glas-wein-leer", name="Weinglas (leer)", unit_price=Decimal("0.00"),
                 category=GLASSES_CATEGORY, glass_type="wine", requires_glass_prompt=False, is_sold_out=False),
    ]
}


def resolve(item_id):
    return MENU.get(item_id)


def cart_quantities(queue):
    return {line.item_id: line.quantity for line in queue.cart}


@pytest.fixture
def queue():
    return GlassPromptQueue()


class TestEnqueue:
    def test_items_without_prompt_go_straight_to_cart(self, queue):
        state = queue.enqueue([("pils", 2)], resolve)
        assert state is PromptState.IDLE
        assert queue.current is None
        assert cart_quantities(queue) == {"pils": 2}

    def test_bottle_opens_prompt(self, queue):
        state = queue.enqueue([("pils", 1), ("flasche-wein-blanc", 1)], resolve)
        assert state is PromptState.PROMPTING
        assert queue.current.item_id == "flasche-wein-blanc"
        assert queue.pending == []
        # The bottle is not in the cart until the prompt is answered
        assert cart_quantities(queue) == {"pils": 1}

    def test_unknown_item_rejects_the_whole_batch(self, queue):
        with pytest.raises(ValueError):
            queue.enqueue([("pils", 1), ("kaffee", 1)], resolve)
        assert queue.cart == []
        assert queue.state is PromptState.IDLE

    def test_sold_out_item(self, queue):
        with pytest.raises(ValueError, match="sold out"):
            queue.enqueue([("radler", 1)], resolve)

    def test_quantity_must_be_positive(self, queue):
        with pytest.raises(ValueError):
            queue.enqueue([("pils", 0)], resolve)


class TestPrompts:
    def test_prompts_are_shown_one_by_one_in_order(self, queue):
        queue.enqueue(
            [("flasche-sekt", 1), ("pils", 3), ("flasche-wasser", 2), ("flasche-wein-blanc", 1)],
            resolve,
        )

        seen = []
        while queue.state is PromptState.PROMPTING:
            seen.append(queue.current.item_id)
            assert len(queue.pending) == 3 - len(seen)
            queue.confirm(1)

        assert seen == ["flasche-sekt", "flasche-wasser", "flasche-wein-blanc"]
        assert cart_quantities(queue) == {
            "pils": 3,
            "flasche-sekt": 1,
            "glas-sekt-leer": 1,
            "flasche-wasser": 2,
            "glas-normal": 1,
            "flasche-wein-blanc": 1,
            "glas-wein-leer": 1,
        }

    def test_confirm_commits_full_quantity_and_glasses(self, queue):
        queue.enqueue([("flasche-wein-blanc", 2)], resolve)
        state = queue.confirm(4)

        assert state is PromptState.IDLE
        assert cart_quantities(queue) == {"flasche-wein-blanc": 2, "glas-wein-leer": 4}
        glass = next(line for line in queue.cart if line.item_id == "glas-wein-leer")
        assert glass.name == "Weinglas (leer)"
        assert glass.unit_price == Decimal("0.00")

    def test_skip_keeps_the_bottle(self, queue):
        queue.enqueue([("flasche-sekt", 1)], resolve)
        queue.skip()
        assert cart_quantities(queue) == {"flasche-sekt": 1}

    def test_zero_glasses_is_like_skip(self, queue):
        queue.enqueue([("flasche-sekt", 1)], resolve)
        queue.confirm(0)
        assert cart_quantities(queue) == {"flasche-sekt": 1}

    def test_glass_without_menu_entry_uses_default_name(self, queue):
        # glas-sekt-leer is not part of MENU
        queue.enqueue([("flasche-sekt", 1)], resolve)
        queue.confirm(2)
        glass = next(line for line in queue.cart if line.item_id == "glas-sekt-leer")
        assert glass.name == "Sektglas (leer)"
        assert glass.unit_price == Decimal("0")

    def test_repeated_items_are_merged(self, queue):
        queue.enqueue([("flasche-wein-blanc", 1), ("flasche-wein-blanc", 1)], resolve)
        queue.confirm(2)
        queue.confirm(3)
        assert cart_quantities(queue) == {"flasche-wein-blanc": 2, "glas-wein-leer": 5}
        assert len(queue.cart) == 2

    def test_enqueue_while_prompting_appends(self, queue):
        queue.enqueue([("flasche-sekt", 1)], resolve)
        queue.enqueue([("flasche-wasser", 1), ("pils", 1)], resolve)

        assert queue.current.item_id == "flasche-sekt"
        assert [entry.item_id for entry in queue.pending] == ["flasche-wasser"]
        assert cart_quantities(queue) == {"pils": 1}

    def test_answer_without_prompt(self, queue):
        with pytest.raises(NoPromptOpenError):
            queue.confirm(1)
        with pytest.raises(NoPromptOpenError):
            queue.skip()

    def test_negative_glasses(self, queue):
        queue.enqueue([("flasche-sekt", 1)], resolve)
        with pytest.raises(ValueError):
            queue.confirm(-1)
        assert queue.current.item_id == "flasche-sekt"

    def test_total(self, queue):
        queue.enqueue([("pils", 2), ("flasche-sekt", 1)], resolve)
        queue.confirm(2)
        assert queue.total == Decimal("28.00")
