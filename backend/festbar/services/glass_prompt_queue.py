"""Sequential glass prompts for bottles in a guest's cart.

Bottles flagged ``requires_glass_prompt`` ask the guest how many empty
glasses to bring along. Prompts are shown one at a time, strictly in the
order the items were added, and every queued item reaches the cart exactly
once whether the guest confirms or skips.
"""

import enum
import logging
from collections import deque
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Deque, Iterable, List, Optional, Tuple

from festbar.core.exceptions import NoPromptOpenError
from festbar.models.menu import GLASS_ITEM_IDS, GLASS_ITEM_NAMES, MenuItem

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Optional[MenuItem]]


class PromptState(str, enum.Enum):
    IDLE = "idle"
    PROMPTING = "prompting"


@dataclass
class CartLine:
    item_id: str
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class QueuedItem:
    """A bottle waiting for its glass prompt, resolved when it was enqueued."""

    item_id: str
    name: str
    unit_price: Decimal
    quantity: int
    glass_type: str
    glass_item_id: str
    glass_name: str
    glass_price: Decimal


class GlassPromptQueue:
    def __init__(self):
        self._queue: Deque[QueuedItem] = deque()
        self._cart: List[CartLine] = []

    @property
    def state(self) -> PromptState:
        return PromptState.PROMPTING if self._queue else PromptState.IDLE

    @property
    def current(self) -> Optional[QueuedItem]:
        """The item the guest is being asked about."""
        return self._queue[0] if self._queue else None

    @property
    def pending(self) -> List[QueuedItem]:
        """Items still waiting behind the current prompt."""
        return list(self._queue)[1:]

    @property
    def cart(self) -> List[CartLine]:
        return list(self._cart)

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self._cart), Decimal("0"))

    def enqueue(self, items: Iterable[Tuple[str, int]], resolve: Resolver) -> PromptState:
        """Add ``(item_id, quantity)`` pairs to the cart or the prompt queue.

        The whole batch is validated before anything is added, so a rejected
        batch leaves the queue and cart untouched.
        """
        resolved = []
        for item_id, quantity in items:
            if quantity <= 0:
                raise ValueError(f"Quantity for {item_id} must be positive")
            item = resolve(item_id)
            if item is None:
                raise ValueError(f"Unknown menu item: {item_id}")
            if item.is_sold_out:
                raise ValueError(f"{item.name} is sold out")
            resolved.append((item, quantity))

        for item, quantity in resolved:
            if item.requires_glass_prompt and item.glass_type in GLASS_ITEM_IDS:
                self._queue.append(self._queued(item, quantity, resolve))
            else:
                self._add(item.item_id, item.name, Decimal(item.unit_price), quantity)

        if self._queue:
            logger.debug(f"Glass prompt open for {self._queue[0].item_id}, {len(self._queue) - 1} waiting")
        return self.state

    def confirm(self, glasses: int) -> PromptState:
        """Answer the current prompt: commit the bottle plus ``glasses`` empty glasses."""
        if glasses < 0:
            raise ValueError("Number of glasses cannot be negative")
        if not self._queue:
            raise NoPromptOpenError("No glass prompt is open")

        entry = self._queue.popleft()
        self._add(entry.item_id, entry.name, entry.unit_price, entry.quantity)
        if glasses > 0:
            self._add(entry.glass_item_id, entry.glass_name, entry.glass_price, glasses)
        return self.state

    def skip(self) -> PromptState:
        """Dismiss the current prompt; the bottle is still added, without glasses."""
        return self.confirm(0)

    def _queued(self, item: MenuItem, quantity: int, resolve: Resolver) -> QueuedItem:
        glass_item_id = GLASS_ITEM_IDS[item.glass_type]
        glass = resolve(glass_item_id)
        return QueuedItem(
            item_id=item.item_id,
            name=item.name,
            unit_price=Decimal(item.unit_price),
            quantity=quantity,
            glass_type=item.glass_type,
            glass_item_id=glass_item_id,
            glass_name=glass.name if glass else GLASS_ITEM_NAMES[glass_item_id],
            glass_price=Decimal(glass.unit_price) if glass else Decimal("0"),
        )

    def _add(self, item_id: str, name: str, unit_price: Decimal, quantity: int) -> None:
        for line in self._cart:
            if line.item_id == item_id:
                line.quantity += quantity
                return
        self._cart.append(CartLine(item_id=item_id, name=name, unit_price=unit_price, quantity=quantity))
