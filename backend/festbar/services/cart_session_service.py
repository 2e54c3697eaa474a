"""In-process cart sessions for table devices."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional

from festbar.core.exceptions import PromptPendingError
from festbar.db.base import utcnow
from festbar.schemas.order import OrderCreate, OrderLineCreate
from festbar.services.glass_prompt_queue import GlassPromptQueue, PromptState

logger = logging.getLogger(__name__)

SESSION_MAX_AGE = timedelta(hours=2)


@dataclass
class CartSession:
    session_id: str
    table_number: int
    queue: GlassPromptQueue = field(default_factory=GlassPromptQueue)
    created_at: datetime = field(default_factory=utcnow)
    # Held across every queue mutation and checkout of this cart
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class CartSessionStore:
    """Carts live in memory only; a restart empties every open cart."""

    def __init__(self, max_age: timedelta = SESSION_MAX_AGE):
        self._sessions: Dict[str, CartSession] = {}
        self._lock = threading.Lock()
        self._max_age = max_age

    def create(self, table_number: int) -> CartSession:
        with self._lock:
            self._purge_expired()
            session = CartSession(session_id=uuid.uuid4().hex, table_number=table_number)
            self._sessions[session.session_id] = session
        logger.debug(f"Cart session {session.session_id} opened for table {table_number}")
        return session

    def get(self, session_id: str) -> Optional[CartSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)

    def _purge_expired(self) -> None:
        cutoff = utcnow() - self._max_age
        expired = [sid for sid, s in self._sessions.items() if s.created_at < cutoff]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug(f"Dropped {len(expired)} expired cart sessions")


cart_sessions = CartSessionStore()


def build_order(session: CartSession, ordered_by: Optional[str] = None) -> OrderCreate:
    """Turn a finished cart into an order submission."""
    queue = session.queue
    if queue.state is PromptState.PROMPTING:
        raise PromptPendingError(f"Glass prompt for {queue.current.item_id} is still open")
    if not queue.cart:
        raise ValueError("Cart is empty")
    return OrderCreate(
        table_number=session.table_number,
        lines=[
            OrderLineCreate(name=line.name, unit_price=line.unit_price, quantity=line.quantity)
            for line in queue.cart
        ],
        total=queue.total,
        ordered_by=ordered_by,
    )
