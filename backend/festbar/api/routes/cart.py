"""Cart routes for table devices, including the glass prompts for bottles."""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, status

from festbar.api.routes.orders import schedule_push
from festbar.core.exceptions import NoPromptOpenError, OrderingClosedError, PromptPendingError
from festbar.core.rate_limit import limiter
from festbar.db.session import DbSession
from festbar.schemas.cart import (
    CartCheckout,
    CartItemsAdd,
    CartLineResponse,
    CartOpen,
    CartState,
    GlassAnswer,
    GlassPromptResponse,
)
from festbar.schemas.order import OrderResponse
from festbar.services.cart_session_service import CartSession, build_order, cart_sessions
from festbar.services.live_updates import publish_orders
from festbar.services.menu_service import MenuService
from festbar.services.order_lifecycle_service import OrderLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_session(session_id: str) -> CartSession:
    session = cart_sessions.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Cart not found")
    return session


@contextmanager
def _locked_session(session_id: str) -> Iterator[CartSession]:
    """Hold the cart's lock; 404 if it was checked out or discarded meanwhile."""
    session = _get_session(session_id)
    with session.lock:
        if cart_sessions.get(session_id) is not session:
            raise HTTPException(status_code=404, detail="Cart not found")
        yield session


def _state(session: CartSession) -> CartState:
    queue = session.queue
    return CartState(
        session_id=session.session_id,
        table_number=session.table_number,
        state=queue.state,
        current=GlassPromptResponse.model_validate(queue.current) if queue.current else None,
        pending=[GlassPromptResponse.model_validate(entry) for entry in queue.pending],
        lines=[CartLineResponse.model_validate(line) for line in queue.cart],
        total=queue.total,
    )


@router.post("/", response_model=CartState, status_code=201)
@limiter.limit("30/minute")
def open_cart(request: Request, cart_data: CartOpen):
    return _state(cart_sessions.create(cart_data.table_number))


@router.get("/{session_id}", response_model=CartState)
def get_cart(session_id: str):
    with _locked_session(session_id) as session:
        return _state(session)


@router.post("/{session_id}/items", response_model=CartState)
def add_items(session_id: str, items: CartItemsAdd, db: DbSession):
    """Add items; bottles that ask for glasses open a prompt."""
    with _locked_session(session_id) as session:
        try:
            session.queue.enqueue(
                ((item.item_id, item.quantity) for item in items.items),
                MenuService(db).resolve,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _state(session)


@router.post("/{session_id}/glasses", response_model=CartState)
def answer_glass_prompt(session_id: str, answer: GlassAnswer):
    with _locked_session(session_id) as session:
        try:
            session.queue.confirm(answer.glasses)
        except NoPromptOpenError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        return _state(session)


@router.post("/{session_id}/skip", response_model=CartState)
def skip_glass_prompt(session_id: str):
    """Close the prompt without glasses. The bottle stays in the cart."""
    with _locked_session(session_id) as session:
        try:
            session.queue.skip()
        except NoPromptOpenError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        return _state(session)


@router.delete("/{session_id}")
def discard_cart(session_id: str):
    with _locked_session(session_id):
        cart_sessions.discard(session_id)
    return {"status": "discarded"}


@router.post("/{session_id}/checkout", response_model=OrderResponse, status_code=201)
@limiter.limit("30/minute")
def checkout_cart(
    request: Request,
    session_id: str,
    background_tasks: BackgroundTasks,
    db: DbSession,
    checkout: CartCheckout = CartCheckout(),
):
    """Submit the cart as an order and close the session.

    The cart lock is held until the session is discarded, so a second
    checkout of the same cart finds it gone and gets a 404.
    """
    with _locked_session(session_id) as session:
        try:
            order_data = build_order(session, checkout.ordered_by)
        except PromptPendingError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            order = OrderLifecycleService(db).submit_order(order_data)
        except OrderingClosedError as e:
            raise HTTPException(status_code=status.HTTP_423_LOCKED, detail=str(e))

        cart_sessions.discard(session_id)

    schedule_push(background_tasks, db, order)
    publish_orders(background_tasks, db)
    return order
