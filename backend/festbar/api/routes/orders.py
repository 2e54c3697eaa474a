"""Order routes: submission, waiter calls, live boards and lifecycle transitions."""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from festbar.core.exceptions import OrderingClosedError, OrderNotClaimedError, WaiterCallCooldownError
from festbar.core.rate_limit import limiter
from festbar.db.session import DbSession
from festbar.models.order import Order
from festbar.schemas.order import (
    BoardSnapshot,
    ClaimRequest,
    HideRequest,
    LifecycleResponse,
    OrderCreate,
    OrderResponse,
    WaiterCallCreate,
)
from festbar.services.firebase_service import build_order_notification, firebase_push
from festbar.services.live_updates import publish_completion, publish_orders
from festbar.services.order_lifecycle_service import (
    VIEW_BAR,
    VIEW_TABLE,
    VIEW_WAITER,
    OrderLifecycleService,
)
from festbar.services.waiter_service import WaiterService

logger = logging.getLogger(__name__)

router = APIRouter()


def _closed(exc: OrderingClosedError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_423_LOCKED, detail=str(exc))


def schedule_push(background_tasks: BackgroundTasks, db: Session, order: Order) -> None:
    """Notify the waiters assigned to the order's table after the response is sent."""
    tokens = WaiterService(db).tokens_for_table(order.table_number)
    if not tokens:
        return
    title, body, data = build_order_notification(order)
    background_tasks.add_task(firebase_push.notify_new_order, tokens, title, body, data)


@router.post("/", response_model=OrderResponse, status_code=201)
@limiter.limit("30/minute")
def submit_order(
    request: Request,
    order_data: OrderCreate,
    background_tasks: BackgroundTasks,
    db: DbSession,
):
    """Submit a guest order (public endpoint used by table devices)."""
    service = OrderLifecycleService(db)
    try:
        order = service.submit_order(order_data)
    except OrderingClosedError as e:
        raise _closed(e)

    schedule_push(background_tasks, db, order)
    publish_orders(background_tasks, db)
    return order


@router.post("/waiter-call", response_model=OrderResponse, status_code=201)
@limiter.limit("10/minute")
def call_waiter(
    request: Request,
    call_data: WaiterCallCreate,
    background_tasks: BackgroundTasks,
    db: DbSession,
):
    """Call a waiter to the table."""
    service = OrderLifecycleService(db)
    try:
        call = service.call_waiter(call_data.table_number)
    except OrderingClosedError as e:
        raise _closed(e)
    except WaiterCallCooldownError as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(e),
            headers={"Retry-After": str(e.retry_after_seconds)},
        )

    schedule_push(background_tasks, db, call)
    publish_orders(background_tasks, db)
    return call


@router.get("/board/bar", response_model=BoardSnapshot)
def get_bar_board(
    db: DbSession,
    counter_id: Optional[str] = Query(None, description="Only the tables of this counter"),
):
    """Orders the bar still has to act on."""
    return OrderLifecycleService(db).board(VIEW_BAR, counter_id=counter_id)


@router.get("/board/waiter", response_model=BoardSnapshot)
def get_waiter_board(
    db: DbSession,
    waiter_name: Optional[str] = Query(None, max_length=100),
    assigned_only: bool = Query(False, description="Restrict to the waiter's assigned tables"),
):
    """Orders visible on a waiter device."""
    assigned_tables = None
    if assigned_only:
        if not waiter_name:
            raise HTTPException(status_code=400, detail="assigned_only needs a waiter_name")
        assignment = WaiterService(db).get_assignment(waiter_name)
        assigned_tables = assignment.tables if assignment else []
    return OrderLifecycleService(db).board(
        VIEW_WAITER, waiter_name=waiter_name, assigned_tables=assigned_tables
    )


@router.get("/board/table/{table_number}", response_model=BoardSnapshot)
def get_table_board(table_number: int, db: DbSession):
    """Recent orders of one table for the guest page."""
    return OrderLifecycleService(db).board(VIEW_TABLE, table_number=table_number)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: DbSession):
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/{order_id}/claim", response_model=LifecycleResponse)
def claim_order(
    order_id: int,
    claim: ClaimRequest,
    background_tasks: BackgroundTasks,
    db: DbSession,
):
    """Claim an order for a waiter. The first claim wins."""
    result = OrderLifecycleService(db).claim(order_id, claim.waiter_name)
    publish_orders(background_tasks, db)
    return result


@router.post("/{order_id}/hide", response_model=LifecycleResponse)
def hide_order(
    order_id: int,
    background_tasks: BackgroundTasks,
    db: DbSession,
    hide: Optional[HideRequest] = None,
):
    """Mark an order done for the bar and record it in the statistics."""
    waiter_name = hide.waiter_name if hide else None
    try:
        result = OrderLifecycleService(db).hide_from_bar(order_id, waiter_name=waiter_name)
    except OrderNotClaimedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    publish_completion(background_tasks, db)
    return result


@router.delete("/{order_id}", response_model=LifecycleResponse)
def remove_order(order_id: int, background_tasks: BackgroundTasks, db: DbSession):
    """Remove an order for every client, recording it in the statistics first."""
    result = OrderLifecycleService(db).remove_completely(order_id)
    publish_completion(background_tasks, db)
    return result
