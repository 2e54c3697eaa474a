"""Waiter table assignment and push token routes."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from festbar.core.pin_gate import require_pin
from festbar.db.session import DbSession
from festbar.schemas.waiter import (
    FcmTokenRegister,
    FcmTokenResponse,
    WaiterAssignmentResponse,
    WaiterAssignmentUpdate,
)
from festbar.services.waiter_service import WaiterService

router = APIRouter()

WaiterName = Path(..., min_length=1, max_length=100)


@router.get("/assignments", response_model=List[WaiterAssignmentResponse])
def list_assignments(db: DbSession):
    return WaiterService(db).list_assignments()


@router.get("/{waiter_name}/assignment", response_model=WaiterAssignmentResponse)
def get_assignment(db: DbSession, waiter_name: str = WaiterName):
    assignment = WaiterService(db).get_assignment(waiter_name)
    if not assignment:
        raise HTTPException(status_code=404, detail="No tables assigned")
    return assignment


@router.put(
    "/{waiter_name}/assignment",
    response_model=WaiterAssignmentResponse,
    dependencies=[Depends(require_pin("table_management"))],
)
def assign_tables(
    update: WaiterAssignmentUpdate,
    db: DbSession,
    waiter_name: str = WaiterName,
):
    return WaiterService(db).assign_tables(waiter_name, update.tables)


@router.delete("/{waiter_name}/assignment", dependencies=[Depends(require_pin("table_management"))])
def remove_assignment(db: DbSession, waiter_name: str = WaiterName):
    if not WaiterService(db).remove_assignment(waiter_name):
        raise HTTPException(status_code=404, detail="No tables assigned")
    return {"status": "removed"}


@router.put("/{waiter_name}/fcm-token", response_model=FcmTokenResponse)
def register_fcm_token(
    registration: FcmTokenRegister,
    db: DbSession,
    waiter_name: str = WaiterName,
):
    """Register or refresh the device token used for order notifications."""
    return WaiterService(db).register_token(waiter_name, registration.token, registration.platform)


@router.delete("/{waiter_name}/fcm-token")
def remove_fcm_token(db: DbSession, waiter_name: str = WaiterName):
    WaiterService(db).remove_token(waiter_name)
    return {"status": "removed"}
