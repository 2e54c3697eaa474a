"""
Settings Schemas
Pydantic models for the venue settings document, system flags and broadcasts
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CounterConfig(BaseModel):
    """A bar counter ("Theke") and the tables it serves."""
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    assigned_tables: List[int] = Field(default_factory=list)


class ProtectedActions(BaseModel):
    """Actions that require the admin PIN before they run."""
    products_page: bool = False
    system_shutdown: bool = False
    order_form_toggle: bool = False
    table_management: bool = False
    statistics: bool = False
    settings: bool = False
    broadcast: bool = False


class PinProtection(BaseModel):
    admin_pin_hash: Optional[str] = None
    protected_actions: ProtectedActions = Field(default_factory=ProtectedActions)


class VenueSettings(BaseModel):
    """Schema for the settings document"""
    order_auto_hide_minutes: int = Field(default=6, description="0 = orders never expire")
    counters: List[CounterConfig] = Field(
        default_factory=lambda: [CounterConfig(id="counter-main", name="Main counter")]
    )
    pin_protection: PinProtection = Field(default_factory=PinProtection)


class VenueSettingsResponse(BaseModel):
    """Settings as exposed to clients, without the PIN hash"""
    order_auto_hide_minutes: int
    effective_auto_hide_minutes: float
    counters: List[CounterConfig]
    protected_actions: ProtectedActions
    admin_pin_set: bool


class VenueSettingsUpdate(BaseModel):
    """Schema for settings update, omitted fields are kept"""
    order_auto_hide_minutes: Optional[int] = None
    counters: Optional[List[CounterConfig]] = None
    protected_actions: Optional[ProtectedActions] = None


class PinChange(BaseModel):
    new_pin: str = Field(..., min_length=4, max_length=12, pattern=r"^\d+$")


class PinReset(BaseModel):
    master_password: str = Field(..., min_length=1)
    new_pin: str = Field(..., min_length=4, max_length=12, pattern=r"^\d+$")


class SystemFlags(BaseModel):
    shutdown: bool = False
    order_form_disabled: bool = False
    menu_version: Optional[int] = None


class SystemFlagsUpdate(BaseModel):
    shutdown: Optional[bool] = None
    order_form_disabled: Optional[bool] = None


BroadcastTarget = Literal["all", "tables", "waiters", "bars"]


class BroadcastReadBy(BaseModel):
    tables: List[int] = Field(default_factory=list)
    waiters: List[str] = Field(default_factory=list)
    bars: List[str] = Field(default_factory=list)


class Broadcast(BaseModel):
    id: str
    message: str
    target: BroadcastTarget
    timestamp: datetime
    active: bool = True
    read_by: BroadcastReadBy = Field(default_factory=BroadcastReadBy)


class BroadcastCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=500)
    target: BroadcastTarget = "all"


class BroadcastRead(BaseModel):
    table_number: Optional[int] = None
    waiter_name: Optional[str] = None
    bar_name: Optional[str] = None
