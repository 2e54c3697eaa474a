"""Waiter schemas"""
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field


class WaiterAssignmentUpdate(BaseModel):
    tables: List[int] = Field(default_factory=list)


class WaiterAssignmentResponse(BaseModel):
    waiter_name: str
    tables: List[int]
    updated_at: datetime

    model_config = {"from_attributes": True}


class FcmTokenRegister(BaseModel):
    token: str = Field(..., min_length=10, max_length=500)
    platform: Literal["android", "ios", "web"] = "web"


class FcmTokenResponse(BaseModel):
    waiter_name: str
    platform: str
    updated_at: datetime

    model_config = {"from_attributes": True}
