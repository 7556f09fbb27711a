"""
Subscription Schemas

Billing metadata only; no payment processing happens here.
"""
from typing import Optional
from datetime import datetime
from pydantic import Field

from nexaro.schemas.base import BaseSchema, UpdateSchema


class SubscriptionCreate(BaseSchema):
    plan_name: str = Field(..., min_length=1, max_length=100)
    price_per_month: int = Field(..., ge=0)
    max_users: Optional[int] = Field(None, ge=1)
    start_date: datetime
    is_active: bool = True


class SubscriptionUpdate(UpdateSchema):
    required_fields = ("plan_name", "price_per_month", "start_date", "is_active")

    plan_name: Optional[str] = Field(None, min_length=1, max_length=100)
    price_per_month: Optional[int] = Field(None, ge=0)
    max_users: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None


class SubscriptionResponse(BaseSchema):
    id: int
    organization_id: int
    plan_name: str
    price_per_month: int
    max_users: Optional[int]
    start_date: datetime
    end_date: Optional[datetime]
    is_active: bool
    created_at: datetime
