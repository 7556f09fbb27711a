"""
Service Schemas

Prices are integer cents.
"""
from typing import Optional
from datetime import datetime
from pydantic import Field

from nexaro.schemas.base import BaseSchema, UpdateSchema


class ServiceBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: int = Field(..., ge=0)
    duration: Optional[int] = Field(None, ge=1)


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(UpdateSchema):
    required_fields = ("name", "price")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=1)


class ServiceResponse(ServiceBase):
    id: int
    organization_id: int
    created_at: datetime
