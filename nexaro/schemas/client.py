"""
Client Schemas
"""
from typing import Optional
from datetime import datetime
from pydantic import EmailStr, Field

from nexaro.schemas.base import BaseSchema, UpdateSchema


class ClientBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


class ClientCreate(ClientBase):
    pass


class ClientUpdate(UpdateSchema):
    """All fields optional."""
    required_fields = ("name", "email", "is_active")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class ClientResponse(ClientBase):
    id: int
    organization_id: int
    created_at: datetime
