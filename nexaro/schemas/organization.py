"""
Organization Schemas
"""
from typing import Optional
from datetime import datetime
from pydantic import EmailStr, Field

from nexaro.schemas.base import BaseSchema, UpdateSchema


class OrganizationResponse(BaseSchema):
    id: int
    name: str
    email: str
    phone: Optional[str]
    address: Optional[str]
    created_at: datetime


class OrganizationUpdate(UpdateSchema):
    """Organization settings. All fields optional."""
    required_fields = ("name", "email")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
