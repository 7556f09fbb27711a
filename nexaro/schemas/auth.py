"""
Authentication Schemas

Request models for registration and login.
"""
from typing import Optional
from pydantic import EmailStr, Field

from nexaro.schemas.base import BaseSchema


class LoginRequest(BaseSchema):
    """Login request body."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseSchema):
    """Open registration. Always creates a new organization."""
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    organization_name: Optional[str] = Field(None, min_length=1, max_length=255)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "password": "securepassword123",
                "organizationName": "Acme Studio"
            }
        }


class RegisterWithInviteRequest(BaseSchema):
    """Registration through an invitation token."""
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    invite_token: str = Field(..., min_length=1, max_length=64)
