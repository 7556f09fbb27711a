"""
User Schemas

Principals as returned by the API. The password hash is never included.
"""
from typing import Optional
from datetime import datetime

from nexaro.models.user import UserRole
from nexaro.schemas.base import BaseSchema


class PrincipalResponse(BaseSchema):
    id: int
    name: str
    email: str
    role: UserRole
    organization_id: Optional[int]
    created_at: datetime
    last_login_at: Optional[datetime] = None
