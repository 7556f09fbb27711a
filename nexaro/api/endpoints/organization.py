"""
Organization Endpoints

The caller's own organization and its team.

RBAC:
- View organization / team: any member
- Update organization settings: founder or admin
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from nexaro.api.deps import require
from nexaro.core.permissions import Operation, get_scoped_or_deny
from nexaro.database import get_db
from nexaro.models.organization import Organization
from nexaro.models.user import User
from nexaro.schemas.organization import OrganizationResponse, OrganizationUpdate
from nexaro.schemas.user import PrincipalResponse
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["organization"])


@router.get("/organization", response_model=OrganizationResponse)
async def get_organization(
    current_user: User = Depends(require(Operation.VIEW_ORGANIZATION)),
    db: Session = Depends(get_db)
):
    return get_scoped_or_deny(db, Organization, current_user.organization_id, current_user)


@router.put("/organization", response_model=OrganizationResponse)
async def update_organization(
    update: OrganizationUpdate,
    current_user: User = Depends(require(Operation.UPDATE_ORGANIZATION)),
    db: Session = Depends(get_db)
):
    """Update organization settings (founder/admin only)."""
    organization = get_scoped_or_deny(db, Organization, current_user.organization_id, current_user)

    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(organization, field, value)

    db.commit()
    db.refresh(organization)

    logger.info(
        f"Organization updated by user {current_user.id}",
        extra={"organization_id": organization.id, "user_id": current_user.id}
    )
    return organization


@router.get("/organization/users", response_model=List[PrincipalResponse])
@router.get("/team-members", response_model=List[PrincipalResponse], include_in_schema=False)
async def list_team_members(
    current_user: User = Depends(require(Operation.VIEW_TEAM)),
    db: Session = Depends(get_db)
):
    """Members of the caller's organization."""
    # TENANT_ISOLATION: filtered by the caller's organization
    return (
        db.query(User)
        .filter(User.organization_id == current_user.organization_id)
        .order_by(User.created_at)
        .all()
    )
