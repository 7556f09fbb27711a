"""
Subscription Endpoints

Billing metadata for the caller's organization. No payment processing.

RBAC:
- View: any member
- Create / update: founder or admin
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from nexaro.api.deps import require
from nexaro.core.permissions import Operation, get_scoped_or_deny
from nexaro.database import get_db
from nexaro.models.subscription import Subscription
from nexaro.models.user import User
from nexaro.schemas.subscription import SubscriptionCreate, SubscriptionResponse, SubscriptionUpdate
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("", response_model=Optional[SubscriptionResponse])
async def get_subscription(
    current_user: User = Depends(require(Operation.VIEW_SUBSCRIPTION)),
    db: Session = Depends(get_db)
):
    """The organization's active subscription, or null."""
    return (
        db.query(Subscription)
        .filter(
            Subscription.organization_id == current_user.organization_id,
            Subscription.is_active.is_(True),
        )
        .order_by(Subscription.start_date.desc())
        .first()
    )


@router.post("", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
async def create_subscription(
    subscription_data: SubscriptionCreate,
    current_user: User = Depends(require(Operation.MANAGE_SUBSCRIPTION)),
    db: Session = Depends(get_db)
):
    subscription = Subscription(
        organization_id=current_user.organization_id,
        **subscription_data.model_dump()
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)

    logger.info(
        f"Subscription {subscription.id} ({subscription.plan_name}) created by {current_user.id}",
        extra={"organization_id": current_user.organization_id}
    )
    return subscription


@router.put("/{subscription_id}", response_model=SubscriptionResponse)
async def update_subscription(
    subscription_id: int,
    subscription_data: SubscriptionUpdate,
    current_user: User = Depends(require(Operation.MANAGE_SUBSCRIPTION)),
    db: Session = Depends(get_db)
):
    subscription = get_scoped_or_deny(db, Subscription, subscription_id, current_user)

    for field, value in subscription_data.model_dump(exclude_unset=True).items():
        setattr(subscription, field, value)

    db.commit()
    db.refresh(subscription)
    return subscription
