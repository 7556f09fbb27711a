"""
Service Endpoints

Single-service operations, all tenant-guarded.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from nexaro.api.deps import require
from nexaro.core.permissions import Operation, get_scoped_or_deny
from nexaro.database import get_db
from nexaro.models.service import Service
from nexaro.models.user import User
from nexaro.schemas.service import ServiceCreate, ServiceResponse, ServiceUpdate
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/services", tags=["services"])


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    service_data: ServiceCreate,
    current_user: User = Depends(require(Operation.MANAGE_SERVICES)),
    db: Session = Depends(get_db)
):
    service = Service(organization_id=current_user.organization_id, **service_data.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)

    logger.info(f"Service created: {service.id} by {current_user.id}")
    return service


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: int,
    current_user: User = Depends(require(Operation.MANAGE_SERVICES)),
    db: Session = Depends(get_db)
):
    return get_scoped_or_deny(db, Service, service_id, current_user)


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    service_data: ServiceUpdate,
    current_user: User = Depends(require(Operation.MANAGE_SERVICES)),
    db: Session = Depends(get_db)
):
    service = get_scoped_or_deny(db, Service, service_id, current_user)

    for field, value in service_data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)

    db.commit()
    db.refresh(service)
    return service


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: int,
    current_user: User = Depends(require(Operation.MANAGE_SERVICES)),
    db: Session = Depends(get_db)
):
    service = get_scoped_or_deny(db, Service, service_id, current_user)
    db.delete(service)
    db.commit()

    logger.info(f"Service deleted: {service_id} by {current_user.id}")
    return None
