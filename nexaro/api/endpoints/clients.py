"""
Client Endpoints

Single-client operations, all tenant-guarded. A client id from another
organization behaves exactly like an id that does not exist (403).
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from nexaro.api.deps import require
from nexaro.core.permissions import Operation, get_scoped_or_deny
from nexaro.database import get_db
from nexaro.models.client import Client
from nexaro.models.user import User
from nexaro.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from nexaro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    client_data: ClientCreate,
    current_user: User = Depends(require(Operation.MANAGE_CLIENTS)),
    db: Session = Depends(get_db)
):
    client = Client(
        organization_id=current_user.organization_id,  # CRITICAL: always the caller's tenant
        **client_data.model_dump()
    )
    db.add(client)
    db.commit()
    db.refresh(client)

    logger.info(f"Client created: {client.id} by {current_user.id}")
    return client


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    current_user: User = Depends(require(Operation.MANAGE_CLIENTS)),
    db: Session = Depends(get_db)
):
    return get_scoped_or_deny(db, Client, client_id, current_user)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    client_data: ClientUpdate,
    current_user: User = Depends(require(Operation.MANAGE_CLIENTS)),
    db: Session = Depends(get_db)
):
    client = get_scoped_or_deny(db, Client, client_id, current_user)

    for field, value in client_data.model_dump(exclude_unset=True).items():
        setattr(client, field, value)

    db.commit()
    db.refresh(client)
    return client


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: int,
    current_user: User = Depends(require(Operation.MANAGE_CLIENTS)),
    db: Session = Depends(get_db)
):
    client = get_scoped_or_deny(db, Client, client_id, current_user)
    db.delete(client)
    db.commit()

    logger.info(f"Client deleted: {client_id} by {current_user.id}")
    return None
