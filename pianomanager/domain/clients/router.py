"""Client router - FastAPI endpoints for client operations"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import ClientCreate, ClientResponse, ClientUpdate
from .service import ClientService

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    search: Optional[str] = Query(None),
    clientType: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Get the current user's clients, searching name, email, phone and city"""
    clients = service.get_clients(current_user, search, clientType)
    return [ClientResponse.from_model(c) for c in clients]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    return ClientResponse.from_model(service.get_client(client_id, current_user))


@router.post("", response_model=ClientResponse)
async def create_client(
    data: ClientCreate,
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Create a new client"""
    return ClientResponse.from_model(service.create_client(data, current_user))


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Update a client"""
    return ClientResponse.from_model(service.update_client(client_id, data, current_user))


@router.delete("/{client_id}")
async def delete_client(
    client_id: int,
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Delete a client with its pianos and appointments"""
    return service.delete_client(client_id, current_user)
