"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Client, User
from ..workflows.triggers import fire_event
from .repository import ClientRepository
from .schemas import FIELD_MAP, ClientCreate, ClientResponse, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(
        self, user: User, search: Optional[str] = None, client_type: Optional[str] = None
    ) -> list[Client]:
        return self.repo.get_clients(self.db, user.id, search, client_type)

    def get_client(self, client_id: int, user: User) -> Client:
        """Get a specific client"""
        client = self.repo.get_client_by_id(self.db, client_id, user.id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def create_client(self, data: ClientCreate, user: User) -> Client:
        logger.info(f"📥 Creating client for user_id: {user.id}")

        client_data = {FIELD_MAP[k]: v for k, v in data.model_dump().items()}
        client = self.repo.create_client(self.db, user.id, user.partner_id, **client_data)

        fire_event(self.db, user, "client_created", {"client": ClientResponse.from_model(client)})
        return client

    def update_client(self, client_id: int, data: ClientUpdate, user: User) -> Client:
        client = self.get_client(client_id, user)

        updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
        if "name" in updates and not (updates["name"] or "").strip():
            raise HTTPException(status_code=400, detail="Client name cannot be empty")

        client = self.repo.update_client(self.db, client, **updates)

        fire_event(self.db, user, "client_updated", {"client": ClientResponse.from_model(client)})
        return client

    def delete_client(self, client_id: int, user: User) -> dict:
        client = self.get_client(client_id, user)
        if self.repo.count_invoices(self.db, client.id):
            raise HTTPException(status_code=409, detail="Client has invoices and cannot be deleted")
        self.repo.delete_client(self.db, client)
        logger.info(f"🗑️ Client {client_id} deleted by user {user.id}")
        return {"success": True, "message": "Client deleted"}
