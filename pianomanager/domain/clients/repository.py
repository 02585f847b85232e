"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Client
from ...models_invoice import Invoice


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(
        db: Session, user_id: int, search: Optional[str] = None, client_type: Optional[str] = None
    ) -> list[Client]:
        """Get all clients for a user, optionally filtered"""
        query = db.query(Client).filter(Client.user_id == user_id)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Client.name.ilike(pattern),
                    Client.email.ilike(pattern),
                    Client.phone.ilike(pattern),
                    Client.city.ilike(pattern),
                )
            )
        if client_type:
            query = query.filter(Client.client_type == client_type)

        return query.order_by(Client.name.asc()).all()

    @staticmethod
    def get_client_by_id(db: Session, client_id: int, user_id: int) -> Optional[Client]:
        """Get a specific client by ID"""
        return db.query(Client).filter(Client.id == client_id, Client.user_id == user_id).first()

    @staticmethod
    def create_client(db: Session, user_id: int, partner_id: int, **client_data) -> Client:
        """Create a new client"""
        client = Client(user_id=user_id, partner_id=partner_id, **client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if hasattr(client, key):
                setattr(client, key, value)

        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def count_invoices(db: Session, client_id: int) -> int:
        return db.query(func.count(Invoice.id)).filter(Invoice.client_id == client_id).scalar()

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        """Delete a client"""
        db.delete(client)
        db.commit()
