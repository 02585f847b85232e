"""Piano service - Business logic for the piano registry"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Piano, User
from ..clients.repository import ClientRepository
from ..workflows.triggers import fire_event
from .repository import PianoRepository
from .schemas import FIELD_MAP, PianoCreate, PianoResponse, PianoUpdate

logger = logging.getLogger(__name__)


class PianoService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = PianoRepository()

    def _require_client(self, client_id: int, user: User):
        client = ClientRepository.get_client_by_id(self.db, client_id, user.id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def get_pianos(self, user: User, client_id: Optional[int] = None) -> list[Piano]:
        return self.repo.get_pianos(self.db, user.id, client_id)

    def get_piano(self, piano_id: int, user: User) -> Piano:
        piano = self.repo.get_piano_by_id(self.db, piano_id, user.id)
        if not piano:
            raise HTTPException(status_code=404, detail="Piano not found")
        return piano

    def create_piano(self, data: PianoCreate, user: User) -> Piano:
        client = self._require_client(data.clientId, user)

        piano_data = {FIELD_MAP[k]: v for k, v in data.model_dump().items()}
        piano = self.repo.create_piano(self.db, user.id, user.partner_id, **piano_data)
        logger.info(f"🎹 Piano {piano.id} registered for client {client.id}")

        fire_event(
            self.db,
            user,
            "piano_created",
            {"piano": PianoResponse.from_model(piano), "client": {"id": client.id, "name": client.name}},
        )
        return piano

    def update_piano(self, piano_id: int, data: PianoUpdate, user: User) -> Piano:
        piano = self.get_piano(piano_id, user)
        updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
        if updates.get("client_id") is not None:
            self._require_client(updates["client_id"], user)
        return self.repo.update_piano(self.db, piano, **updates)

    def delete_piano(self, piano_id: int, user: User) -> dict:
        piano = self.get_piano(piano_id, user)
        self.repo.delete_piano(self.db, piano)
        return {"success": True, "message": "Piano deleted"}
