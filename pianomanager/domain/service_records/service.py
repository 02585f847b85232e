"""Service record service - history of work done on each piano"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import ServiceRecord, User
from ..pianos.repository import PianoRepository
from ..workflows.triggers import fire_event
from .repository import ServiceRecordRepository
from .schemas import FIELD_MAP, ServiceCreate, ServiceResponse, ServiceUpdate

logger = logging.getLogger(__name__)


class ServiceRecordService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ServiceRecordRepository()

    def get_services(
        self, user: User, piano_id: Optional[int] = None, client_id: Optional[int] = None
    ) -> list[ServiceRecord]:
        return self.repo.get_services(self.db, user.id, piano_id, client_id)

    def get_service(self, service_id: int, user: User) -> ServiceRecord:
        record = self.repo.get_service_by_id(self.db, service_id, user.id)
        if not record:
            raise HTTPException(status_code=404, detail="Service not found")
        return record

    def create_service(self, data: ServiceCreate, user: User) -> ServiceRecord:
        piano = PianoRepository.get_piano_by_id(self.db, data.pianoId, user.id)
        if not piano:
            raise HTTPException(status_code=404, detail="Piano not found")

        values = {FIELD_MAP[k]: v for k, v in data.model_dump().items()}
        record = self.repo.create_service(
            self.db,
            user_id=user.id,
            partner_id=user.partner_id,
            client_id=piano.client_id,
            technician_id=values.pop("technician_id") or user.id,
            **values,
        )
        logger.info(f"🔧 Service {record.id} ({record.service_type}) logged for piano {piano.id}")

        fire_event(
            self.db,
            user,
            "service_created",
            {
                "service": ServiceResponse.from_model(record),
                "piano": {"id": piano.id, "brand": piano.brand, "model": piano.model},
                "client": {"id": piano.client.id, "name": piano.client.name, "email": piano.client.email},
            },
        )
        return record

    def update_service(self, service_id: int, data: ServiceUpdate, user: User) -> ServiceRecord:
        record = self.get_service(service_id, user)
        updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
        return self.repo.update_service(self.db, record, **updates)

    def delete_service(self, service_id: int, user: User) -> dict:
        record = self.get_service(service_id, user)
        self.repo.delete_service(self.db, record)
        return {"success": True, "message": "Service deleted"}
