"""Appointment service - agenda and status lifecycle"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Appointment, User
from ..clients.repository import ClientRepository
from ..pianos.repository import PianoRepository
from ..workflows.triggers import fire_event
from .repository import AppointmentRepository
from .schemas import (
    APPOINTMENT_STATUSES,
    FIELD_MAP,
    STATUS_TRANSITIONS,
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
)

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    def _check_references(self, user: User, client_id: Optional[int], piano_id: Optional[int]):
        if client_id is not None and not ClientRepository.get_client_by_id(self.db, client_id, user.id):
            raise HTTPException(status_code=404, detail="Client not found")
        if piano_id is not None:
            piano = PianoRepository.get_piano_by_id(self.db, piano_id, user.id)
            if not piano:
                raise HTTPException(status_code=404, detail="Piano not found")
            if client_id is not None and piano.client_id != client_id:
                raise HTTPException(status_code=400, detail="Piano does not belong to this client")

    def get_appointments(
        self,
        user: User,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> list[Appointment]:
        if start and end and start > end:
            raise HTTPException(status_code=400, detail="start must be before end")
        return self.repo.get_appointments(self.db, user.id, start, end, status)

    def get_appointment(self, appointment_id: int, user: User) -> Appointment:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id, user.id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def create_appointment(self, data: AppointmentCreate, user: User) -> Appointment:
        self._check_references(user, data.clientId, data.pianoId)

        values = {FIELD_MAP[k]: v for k, v in data.model_dump().items()}
        if values["technician_id"] is None:
            values["technician_id"] = user.id

        appointment = self.repo.create_appointment(
            self.db, user_id=user.id, partner_id=user.partner_id, status="scheduled", **values
        )
        logger.info(f"📅 Appointment {appointment.id} scheduled for {appointment.date}")

        fire_event(self.db, user, "appointment_created", self._event_payload(appointment))
        return appointment

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate, user: User) -> Appointment:
        appointment = self.get_appointment(appointment_id, user)
        updates = {FIELD_MAP[k]: v for k, v in data.model_dump(exclude_unset=True).items()}
        # A kept piano is checked against a new client too
        self._check_references(
            user,
            updates.get("client_id", appointment.client_id),
            updates.get("piano_id", appointment.piano_id),
        )
        return self.repo.update_appointment(self.db, appointment, **updates)

    def change_status(self, appointment_id: int, new_status: str, user: User) -> Appointment:
        """Move an appointment along scheduled -> confirmed -> completed (or cancelled)"""
        if new_status not in APPOINTMENT_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status: {new_status}")

        appointment = self.get_appointment(appointment_id, user)
        if new_status not in STATUS_TRANSITIONS[appointment.status]:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change appointment status from {appointment.status} to {new_status}",
            )

        appointment = self.repo.update_appointment(self.db, appointment, status=new_status)
        logger.info(f"📅 Appointment {appointment.id} is now {new_status}")

        if new_status == "completed":
            fire_event(self.db, user, "appointment_completed", self._event_payload(appointment))
        return appointment

    def delete_appointment(self, appointment_id: int, user: User) -> dict:
        appointment = self.get_appointment(appointment_id, user)
        self.repo.delete_appointment(self.db, appointment)
        return {"success": True, "message": "Appointment deleted"}

    @staticmethod
    def _event_payload(appointment: Appointment) -> dict:
        client = appointment.client
        return {
            "appointment": AppointmentResponse.from_model(appointment),
            "client": {"id": client.id, "name": client.name, "email": client.email, "phone": client.phone},
        }
