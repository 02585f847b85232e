"""Appointment repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment


class AppointmentRepository:
    @staticmethod
    def get_appointments(
        db: Session,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> list[Appointment]:
        """Appointments in chronological order within an optional [start, end] window"""
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.client))
            .filter(Appointment.user_id == user_id)
        )
        if start is not None:
            query = query.filter(Appointment.date >= start)
        if end is not None:
            query = query.filter(Appointment.date <= end)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.date.asc()).all()

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int, user_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.user_id == user_id)
            .first()
        )

    @staticmethod
    def create_appointment(db: Session, **data) -> Appointment:
        appointment = Appointment(**data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()
