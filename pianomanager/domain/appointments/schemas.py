"""Appointment schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

APPOINTMENT_STATUSES = ("scheduled", "confirmed", "completed", "cancelled")

# Allowed status changes; completed and cancelled are final
STATUS_TRANSITIONS = {
    "scheduled": ("confirmed", "cancelled", "completed"),
    "confirmed": ("completed", "cancelled"),
    "completed": (),
    "cancelled": (),
}

FIELD_MAP = {
    "clientId": "client_id",
    "pianoId": "piano_id",
    "technicianId": "technician_id",
    "title": "title",
    "date": "date",
    "duration": "duration",
    "serviceType": "service_type",
    "notes": "notes",
    "address": "address",
}


class AppointmentCreate(BaseModel):
    clientId: int
    pianoId: Optional[int] = None
    technicianId: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=255)
    date: datetime
    duration: int = Field(60, gt=0, le=24 * 60)
    serviceType: Optional[str] = None
    notes: Optional[str] = None
    address: Optional[str] = None


class AppointmentUpdate(BaseModel):
    clientId: Optional[int] = None
    pianoId: Optional[int] = None
    technicianId: Optional[int] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    date: Optional[datetime] = None
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    serviceType: Optional[str] = None
    notes: Optional[str] = None
    address: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: str


class AppointmentResponse(BaseModel):
    id: int
    clientId: int
    clientName: Optional[str] = None
    pianoId: Optional[int]
    technicianId: Optional[int]
    title: str
    date: datetime
    duration: int
    serviceType: Optional[str]
    status: str
    notes: Optional[str]
    address: Optional[str]
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            clientName=appointment.client.name if appointment.client else None,
            status=appointment.status,
            createdAt=appointment.created_at,
            **{field: getattr(appointment, column) for field, column in FIELD_MAP.items()},
        )
