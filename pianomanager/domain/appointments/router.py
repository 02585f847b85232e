"""Appointment router"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate, AppointmentUpdate
from .service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Agenda for a date range"""
    appointments = service.get_appointments(current_user, start, end, status)
    return [AppointmentResponse.from_model(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.get_appointment(appointment_id, current_user))


@router.post("", response_model=AppointmentResponse)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.create_appointment(data, current_user))


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.update_appointment(appointment_id, data, current_user))


@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
async def change_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Confirm, complete or cancel an appointment"""
    return AppointmentResponse.from_model(service.change_status(appointment_id, data.status, current_user))


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.delete_appointment(appointment_id, current_user)
