"""Service record router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import ServiceRecordService

router = APIRouter(prefix="/services", tags=["Services"])


def get_service_record_service(db: Session = Depends(get_db)) -> ServiceRecordService:
    return ServiceRecordService(db)


@router.get("", response_model=list[ServiceResponse])
async def get_services(
    pianoId: Optional[int] = Query(None),
    clientId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ServiceRecordService = Depends(get_service_record_service),
):
    """Service history, newest first"""
    return [ServiceResponse.from_model(s) for s in service.get_services(current_user, pianoId, clientId)]


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: int,
    current_user: User = Depends(get_current_user),
    service: ServiceRecordService = Depends(get_service_record_service),
):
    return ServiceResponse.from_model(service.get_service(service_id, current_user))


@router.post("", response_model=ServiceResponse)
async def create_service(
    data: ServiceCreate,
    current_user: User = Depends(get_current_user),
    service: ServiceRecordService = Depends(get_service_record_service),
):
    return ServiceResponse.from_model(service.create_service(data, current_user))


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_user: User = Depends(get_current_user),
    service: ServiceRecordService = Depends(get_service_record_service),
):
    return ServiceResponse.from_model(service.update_service(service_id, data, current_user))


@router.delete("/{service_id}")
async def delete_service(
    service_id: int,
    current_user: User = Depends(get_current_user),
    service: ServiceRecordService = Depends(get_service_record_service),
):
    return service.delete_service(service_id, current_user)
