"""Partner router - platform administrators only"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from .schemas import LicensePurchase, PartnerCreate, PartnerResponse, PartnerUpdate
from .service import PartnerService

router = APIRouter(prefix="/partners", tags=["Partners"])


def get_partner_service(db: Session = Depends(get_db)) -> PartnerService:
    return PartnerService(db)


@router.get("", response_model=list[PartnerResponse])
async def get_partners(
    status: Optional[str] = Query(None),
    admin: User = Depends(get_current_admin),
    service: PartnerService = Depends(get_partner_service),
):
    return [PartnerResponse.from_model(p) for p in service.get_partners(status)]


@router.get("/{partner_id}", response_model=PartnerResponse)
async def get_partner(
    partner_id: int,
    admin: User = Depends(get_current_admin),
    service: PartnerService = Depends(get_partner_service),
):
    return PartnerResponse.from_model(service.get_partner(partner_id))


@router.post("", response_model=PartnerResponse)
async def create_partner(
    data: PartnerCreate,
    admin: User = Depends(get_current_admin),
    service: PartnerService = Depends(get_partner_service),
):
    return PartnerResponse.from_model(service.create_partner(data))


@router.patch("/{partner_id}", response_model=PartnerResponse)
async def update_partner(
    partner_id: int,
    data: PartnerUpdate,
    admin: User = Depends(get_current_admin),
    service: PartnerService = Depends(get_partner_service),
):
    return PartnerResponse.from_model(service.update_partner(partner_id, data))


@router.post("/{partner_id}/licenses", response_model=PartnerResponse)
async def add_partner_licenses(
    partner_id: int,
    data: LicensePurchase,
    admin: User = Depends(get_current_admin),
    service: PartnerService = Depends(get_partner_service),
):
    """Add purchased licenses to the partner's pool"""
    return PartnerResponse.from_model(service.add_licenses(partner_id, data.quantity))
