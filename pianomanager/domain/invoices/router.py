"""Invoice router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import InvoiceCreate, InvoiceResponse, InvoiceStatusUpdate, InvoiceUpdate
from .service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    return InvoiceService(db)


@router.get("", response_model=list[InvoiceResponse])
async def get_invoices(
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return [InvoiceResponse.from_model(i) for i in service.get_invoices(current_user, status)]


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return InvoiceResponse.from_model(service.get_invoice(invoice_id, current_user))


@router.post("", response_model=InvoiceResponse)
async def create_invoice(
    data: InvoiceCreate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Create a draft invoice, numbering it and snapshotting the client's details"""
    return InvoiceResponse.from_model(service.create_invoice(data, current_user))


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return InvoiceResponse.from_model(service.update_invoice(invoice_id, data, current_user))


@router.put("/{invoice_id}/status", response_model=InvoiceResponse)
async def change_invoice_status(
    invoice_id: int,
    data: InvoiceStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return InvoiceResponse.from_model(service.change_status(invoice_id, data.status, current_user))


@router.delete("/{invoice_id}")
async def delete_invoice(
    invoice_id: int,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.delete_invoice(invoice_id, current_user)
