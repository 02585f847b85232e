"""Invoice schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

INVOICE_STATUSES = ("draft", "sent", "paid", "cancelled")

STATUS_TRANSITIONS = {
    "draft": ("sent", "cancelled"),
    "sent": ("paid", "cancelled"),
    "paid": (),
    "cancelled": (),
}


class InvoiceItem(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unitPrice: float = Field(..., ge=0)
    taxRate: float = Field(21, ge=0, le=100)


class InvoiceCreate(BaseModel):
    clientId: int
    date: Optional[datetime] = None
    dueDate: Optional[datetime] = None
    items: list[InvoiceItem] = Field(..., min_length=1)
    notes: Optional[str] = None


class InvoiceUpdate(BaseModel):
    date: Optional[datetime] = None
    dueDate: Optional[datetime] = None
    items: Optional[list[InvoiceItem]] = Field(None, min_length=1)
    notes: Optional[str] = None
    clientName: Optional[str] = None
    clientEmail: Optional[str] = None
    clientAddress: Optional[str] = None


class InvoiceStatusUpdate(BaseModel):
    status: str


class InvoiceResponse(BaseModel):
    id: int
    invoiceNumber: str
    clientId: int
    clientName: str
    clientEmail: Optional[str]
    clientAddress: Optional[str]
    date: datetime
    dueDate: Optional[datetime]
    status: str
    items: list[InvoiceItem]
    subtotal: float
    taxAmount: float
    total: float
    notes: Optional[str]
    paidAt: Optional[datetime]
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, invoice) -> "InvoiceResponse":
        return cls(
            id=invoice.id,
            invoiceNumber=invoice.invoice_number,
            clientId=invoice.client_id,
            clientName=invoice.client_name,
            clientEmail=invoice.client_email,
            clientAddress=invoice.client_address,
            date=invoice.date,
            dueDate=invoice.due_date,
            status=invoice.status,
            items=invoice.items or [],
            subtotal=invoice.subtotal,
            taxAmount=invoice.tax_amount,
            total=invoice.total,
            notes=invoice.notes,
            paidAt=invoice.paid_at,
            createdAt=invoice.created_at,
        )
