"""Invoice service - numbering, totals and status lifecycle"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import INVOICE_PREFIX
from ...models import User
from ...models_invoice import Invoice
from ..clients.repository import ClientRepository
from ..workflows.triggers import fire_event
from .calculations import calculate_totals, format_invoice_number, parse_sequence
from .repository import InvoiceRepository
from .schemas import (
    INVOICE_STATUSES,
    STATUS_TRANSITIONS,
    InvoiceCreate,
    InvoiceResponse,
    InvoiceUpdate,
)

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = InvoiceRepository()

    def generate_invoice_number(self, user: User, year: Optional[int] = None) -> str:
        """Next ``PREFIX-YEAR-NNNN`` for this user"""
        year = year or datetime.utcnow().year
        number_prefix = f"{INVOICE_PREFIX}-{year}-"
        existing = self.repo.get_numbers_with_prefix(self.db, user.id, number_prefix)
        sequence = max((parse_sequence(n) for n in existing), default=0) + 1
        return format_invoice_number(INVOICE_PREFIX, year, sequence)

    def get_invoices(self, user: User, status: Optional[str] = None) -> list[Invoice]:
        return self.repo.get_invoices(self.db, user.id, status)

    def get_invoice(self, invoice_id: int, user: User) -> Invoice:
        invoice = self.repo.get_invoice_by_id(self.db, invoice_id, user.id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    def create_invoice(self, data: InvoiceCreate, user: User) -> Invoice:
        client = ClientRepository.get_client_by_id(self.db, data.clientId, user.id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        items = [item.model_dump() for item in data.items]
        invoice_date = data.date or datetime.utcnow()
        invoice = self.repo.create_invoice(
            self.db,
            user_id=user.id,
            partner_id=user.partner_id,
            client_id=client.id,
            invoice_number=self.generate_invoice_number(user, invoice_date.year),
            client_name=client.name,
            client_email=client.email,
            client_address=client.address,
            date=invoice_date,
            due_date=data.dueDate,
            status="draft",
            items=items,
            notes=data.notes,
            **calculate_totals(items),
        )
        logger.info(f"🧾 Invoice {invoice.invoice_number} created, total {invoice.total}")

        fire_event(self.db, user, "invoice_created", self._event_payload(invoice))
        return invoice

    def update_invoice(self, invoice_id: int, data: InvoiceUpdate, user: User) -> Invoice:
        invoice = self.get_invoice(invoice_id, user)
        if invoice.status != "draft":
            raise HTTPException(status_code=400, detail="Only draft invoices can be edited")

        fields = data.model_dump(exclude_unset=True)
        updates = {}
        if "items" in fields:
            updates["items"] = fields["items"]
            updates.update(calculate_totals(fields["items"]))
        for field, column in (
            ("date", "date"),
            ("dueDate", "due_date"),
            ("notes", "notes"),
            ("clientName", "client_name"),
            ("clientEmail", "client_email"),
            ("clientAddress", "client_address"),
        ):
            if field in fields:
                updates[column] = fields[field]

        return self.repo.update_invoice(self.db, invoice, **updates)

    def change_status(self, invoice_id: int, new_status: str, user: User) -> Invoice:
        if new_status not in INVOICE_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status: {new_status}")

        invoice = self.get_invoice(invoice_id, user)
        if new_status not in STATUS_TRANSITIONS[invoice.status]:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change invoice status from {invoice.status} to {new_status}",
            )

        updates = {"status": new_status}
        if new_status == "paid":
            updates["paid_at"] = datetime.utcnow()
        invoice = self.repo.update_invoice(self.db, invoice, **updates)
        logger.info(f"🧾 Invoice {invoice.invoice_number} is now {new_status}")

        if new_status == "paid":
            fire_event(self.db, user, "invoice_paid", self._event_payload(invoice))
        return invoice

    def delete_invoice(self, invoice_id: int, user: User) -> dict:
        invoice = self.get_invoice(invoice_id, user)
        if invoice.status == "paid":
            raise HTTPException(status_code=400, detail="Paid invoices cannot be deleted")
        self.repo.delete_invoice(self.db, invoice)
        return {"success": True, "message": "Invoice deleted"}

    @staticmethod
    def _event_payload(invoice: Invoice) -> dict:
        return {
            "invoice": InvoiceResponse.from_model(invoice),
            "client": {"id": invoice.client_id, "name": invoice.client_name, "email": invoice.client_email},
        }
