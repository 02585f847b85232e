"""Invoice repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_invoice import Invoice


class InvoiceRepository:
    @staticmethod
    def get_invoices(db: Session, user_id: int, status: Optional[str] = None) -> list[Invoice]:
        query = db.query(Invoice).filter(Invoice.user_id == user_id)
        if status:
            query = query.filter(Invoice.status == status)
        return query.order_by(Invoice.date.desc(), Invoice.id.desc()).all()

    @staticmethod
    def get_invoice_by_id(db: Session, invoice_id: int, user_id: int) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.user_id == user_id).first()

    @staticmethod
    def get_numbers_with_prefix(db: Session, user_id: int, number_prefix: str) -> list[str]:
        rows = (
            db.query(Invoice.invoice_number)
            .filter(Invoice.user_id == user_id, Invoice.invoice_number.like(f"{number_prefix}%"))
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def create_invoice(db: Session, **data) -> Invoice:
        invoice = Invoice(**data)
        db.add(invoice)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def update_invoice(db: Session, invoice: Invoice, **updates) -> Invoice:
        for key, value in updates.items():
            if hasattr(invoice, key):
                setattr(invoice, key, value)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def delete_invoice(db: Session, invoice: Invoice) -> None:
        db.delete(invoice)
        db.commit()
