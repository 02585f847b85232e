"""
Invoice model for client billing
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import DEFAULT_PARTNER_ID
from .database import Base


class Invoice(Base):
    """Invoice issued by a technician to one of their clients"""

    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("user_id", "invoice_number", name="uq_invoice_number_per_user"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    partner_id = Column(Integer, default=DEFAULT_PARTNER_ID, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    invoice_number = Column(String(50), nullable=False, index=True)

    # Client snapshot at issue time
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(320), nullable=True)
    client_address = Column(Text, nullable=True)

    date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=True)
    status = Column(String(20), default="draft", nullable=False)  # draft, sent, paid, cancelled

    # [{"description": str, "quantity": float, "unitPrice": float, "taxRate": float}]
    items = Column(JSON, nullable=True)
    subtotal = Column(Float, nullable=False, default=0)
    tax_amount = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client")
