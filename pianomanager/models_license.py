"""
License, license transaction and partner activation code models
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class ActivationCode(Base):
    """Redeemable code that grants a partner license"""

    __tablename__ = "activation_codes"

    id = Column(Integer, primary_key=True, index=True)
    partner_id = Column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(100), unique=True, index=True, nullable=False)
    code_type = Column(String(20), default="single_use", nullable=False)  # single_use, multi_use
    max_uses = Column(Integer, nullable=True)  # None means unlimited (multi_use only)
    uses_count = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="active", nullable=False, index=True)  # active, used, expired, revoked
    billing_cycle = Column(String(20), default="monthly", nullable=False)  # monthly, yearly
    duration_months = Column(Integer, default=12, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    partner = relationship("Partner", back_populates="activation_codes")


class License(Base):
    __tablename__ = "licenses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    license_type = Column(String(20), default="direct", nullable=False)  # direct, partner
    partner_id = Column(Integer, ForeignKey("partners.id", ondelete="SET NULL"), nullable=True, index=True)
    activation_code_id = Column(Integer, ForeignKey("activation_codes.id"), nullable=True)
    status = Column(String(20), default="active", nullable=False, index=True)  # active, expired, suspended, cancelled
    activated_at = Column(DateTime, server_default=func.now(), nullable=False)
    expires_at = Column(DateTime, nullable=True, index=True)
    billing_cycle = Column(String(20), default="monthly", nullable=False)
    price = Column(Float, default=0, nullable=False)
    currency = Column(String(3), default="EUR", nullable=False)
    store_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    transactions = relationship(
        "LicenseTransaction", back_populates="license", cascade="all, delete-orphan"
    )


class LicenseTransaction(Base):
    __tablename__ = "license_transactions"

    id = Column(Integer, primary_key=True, index=True)
    license_id = Column(Integer, ForeignKey("licenses.id", ondelete="CASCADE"), nullable=False, index=True)
    # purchase, renewal, upgrade, downgrade, cancellation
    transaction_type = Column(String(20), nullable=False)
    amount = Column(Float, nullable=False, default=0)
    currency = Column(String(3), default="EUR", nullable=False)
    payment_method = Column(String(20), nullable=False)  # stripe, invoice, partner
    payment_status = Column(String(20), default="pending", nullable=False)  # pending, completed, failed, refunded
    transaction_date = Column(DateTime, server_default=func.now(), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    license = relationship("License", back_populates="transactions")
