"""License service - direct sales, code redemption, renewal and cancellation"""

import logging
from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy import and_, case, or_, update
from sqlalchemy.orm import Session

from ...config import LICENSE_STORE_URL
from ...models import Partner, User
from ...models_license import ActivationCode, License, LicenseTransaction
from ..partners.service import PartnerService
from .schemas import CreateDirectLicenseRequest

logger = logging.getLogger(__name__)


class LicenseService:
    def __init__(self, db: Session):
        self.db = db

    def get_my_license(self, user: User) -> Optional[License]:
        return (
            self.db.query(License)
            .filter(License.user_id == user.id, License.status == "active")
            .order_by(License.expires_at.desc())
            .first()
        )

    def get_licenses(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        license_type: Optional[str] = None,
    ) -> tuple[list[License], int]:
        query = self.db.query(License)
        if status:
            query = query.filter(License.status == status)
        if license_type:
            query = query.filter(License.license_type == license_type)

        total = query.count()
        licenses = (
            query.order_by(License.created_at.desc(), License.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return licenses, total

    def get_license(self, license_id: int, user: User) -> License:
        """A license visible to the caller: their own, or any for administrators"""
        query = self.db.query(License).filter(License.id == license_id)
        if user.role != "admin":
            query = query.filter(License.user_id == user.id)
        license = query.first()
        if not license:
            raise HTTPException(status_code=404, detail="License not found")
        return license

    def _record_transaction(
        self, license: License, transaction_type: str, amount: float, payment_method: str
    ) -> LicenseTransaction:
        tx = LicenseTransaction(
            license_id=license.id,
            transaction_type=transaction_type,
            amount=amount,
            currency=license.currency,
            payment_method=payment_method,
            payment_status="completed",
        )
        self.db.add(tx)
        return tx

    def create_direct(self, data: CreateDirectLicenseRequest) -> License:
        if not self.db.query(User.id).filter(User.id == data.userId).first():
            raise HTTPException(status_code=404, detail="User not found")

        license = License(
            user_id=data.userId,
            license_type="direct",
            status="active",
            billing_cycle=data.billingCycle,
            price=data.price,
            currency=data.currency,
            expires_at=datetime.utcnow() + relativedelta(months=data.durationMonths),
            store_url=LICENSE_STORE_URL,
        )
        self.db.add(license)
        self.db.flush()
        self._record_transaction(license, "purchase", data.price, "stripe")
        self.db.commit()
        self.db.refresh(license)
        logger.info(f"🎫 Direct license {license.id} created for user {data.userId}")
        return license

    def activate_with_code(self, value: str, user: User) -> License:
        """
        Redeem an activation code for the caller.

        The use counter and the partner's pool are claimed with conditional
        UPDATEs so concurrent redemptions can never push ``uses_count`` past
        ``max_uses`` or ``licenses_available`` below zero.
        """
        now = datetime.utcnow()
        code = self.db.query(ActivationCode).filter(ActivationCode.code == value.strip()).first()
        if not code:
            raise HTTPException(status_code=404, detail="Invalid activation code")
        if code.status != "active":
            raise HTTPException(status_code=400, detail=f"This code is {code.status}")
        if code.expires_at and now > code.expires_at:
            raise HTTPException(status_code=400, detail="This code has expired")

        # Single-use codes count as max_uses = 1; NULL max_uses means unlimited
        limit = case((ActivationCode.code_type == "single_use", 1), else_=ActivationCode.max_uses)
        claim = (
            update(ActivationCode)
            .where(
                ActivationCode.id == code.id,
                ActivationCode.status == "active",
                or_(limit.is_(None), ActivationCode.uses_count < limit),
            )
            .values(
                uses_count=ActivationCode.uses_count + 1,
                status=case(
                    (and_(limit.isnot(None), ActivationCode.uses_count + 1 >= limit), "used"),
                    else_="active",
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(claim)
        if result.rowcount == 0:
            self.db.rollback()
            message = "This code has already been used" if code.code_type == "single_use" else (
                "This code reached its maximum number of uses"
            )
            raise HTTPException(status_code=400, detail=message)

        pool = self.db.execute(
            update(Partner)
            .where(Partner.id == code.partner_id, Partner.licenses_available > 0)
            .values(
                licenses_available=Partner.licenses_available - 1,
                licenses_assigned=Partner.licenses_assigned + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if pool.rowcount == 0:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="The partner has no licenses available")

        partner = PartnerService(self.db).get_partner(code.partner_id)
        license = License(
            user_id=user.id,
            license_type="partner",
            partner_id=code.partner_id,
            activation_code_id=code.id,
            status="active",
            billing_cycle=code.billing_cycle,
            price=0,
            currency="EUR",
            activated_at=now,
            expires_at=now + relativedelta(months=code.duration_months),
            store_url=partner.ecommerce_url,
        )
        self.db.add(license)
        self.db.commit()
        self.db.refresh(license)
        self.db.refresh(code)
        logger.info(f"🎫 User {user.id} activated license {license.id} with code {code.code}")
        return license

    def renew(self, license_id: int, duration_months: int, user: User) -> License:
        license = self.get_license(license_id, user)

        base = license.expires_at or datetime.utcnow()
        license.expires_at = base + relativedelta(months=duration_months)
        license.status = "active"
        payment_method = "partner" if license.license_type == "partner" else "stripe"
        self._record_transaction(license, "renewal", license.price, payment_method)
        self.db.commit()
        self.db.refresh(license)
        logger.info(f"🎫 License {license.id} renewed until {license.expires_at}")
        return license

    def cancel(self, license_id: int, user: User) -> License:
        license = self.get_license(license_id, user)
        if license.status == "cancelled":
            raise HTTPException(status_code=400, detail="License is already cancelled")

        license.status = "cancelled"
        payment_method = "partner" if license.license_type == "partner" else "stripe"
        self._record_transaction(license, "cancellation", 0, payment_method)
        self.db.commit()
        self.db.refresh(license)
        logger.info(f"🎫 License {license.id} cancelled")
        return license

    def get_transactions(self, license_id: int, user: User) -> list[LicenseTransaction]:
        license = self.get_license(license_id, user)
        return (
            self.db.query(LicenseTransaction)
            .filter(LicenseTransaction.license_id == license.id)
            .order_by(LicenseTransaction.created_at.desc(), LicenseTransaction.id.desc())
            .all()
        )

    def get_partner_licenses(self, user: User) -> list[License]:
        """Licenses activated with codes of the partner the caller represents"""
        partner = PartnerService(self.db).get_partner_for_user(user)
        if not partner:
            return []
        return (
            self.db.query(License)
            .filter(License.partner_id == partner.id)
            .order_by(License.created_at.desc(), License.id.desc())
            .all()
        )
