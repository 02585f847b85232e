"""Activation code service - generation, verification and revocation of partner codes"""

import logging
import secrets
import string
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Partner, User
from ...models_license import ActivationCode
from ..partners.service import PartnerService
from .schemas import GenerateCodesRequest

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10


def generate_code(prefix: str) -> str:
    """PREFIX-XXXX-XXXX-XXXX with random groups from A-Z0-9"""
    groups = ["".join(secrets.choice(CODE_ALPHABET) for _ in range(4)) for _ in range(3)]
    return "-".join([prefix.upper(), *groups])


def code_prefix(partner: Partner) -> str:
    return partner.slug[:4].upper()


def usage_limit(code: ActivationCode) -> Optional[int]:
    """Maximum redemptions; single-use codes are capped at one, None means unlimited"""
    if code.code_type == "single_use":
        return 1
    return code.max_uses


class ActivationCodeService:
    def __init__(self, db: Session):
        self.db = db
        self.partners = PartnerService(db)

    def _code_exists(self, code: str) -> bool:
        return self.db.query(ActivationCode.id).filter(ActivationCode.code == code).first() is not None

    def generate_codes(self, data: GenerateCodesRequest) -> list[ActivationCode]:
        partner = self.partners.get_partner(data.partnerId)

        if partner.licenses_available < data.quantity:
            raise HTTPException(
                status_code=400,
                detail=f"Partner only has {partner.licenses_available} licenses available",
            )

        prefix = code_prefix(partner)
        issued = set()
        codes = []
        for _ in range(data.quantity):
            value = generate_code(prefix)
            attempts = 0
            while (value in issued or self._code_exists(value)) and attempts < MAX_CODE_ATTEMPTS:
                value = generate_code(prefix)
                attempts += 1
            if value in issued or self._code_exists(value):
                raise HTTPException(status_code=500, detail="Could not generate a unique activation code")

            issued.add(value)
            codes.append(
                ActivationCode(
                    partner_id=partner.id,
                    code=value,
                    code_type=data.codeType,
                    max_uses=data.maxUses,
                    billing_cycle=data.billingCycle,
                    duration_months=data.durationMonths,
                    expires_at=data.expiresAt,
                )
            )

        self.db.add_all(codes)
        self.db.commit()
        for code in codes:
            self.db.refresh(code)

        logger.info(f"🔑 Generated {len(codes)} activation codes for partner {partner.slug}")
        return codes

    def get_codes(
        self, partner_id: int, page: int = 1, limit: int = 20, status: Optional[str] = None
    ) -> tuple[list[ActivationCode], int]:
        query = self.db.query(ActivationCode).filter(ActivationCode.partner_id == partner_id)
        if status:
            query = query.filter(ActivationCode.status == status)

        total = query.count()
        codes = (
            query.order_by(ActivationCode.created_at.desc(), ActivationCode.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return codes, total

    def get_code(self, code_id: int) -> ActivationCode:
        code = self.db.query(ActivationCode).filter(ActivationCode.id == code_id).first()
        if not code:
            raise HTTPException(status_code=404, detail="Activation code not found")
        return code

    def revoke_code(self, code_id: int) -> ActivationCode:
        code = self.get_code(code_id)
        code.status = "revoked"
        self.db.commit()
        self.db.refresh(code)
        logger.info(f"🔑 Activation code {code.code} revoked")
        return code

    def verify_code(self, value: str) -> dict:
        """Check whether a code can be redeemed, without redeeming it"""
        code = self.db.query(ActivationCode).filter(ActivationCode.code == value.strip()).first()
        if not code:
            return {"valid": False, "message": "Code not found"}

        if code.status != "active":
            return {"valid": False, "message": f"Code {code.status}"}

        limit = usage_limit(code)
        if limit is not None and code.uses_count >= limit:
            if code.code_type == "single_use":
                return {"valid": False, "message": "Code already used"}
            return {"valid": False, "message": "Code reached its maximum number of uses"}

        if code.expires_at and datetime.utcnow() > code.expires_at:
            return {"valid": False, "message": "Code expired"}

        partner = code.partner
        return {
            "valid": True,
            "code": code,
            "partner": {
                "id": partner.id,
                "name": partner.name,
                "brandName": partner.brand_name,
                "logo": partner.logo,
                "primaryColor": partner.primary_color,
                "ecommerceUrl": partner.ecommerce_url,
            },
        }

    def get_stats(self, partner_id: int) -> dict:
        rows = (
            self.db.query(ActivationCode.status, func.count(ActivationCode.id))
            .filter(ActivationCode.partner_id == partner_id)
            .group_by(ActivationCode.status)
            .all()
        )
        counts = dict(rows)
        return {
            "total": sum(counts.values()),
            "active": counts.get("active", 0),
            "used": counts.get("used", 0),
        }

    def get_my_partner_codes(self, user: User) -> list[ActivationCode]:
        partner = self.partners.get_partner_for_user(user)
        if not partner:
            return []
        return (
            self.db.query(ActivationCode)
            .filter(ActivationCode.partner_id == partner.id)
            .order_by(ActivationCode.created_at.desc(), ActivationCode.id.desc())
            .all()
        )
