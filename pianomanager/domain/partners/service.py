"""Partner service - distributors and manufacturers holding license pools"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Partner, User
from .schemas import FIELD_MAP, PartnerCreate, PartnerUpdate

logger = logging.getLogger(__name__)


class PartnerService:
    def __init__(self, db: Session):
        self.db = db

    def get_partners(self, status: Optional[str] = None) -> list[Partner]:
        query = self.db.query(Partner)
        if status:
            query = query.filter(Partner.status == status)
        return query.order_by(Partner.name.asc()).all()

    def get_partner(self, partner_id: int) -> Partner:
        partner = self.db.query(Partner).filter(Partner.id == partner_id).first()
        if not partner:
            raise HTTPException(status_code=404, detail="Partner not found")
        return partner

    def get_partner_for_user(self, user: User) -> Optional[Partner]:
        """The partner whose contact e-mail is the user's address, if any"""
        if not user.email:
            return None
        return self.db.query(Partner).filter(Partner.contact_email == user.email).first()

    def create_partner(self, data: PartnerCreate) -> Partner:
        if self.db.query(Partner.id).filter(Partner.slug == data.slug).first():
            raise HTTPException(status_code=409, detail=f"Slug '{data.slug}' is already in use")

        partner = Partner(**{FIELD_MAP[k]: v for k, v in data.model_dump().items()})
        self.db.add(partner)
        self.db.commit()
        self.db.refresh(partner)
        logger.info(f"🤝 Partner {partner.slug} created")
        return partner

    def update_partner(self, partner_id: int, data: PartnerUpdate) -> Partner:
        partner = self.get_partner(partner_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(partner, FIELD_MAP[field], value)
        self.db.commit()
        self.db.refresh(partner)
        return partner

    def add_licenses(self, partner_id: int, quantity: int) -> Partner:
        """Record a bulk license purchase by the partner"""
        partner = self.get_partner(partner_id)
        partner.total_licenses_purchased += quantity
        partner.licenses_available += quantity
        self.db.commit()
        self.db.refresh(partner)
        logger.info(f"🤝 Partner {partner.slug} purchased {quantity} licenses")
        return partner
