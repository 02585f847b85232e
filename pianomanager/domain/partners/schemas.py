"""Partner schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ...shared.validators import validate_hex_color, validate_slug

PARTNER_TYPES = ("manufacturer", "distributor")
PARTNER_STATUSES = ("active", "suspended", "inactive")

FIELD_MAP = {
    "name": "name",
    "slug": "slug",
    "email": "email",
    "partnerType": "partner_type",
    "logo": "logo",
    "primaryColor": "primary_color",
    "secondaryColor": "secondary_color",
    "brandName": "brand_name",
    "ecommerceUrl": "ecommerce_url",
    "legalName": "legal_name",
    "taxId": "tax_id",
    "country": "country",
    "contactName": "contact_name",
    "contactEmail": "contact_email",
    "contactPhone": "contact_phone",
    "status": "status",
}


class PartnerFields(BaseModel):
    @field_validator("slug", check_fields=False)
    @classmethod
    def check_slug(cls, v):
        return validate_slug(v) if v is not None else v

    @field_validator("primaryColor", "secondaryColor", check_fields=False)
    @classmethod
    def check_color(cls, v):
        return validate_hex_color(v)

    @field_validator("partnerType", check_fields=False)
    @classmethod
    def check_type(cls, v):
        if v is not None and v not in PARTNER_TYPES:
            raise ValueError(f"partnerType must be one of: {', '.join(PARTNER_TYPES)}")
        return v

    @field_validator("status", check_fields=False)
    @classmethod
    def check_status(cls, v):
        if v is not None and v not in PARTNER_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(PARTNER_STATUSES)}")
        return v


class PartnerCreate(PartnerFields):
    name: str = Field(..., min_length=1)
    slug: str
    email: EmailStr
    partnerType: str = "distributor"
    logo: Optional[str] = None
    primaryColor: Optional[str] = "#3b82f6"
    secondaryColor: Optional[str] = "#10b981"
    brandName: Optional[str] = None
    ecommerceUrl: Optional[str] = None
    legalName: Optional[str] = None
    taxId: Optional[str] = None
    country: str = Field("ES", min_length=2, max_length=2)
    contactName: Optional[str] = None
    contactEmail: Optional[EmailStr] = None
    contactPhone: Optional[str] = None
    status: str = "active"


class PartnerUpdate(PartnerFields):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    partnerType: Optional[str] = None
    logo: Optional[str] = None
    primaryColor: Optional[str] = None
    secondaryColor: Optional[str] = None
    brandName: Optional[str] = None
    ecommerceUrl: Optional[str] = None
    legalName: Optional[str] = None
    taxId: Optional[str] = None
    country: Optional[str] = Field(None, min_length=2, max_length=2)
    contactName: Optional[str] = None
    contactEmail: Optional[EmailStr] = None
    contactPhone: Optional[str] = None
    status: Optional[str] = None


class LicensePurchase(BaseModel):
    quantity: int = Field(..., ge=1, le=10000)


class PartnerResponse(BaseModel):
    id: int
    name: str
    slug: str
    email: str
    partnerType: str
    logo: Optional[str]
    primaryColor: Optional[str]
    secondaryColor: Optional[str]
    brandName: Optional[str]
    ecommerceUrl: Optional[str]
    legalName: Optional[str]
    taxId: Optional[str]
    country: Optional[str]
    contactName: Optional[str]
    contactEmail: Optional[str]
    contactPhone: Optional[str]
    status: str
    totalLicensesPurchased: int
    licensesAvailable: int
    licensesAssigned: int
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, partner) -> "PartnerResponse":
        return cls(
            id=partner.id,
            totalLicensesPurchased=partner.total_licenses_purchased,
            licensesAvailable=partner.licenses_available,
            licensesAssigned=partner.licenses_assigned,
            createdAt=partner.created_at,
            **{field: getattr(partner, column) for field, column in FIELD_MAP.items()},
        )
