"""Activation code and license schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

CODE_TYPES = ("single_use", "multi_use")
CODE_STATUSES = ("active", "used", "expired", "revoked")
BILLING_CYCLES = ("monthly", "yearly")
LICENSE_STATUSES = ("active", "expired", "suspended", "cancelled")
LICENSE_TYPES = ("direct", "partner")


class GenerateCodesRequest(BaseModel):
    partnerId: int
    quantity: int = Field(..., ge=1, le=100)
    codeType: str = Field("single_use", pattern="^(single_use|multi_use)$")
    maxUses: Optional[int] = Field(None, ge=1)
    billingCycle: str = Field("monthly", pattern="^(monthly|yearly)$")
    durationMonths: int = Field(12, ge=1, le=120)
    expiresAt: Optional[datetime] = None

    @model_validator(mode="after")
    def single_use_has_one_use(self):
        if self.codeType == "single_use":
            self.maxUses = 1
        return self


class ActivationCodeResponse(BaseModel):
    id: int
    partnerId: int
    code: str
    codeType: str
    maxUses: Optional[int]
    usesCount: int
    status: str
    billingCycle: str
    durationMonths: int
    expiresAt: Optional[datetime]
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, code) -> "ActivationCodeResponse":
        return cls(
            id=code.id,
            partnerId=code.partner_id,
            code=code.code,
            codeType=code.code_type,
            maxUses=code.max_uses,
            usesCount=code.uses_count,
            status=code.status,
            billingCycle=code.billing_cycle,
            durationMonths=code.duration_months,
            expiresAt=code.expires_at,
            createdAt=code.created_at,
        )


class CodePage(BaseModel):
    codes: list[ActivationCodeResponse]
    total: int
    page: int
    limit: int


class CodeStats(BaseModel):
    total: int
    active: int
    used: int


class VerifyCodeResponse(BaseModel):
    valid: bool
    message: Optional[str] = None
    code: Optional[ActivationCodeResponse] = None
    partner: Optional[dict] = None


class CreateDirectLicenseRequest(BaseModel):
    userId: int
    billingCycle: str = Field("monthly", pattern="^(monthly|yearly)$")
    price: float = Field(..., ge=0)
    currency: str = Field("EUR", min_length=3, max_length=3)
    durationMonths: int = Field(1, ge=1, le=120)


class ActivateLicenseRequest(BaseModel):
    code: str = Field(..., min_length=1)


class RenewLicenseRequest(BaseModel):
    durationMonths: int = Field(1, ge=1, le=120)


class LicenseResponse(BaseModel):
    id: int
    userId: int
    licenseType: str
    partnerId: Optional[int]
    activationCodeId: Optional[int]
    status: str
    activatedAt: Optional[datetime]
    expiresAt: Optional[datetime]
    billingCycle: str
    price: float
    currency: str
    storeUrl: Optional[str]

    @classmethod
    def from_model(cls, license) -> "LicenseResponse":
        return cls(
            id=license.id,
            userId=license.user_id,
            licenseType=license.license_type,
            partnerId=license.partner_id,
            activationCodeId=license.activation_code_id,
            status=license.status,
            activatedAt=license.activated_at,
            expiresAt=license.expires_at,
            billingCycle=license.billing_cycle,
            price=license.price,
            currency=license.currency,
            storeUrl=license.store_url,
        )


class LicensePage(BaseModel):
    licenses: list[LicenseResponse]
    total: int
    page: int
    limit: int


class TransactionResponse(BaseModel):
    id: int
    licenseId: int
    transactionType: str
    amount: float
    currency: str
    paymentMethod: str
    paymentStatus: str
    transactionDate: Optional[datetime]

    @classmethod
    def from_model(cls, tx) -> "TransactionResponse":
        return cls(
            id=tx.id,
            licenseId=tx.license_id,
            transactionType=tx.transaction_type,
            amount=tx.amount,
            currency=tx.currency,
            paymentMethod=tx.payment_method,
            paymentStatus=tx.payment_status,
            transactionDate=tx.transaction_date,
        )
