"""Activation code and license routers"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...database import get_db
from ...models import User
from .codes import ActivationCodeService
from .licenses import LicenseService
from .schemas import (
    ActivateLicenseRequest,
    ActivationCodeResponse,
    CodePage,
    CodeStats,
    CreateDirectLicenseRequest,
    GenerateCodesRequest,
    LicensePage,
    LicenseResponse,
    RenewLicenseRequest,
    TransactionResponse,
    VerifyCodeResponse,
)

codes_router = APIRouter(prefix="/activation-codes", tags=["Activation Codes"])
licenses_router = APIRouter(prefix="/licenses", tags=["Licenses"])


def get_code_service(db: Session = Depends(get_db)) -> ActivationCodeService:
    return ActivationCodeService(db)


def get_license_service(db: Session = Depends(get_db)) -> LicenseService:
    return LicenseService(db)


# ============================================================================
# ACTIVATION CODES
# ============================================================================


@codes_router.post("/generate")
async def generate_codes(
    data: GenerateCodesRequest,
    admin: User = Depends(get_current_admin),
    service: ActivationCodeService = Depends(get_code_service),
):
    """Generate a batch of activation codes for a partner"""
    codes = service.generate_codes(data)
    return {"success": True, "codes": [{"id": c.id, "code": c.code} for c in codes]}


@codes_router.get("/mine", response_model=list[ActivationCodeResponse])
async def get_my_partner_codes(
    current_user: User = Depends(get_current_user),
    service: ActivationCodeService = Depends(get_code_service),
):
    """Codes of the partner the caller is the contact for"""
    return [ActivationCodeResponse.from_model(c) for c in service.get_my_partner_codes(current_user)]


@codes_router.get("/verify", response_model=VerifyCodeResponse)
async def verify_code(
    code: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    service: ActivationCodeService = Depends(get_code_service),
):
    result = service.verify_code(code)
    if result["valid"]:
        result["code"] = ActivationCodeResponse.from_model(result["code"])
    return VerifyCodeResponse(**result)


@codes_router.get("/partner/{partner_id}", response_model=CodePage)
async def get_partner_codes(
    partner_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    admin: User = Depends(get_current_admin),
    service: ActivationCodeService = Depends(get_code_service),
):
    codes, total = service.get_codes(partner_id, page, limit, status)
    return CodePage(
        codes=[ActivationCodeResponse.from_model(c) for c in codes], total=total, page=page, limit=limit
    )


@codes_router.get("/partner/{partner_id}/stats", response_model=CodeStats)
async def get_code_stats(
    partner_id: int,
    admin: User = Depends(get_current_admin),
    service: ActivationCodeService = Depends(get_code_service),
):
    return CodeStats(**service.get_stats(partner_id))


@codes_router.post("/{code_id}/revoke", response_model=ActivationCodeResponse)
async def revoke_code(
    code_id: int,
    admin: User = Depends(get_current_admin),
    service: ActivationCodeService = Depends(get_code_service),
):
    return ActivationCodeResponse.from_model(service.revoke_code(code_id))


# ============================================================================
# LICENSES
# ============================================================================


@licenses_router.get("/me", response_model=Optional[LicenseResponse])
async def get_my_license(
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    """The caller's active license, or null"""
    license = service.get_my_license(current_user)
    return LicenseResponse.from_model(license) if license else None


@licenses_router.get("", response_model=LicensePage)
async def get_licenses(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    licenseType: Optional[str] = Query(None),
    admin: User = Depends(get_current_admin),
    service: LicenseService = Depends(get_license_service),
):
    licenses, total = service.get_licenses(page, limit, status, licenseType)
    return LicensePage(
        licenses=[LicenseResponse.from_model(lic) for lic in licenses], total=total, page=page, limit=limit
    )


@licenses_router.get("/partner", response_model=list[LicenseResponse])
async def get_partner_licenses(
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    return [LicenseResponse.from_model(lic) for lic in service.get_partner_licenses(current_user)]


@licenses_router.post("/direct", response_model=LicenseResponse)
async def create_direct_license(
    data: CreateDirectLicenseRequest,
    admin: User = Depends(get_current_admin),
    service: LicenseService = Depends(get_license_service),
):
    return LicenseResponse.from_model(service.create_direct(data))


@licenses_router.post("/activate", response_model=LicenseResponse)
async def activate_license(
    data: ActivateLicenseRequest,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    """Redeem a partner activation code"""
    return LicenseResponse.from_model(service.activate_with_code(data.code, current_user))


@licenses_router.post("/{license_id}/renew", response_model=LicenseResponse)
async def renew_license(
    license_id: int,
    data: RenewLicenseRequest,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    return LicenseResponse.from_model(service.renew(license_id, data.durationMonths, current_user))


@licenses_router.post("/{license_id}/cancel", response_model=LicenseResponse)
async def cancel_license(
    license_id: int,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    return LicenseResponse.from_model(service.cancel(license_id, current_user))


@licenses_router.get("/{license_id}/transactions", response_model=list[TransactionResponse])
async def get_license_transactions(
    license_id: int,
    current_user: User = Depends(get_current_user),
    service: LicenseService = Depends(get_license_service),
):
    return [TransactionResponse.from_model(tx) for tx in service.get_transactions(license_id, current_user)]
