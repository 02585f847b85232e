"""
Current-user profile endpoints
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import User

router = APIRouter(prefix="/users", tags=["Users"])

SUPPORTED_LANGUAGES = ("es", "en", "fr", "de", "it", "pt", "ca", "eu", "gl")


class UserResponse(BaseModel):
    id: int
    email: Optional[str]
    name: Optional[str]
    role: str
    partnerId: int
    preferredLanguage: Optional[str]
    notificationEmailEnabled: bool
    createdAt: Optional[datetime] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    preferredLanguage: Optional[str] = None

    @field_validator("preferredLanguage")
    @classmethod
    def validate_language(cls, v):
        if v is not None and v not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {v}")
        return v


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        partnerId=user.partner_id,
        preferredLanguage=user.preferred_language,
        notificationEmailEnabled=bool(user.notification_email_enabled),
        createdAt=user.created_at,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return user_response(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update profile name and interface language"""
    if data.name is not None:
        current_user.name = data.name
    if data.preferredLanguage is not None:
        current_user.preferred_language = data.preferredLanguage
    db.commit()
    db.refresh(current_user)
    return user_response(current_user)
