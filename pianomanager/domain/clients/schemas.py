"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

from ...shared.validators import validate_phone

CLIENT_TYPES = (
    "particular",
    "student",
    "professional",
    "music_school",
    "conservatory",
    "concert_hall",
)

# API field -> column
FIELD_MAP = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "region": "region",
    "postalCode": "postal_code",
    "clientType": "client_type",
    "notes": "notes",
    "latitude": "latitude",
    "longitude": "longitude",
    "routeGroup": "route_group",
}


def _check_client_type(v):
    if v is not None and v not in CLIENT_TYPES:
        raise ValueError(f"clientType must be one of: {', '.join(CLIENT_TYPES)}")
    return v


class ClientCreate(BaseModel):
    """Schema for creating a new client"""

    name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    postalCode: Optional[str] = None
    clientType: str = "particular"
    notes: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    routeGroup: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)

    @field_validator("clientType")
    @classmethod
    def validate_client_type(cls, v):
        return _check_client_type(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class ClientUpdate(BaseModel):
    """Schema for updating an existing client; only sent fields change"""

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    postalCode: Optional[str] = None
    clientType: Optional[str] = None
    notes: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    routeGroup: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_phone(v)

    @field_validator("clientType")
    @classmethod
    def validate_client_type(cls, v):
        return _check_client_type(v)


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    city: Optional[str]
    region: Optional[str]
    postalCode: Optional[str]
    clientType: str
    notes: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    routeGroup: Optional[str]
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, client) -> "ClientResponse":
        return cls(
            id=client.id,
            createdAt=client.created_at,
            updatedAt=client.updated_at,
            **{field: getattr(client, column) for field, column in FIELD_MAP.items()},
        )
