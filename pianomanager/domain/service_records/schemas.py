"""Service record schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

SERVICE_TYPES = (
    "tuning",
    "repair",
    "regulation",
    "maintenance_basic",
    "maintenance_complete",
    "maintenance_premium",
    "inspection",
    "restoration",
    "other",
)

FIELD_MAP = {
    "pianoId": "piano_id",
    "technicianId": "technician_id",
    "serviceType": "service_type",
    "date": "date",
    "cost": "cost",
    "duration": "duration",
    "tasks": "tasks",
    "notes": "notes",
    "technicianNotes": "technician_notes",
    "materialsUsed": "materials_used",
    "humidity": "humidity",
    "temperature": "temperature",
}


class ServiceTask(BaseModel):
    name: str
    completed: bool = False
    notes: Optional[str] = None


class ServiceFields(BaseModel):
    @field_validator("serviceType", check_fields=False)
    @classmethod
    def validate_service_type(cls, v):
        if v is not None and v not in SERVICE_TYPES:
            raise ValueError(f"serviceType must be one of: {', '.join(SERVICE_TYPES)}")
        return v


class ServiceCreate(ServiceFields):
    pianoId: int
    technicianId: Optional[int] = None
    serviceType: str
    date: datetime
    cost: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=0)
    tasks: Optional[list[ServiceTask]] = None
    notes: Optional[str] = None
    technicianNotes: Optional[str] = None
    materialsUsed: Optional[list[dict[str, Any]]] = None
    humidity: Optional[float] = None
    temperature: Optional[float] = None


class ServiceUpdate(ServiceFields):
    technicianId: Optional[int] = None
    serviceType: Optional[str] = None
    date: Optional[datetime] = None
    cost: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=0)
    tasks: Optional[list[ServiceTask]] = None
    notes: Optional[str] = None
    technicianNotes: Optional[str] = None
    materialsUsed: Optional[list[dict[str, Any]]] = None
    humidity: Optional[float] = None
    temperature: Optional[float] = None


class ServiceResponse(BaseModel):
    id: int
    pianoId: int
    clientId: int
    technicianId: Optional[int]
    serviceType: str
    date: datetime
    cost: Optional[float]
    duration: Optional[int]
    tasks: Optional[list[dict[str, Any]]]
    notes: Optional[str]
    technicianNotes: Optional[str]
    materialsUsed: Optional[list[dict[str, Any]]]
    humidity: Optional[float]
    temperature: Optional[float]
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, record) -> "ServiceResponse":
        return cls(
            id=record.id,
            clientId=record.client_id,
            createdAt=record.created_at,
            **{field: getattr(record, column) for field, column in FIELD_MAP.items()},
        )
