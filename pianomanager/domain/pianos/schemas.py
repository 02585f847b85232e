"""Piano domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

PIANO_CATEGORIES = ("vertical", "grand")
PIANO_CONDITIONS = ("excellent", "good", "fair", "poor", "needs_repair")

FIELD_MAP = {
    "clientId": "client_id",
    "brand": "brand",
    "model": "model",
    "serialNumber": "serial_number",
    "year": "year",
    "category": "category",
    "pianoType": "piano_type",
    "condition": "condition",
    "location": "location",
    "notes": "notes",
    "photos": "photos",
    "tuningIntervalDays": "tuning_interval_days",
    "regulationIntervalDays": "regulation_interval_days",
}


class PianoFields(BaseModel):
    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v):
        if v is not None and v not in PIANO_CATEGORIES:
            raise ValueError(f"category must be one of: {', '.join(PIANO_CATEGORIES)}")
        return v

    @field_validator("condition", check_fields=False)
    @classmethod
    def validate_condition(cls, v):
        if v is not None and v not in PIANO_CONDITIONS:
            raise ValueError(f"condition must be one of: {', '.join(PIANO_CONDITIONS)}")
        return v

    @field_validator("year", check_fields=False)
    @classmethod
    def validate_year(cls, v):
        if v is not None and not 1700 <= v <= datetime.utcnow().year + 1:
            raise ValueError("year is out of range")
        return v


class PianoCreate(PianoFields):
    clientId: int
    brand: str
    model: Optional[str] = None
    serialNumber: Optional[str] = None
    year: Optional[int] = None
    category: str = "vertical"
    pianoType: str
    condition: str = "good"
    location: Optional[str] = None
    notes: Optional[str] = None
    photos: Optional[list[str]] = None
    tuningIntervalDays: int = 180
    regulationIntervalDays: int = 730


class PianoUpdate(PianoFields):
    clientId: Optional[int] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    serialNumber: Optional[str] = None
    year: Optional[int] = None
    category: Optional[str] = None
    pianoType: Optional[str] = None
    condition: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    photos: Optional[list[str]] = None
    tuningIntervalDays: Optional[int] = None
    regulationIntervalDays: Optional[int] = None


class PianoResponse(BaseModel):
    id: int
    clientId: int
    brand: str
    model: Optional[str]
    serialNumber: Optional[str]
    year: Optional[int]
    category: str
    pianoType: str
    condition: str
    location: Optional[str]
    notes: Optional[str]
    photos: Optional[list[str]]
    tuningIntervalDays: Optional[int]
    regulationIntervalDays: Optional[int]
    createdAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, piano) -> "PianoResponse":
        return cls(
            id=piano.id,
            createdAt=piano.created_at,
            **{field: getattr(piano, column) for field, column in FIELD_MAP.items()},
        )
