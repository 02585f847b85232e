"""Inventory schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

INVENTORY_CATEGORIES = (
    "strings",
    "hammers",
    "dampers",
    "keys",
    "action_parts",
    "pedals",
    "tuning_pins",
    "felts",
    "tools",
    "chemicals",
    "other",
)

FIELD_MAP = {
    "name": "name",
    "category": "category",
    "description": "description",
    "quantity": "quantity",
    "unit": "unit",
    "minStock": "min_stock",
    "costPerUnit": "cost_per_unit",
    "supplier": "supplier",
}


class InventoryFields(BaseModel):
    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v):
        if v is not None and v not in INVENTORY_CATEGORIES:
            raise ValueError(f"category must be one of: {', '.join(INVENTORY_CATEGORIES)}")
        return v


class InventoryCreate(InventoryFields):
    name: str = Field(..., min_length=1)
    category: str
    description: Optional[str] = None
    quantity: float = Field(0, ge=0)
    unit: str = "unidad"
    minStock: float = Field(0, ge=0)
    costPerUnit: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None


class InventoryUpdate(InventoryFields):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = None
    minStock: Optional[float] = Field(None, ge=0)
    costPerUnit: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None


class StockAdjustment(BaseModel):
    delta: float
    reason: Optional[str] = None


class InventoryResponse(BaseModel):
    id: int
    name: str
    category: str
    description: Optional[str]
    quantity: float
    unit: str
    minStock: float
    costPerUnit: Optional[float]
    supplier: Optional[str]
    lowStock: bool
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, item) -> "InventoryResponse":
        return cls(
            id=item.id,
            lowStock=item.quantity <= item.min_stock,
            updatedAt=item.updated_at,
            **{field: getattr(item, column) for field, column in FIELD_MAP.items()},
        )
