"""Inventory router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import InventoryCreate, InventoryResponse, InventoryUpdate, StockAdjustment
from .service import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    return InventoryService(db)


@router.get("", response_model=list[InventoryResponse])
async def get_items(
    category: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    return [InventoryResponse.from_model(i) for i in service.get_items(current_user, category)]


@router.get("/low-stock", response_model=list[InventoryResponse])
async def get_low_stock(
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    """Items whose quantity is at or below the minimum stock"""
    return [InventoryResponse.from_model(i) for i in service.get_low_stock(current_user)]


@router.get("/{item_id}", response_model=InventoryResponse)
async def get_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    return InventoryResponse.from_model(service.get_item(item_id, current_user))


@router.post("", response_model=InventoryResponse)
async def create_item(
    data: InventoryCreate,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    return InventoryResponse.from_model(service.create_item(data, current_user))


@router.patch("/{item_id}", response_model=InventoryResponse)
async def update_item(
    item_id: int,
    data: InventoryUpdate,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    return InventoryResponse.from_model(service.update_item(item_id, data, current_user))


@router.post("/{item_id}/adjust", response_model=InventoryResponse)
async def adjust_stock(
    item_id: int,
    data: StockAdjustment,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    return InventoryResponse.from_model(service.adjust_stock(item_id, data.delta, current_user, data.reason))


@router.delete("/{item_id}")
async def delete_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    service: InventoryService = Depends(get_inventory_service),
):
    return service.delete_item(item_id, current_user)
