"""Inventory service - parts and materials stock"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import InventoryItem, User
from .schemas import FIELD_MAP, InventoryCreate, InventoryUpdate

logger = logging.getLogger(__name__)


class InventoryService:
    def __init__(self, db: Session):
        self.db = db

    def get_items(self, user: User, category: Optional[str] = None) -> list[InventoryItem]:
        query = self.db.query(InventoryItem).filter(InventoryItem.user_id == user.id)
        if category:
            query = query.filter(InventoryItem.category == category)
        return query.order_by(InventoryItem.name.asc()).all()

    def get_low_stock(self, user: User) -> list[InventoryItem]:
        """Items at or below their minimum stock"""
        return (
            self.db.query(InventoryItem)
            .filter(InventoryItem.user_id == user.id, InventoryItem.quantity <= InventoryItem.min_stock)
            .order_by(InventoryItem.quantity.asc())
            .all()
        )

    def get_item(self, item_id: int, user: User) -> InventoryItem:
        item = (
            self.db.query(InventoryItem)
            .filter(InventoryItem.id == item_id, InventoryItem.user_id == user.id)
            .first()
        )
        if not item:
            raise HTTPException(status_code=404, detail="Inventory item not found")
        return item

    def create_item(self, data: InventoryCreate, user: User) -> InventoryItem:
        values = {FIELD_MAP[k]: v for k, v in data.model_dump().items()}
        item = InventoryItem(user_id=user.id, partner_id=user.partner_id, **values)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update_item(self, item_id: int, data: InventoryUpdate, user: User) -> InventoryItem:
        item = self.get_item(item_id, user)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(item, FIELD_MAP[field], value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def adjust_stock(self, item_id: int, delta: float, user: User, reason: Optional[str] = None) -> InventoryItem:
        """Add (positive delta) or consume (negative delta) stock"""
        item = self.get_item(item_id, user)
        new_quantity = item.quantity + delta
        if new_quantity < 0:
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient stock: {item.quantity} {item.unit} available",
            )

        item.quantity = new_quantity
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"📦 Stock of item {item.id} adjusted by {delta} ({reason or 'no reason'})")

        if item.quantity <= item.min_stock:
            logger.warning(f"⚠️ Item {item.id} ({item.name}) is low on stock: {item.quantity}")
        return item

    def delete_item(self, item_id: int, user: User) -> dict:
        item = self.get_item(item_id, user)
        self.db.delete(item)
        self.db.commit()
        return {"success": True, "message": "Inventory item deleted"}
