"""Inventory service - Stock levels, transactions and manager alerts"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Booking, Profile, StaffProfile
from ...models_inventory import InventoryItem, InventoryTransaction
from ...services.twilio_service import send_whatsapp
from .schemas import InventoryItemCreate, InventoryItemUpdate, TransactionCreate

logger = logging.getLogger(__name__)

ALERT_ROLES = ("manager", "director")


def is_low_stock(item: InventoryItem) -> bool:
    return (item.quantity or 0) < (item.min_stock_level or 0)


def build_low_stock_message(items: list[InventoryItem]) -> str:
    lines = "\n".join(
        f"• {item.name}: {item.quantity}/{item.min_stock_level} {item.unit}" for item in items
    )
    return (
        "🚨 *Low Stock Alert*\n\n"
        "The following items are below minimum stock levels:\n\n"
        f"{lines}\n\n"
        "Please restock soon."
    )


def get_low_stock_items(db: Session) -> list[InventoryItem]:
    items = (
        db.query(InventoryItem)
        .filter(InventoryItem.is_active.is_(True))
        .order_by(InventoryItem.name)
        .all()
    )
    return [item for item in items if is_low_stock(item)]


def get_alert_recipients(db: Session) -> list[str]:
    """Phone numbers of active managers and directors"""
    staff = (
        db.query(StaffProfile)
        .filter(StaffProfile.staff_role.in_(ALERT_ROLES), StaffProfile.is_active.is_(True))
        .all()
    )
    phones = []
    for member in staff:
        phone = member.phone_number or (member.user.phone if member.user else None)
        if phone:
            phones.append(phone)
    return phones


async def send_low_stock_alerts(db: Session) -> dict:
    """WhatsApp every manager and director a list of items below their minimum"""
    low_stock = get_low_stock_items(db)
    if not low_stock:
        return {
            "success": True,
            "message": "No low stock items",
            "alerts_sent": 0,
            "total_managers": 0,
            "low_stock_items": 0,
        }

    recipients = get_alert_recipients(db)
    if not recipients:
        logger.warning(f"⚠️ {len(low_stock)} items low on stock but no managers with phone numbers")
        return {
            "success": True,
            "message": "No managers with phone numbers",
            "alerts_sent": 0,
            "total_managers": 0,
            "low_stock_items": len(low_stock),
        }

    message = build_low_stock_message(low_stock)
    logger.info(f"🚨 Sending low stock alerts to {len(recipients)} managers for {len(low_stock)} items")

    sent = 0
    for phone in recipients:
        success, _ = await send_whatsapp(db, phone, message)
        if success:
            sent += 1

    return {
        "success": True,
        "message": f"Alerts sent to {sent} of {len(recipients)} managers",
        "alerts_sent": sent,
        "total_managers": len(recipients),
        "low_stock_items": len(low_stock),
    }


class InventoryService:
    """Service layer for workshop inventory"""

    def __init__(self, db: Session):
        self.db = db

    def list_items(
        self,
        category: Optional[str] = None,
        include_inactive: bool = False,
        low_stock_only: bool = False,
    ) -> list[InventoryItem]:
        query = self.db.query(InventoryItem)
        if category:
            query = query.filter(InventoryItem.category == category)
        if not include_inactive:
            query = query.filter(InventoryItem.is_active.is_(True))
        items = query.order_by(InventoryItem.category, InventoryItem.name).all()
        if low_stock_only:
            items = [item for item in items if is_low_stock(item)]
        return items

    def get_item(self, item_id: str) -> InventoryItem:
        item = self.db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
        if not item:
            raise HTTPException(status_code=404, detail="Inventory item not found")
        return item

    def _check_sku(self, sku: Optional[str], item_id: Optional[str] = None):
        if not sku:
            return
        query = self.db.query(InventoryItem).filter(InventoryItem.sku == sku)
        if item_id:
            query = query.filter(InventoryItem.id != item_id)
        if query.first():
            raise HTTPException(status_code=400, detail=f"SKU {sku} already exists")

    def create_item(self, data: InventoryItemCreate, user: Profile) -> InventoryItem:
        self._check_sku(data.sku)
        item = InventoryItem(**data.model_dump())
        if item.quantity:
            item.last_restocked_at = datetime.utcnow()
        self.db.add(item)
        self.db.flush()

        if item.quantity:
            self.db.add(
                InventoryTransaction(
                    inventory_id=item.id,
                    transaction_type="restock",
                    quantity=item.quantity,
                    notes="Opening stock",
                    performed_by=user.id,
                )
            )
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"✅ Inventory item created: {item.name} ({item.quantity} {item.unit})")
        return item

    def update_item(self, item_id: str, data: InventoryItemUpdate) -> InventoryItem:
        item = self.get_item(item_id)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("sku"):
            self._check_sku(updates["sku"], item.id)
        for key, value in updates.items():
            if value is not None:
                setattr(item, key, value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item_id: str) -> dict:
        item = self.get_item(item_id)
        self.db.delete(item)
        self.db.commit()
        logger.info(f"🗑️ Inventory item deleted: {item_id}")
        return {"success": True, "message": "Item deleted"}

    def record_transaction(self, item_id: str, data: TransactionCreate, user: Profile) -> InventoryItem:
        """
        restock adds, usage subtracts and adjustment sets an absolute count.
        Usage that would take stock below zero is rejected.
        """
        item = self.get_item(item_id)

        if data.booking_id and not self.db.query(Booking).filter(Booking.id == data.booking_id).first():
            raise HTTPException(status_code=404, detail="Booking not found")

        if data.transaction_type == "restock":
            if data.quantity <= 0:
                raise HTTPException(status_code=400, detail="Restock quantity must be greater than 0")
            item.quantity = (item.quantity or 0) + data.quantity
            item.last_restocked_at = datetime.utcnow()
        elif data.transaction_type == "usage":
            if data.quantity <= 0:
                raise HTTPException(status_code=400, detail="Usage quantity must be greater than 0")
            remaining = (item.quantity or 0) - data.quantity
            if remaining < 0:
                raise HTTPException(
                    status_code=400,
                    detail=f"Insufficient stock: {item.quantity} {item.unit} available",
                )
            item.quantity = remaining
        else:
            item.quantity = data.quantity

        self.db.add(
            InventoryTransaction(
                inventory_id=item.id,
                transaction_type=data.transaction_type,
                quantity=data.quantity,
                notes=data.notes,
                performed_by=user.id,
                booking_id=data.booking_id,
            )
        )
        self.db.commit()
        self.db.refresh(item)

        logger.info(f"📦 {data.transaction_type} {data.quantity} on {item.name}: now {item.quantity}")
        if is_low_stock(item):
            logger.warning(f"⚠️ {item.name} below minimum ({item.quantity}/{item.min_stock_level})")
        return item

    def list_transactions(self, item_id: str, limit: int = 100) -> list[InventoryTransaction]:
        self.get_item(item_id)
        return (
            self.db.query(InventoryTransaction)
            .filter(InventoryTransaction.inventory_id == item_id)
            .order_by(InventoryTransaction.created_at.desc())
            .limit(limit)
            .all()
        )
