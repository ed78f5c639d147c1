"""Store service - Merchandise catalog, cart and orders"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ...auth import is_staff
from ...models import Profile
from ...models_store import CartItem, Merchandise, Order, OrderItem
from .schemas import CheckoutRequest, MerchandiseCreate, MerchandiseUpdate

logger = logging.getLogger(__name__)


def decrement_stock(db: Session, order: Order):
    """Take paid order quantities out of stock, never below zero"""
    for item in order.items:
        merch = item.merchandise or db.get(Merchandise, item.merchandise_id)
        if merch:
            merch.stock_quantity = max(0, (merch.stock_quantity or 0) - item.quantity)


class StoreService:
    """Service layer for the merchandise store"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------------
    # Merchandise
    # ------------------------------------------------------------------------

    def list_merchandise(self, include_inactive: bool = False) -> list[Merchandise]:
        query = self.db.query(Merchandise)
        if not include_inactive:
            query = query.filter(Merchandise.is_active.is_(True))
        return query.order_by(Merchandise.category, Merchandise.name).all()

    def get_merchandise(self, merchandise_id: str) -> Merchandise:
        merch = self.db.query(Merchandise).filter(Merchandise.id == merchandise_id).first()
        if not merch:
            raise HTTPException(status_code=404, detail="Item not found")
        return merch

    def create_merchandise(self, data: MerchandiseCreate) -> Merchandise:
        merch = Merchandise(**data.model_dump())
        self.db.add(merch)
        self.db.commit()
        self.db.refresh(merch)
        logger.info(f"✅ Merchandise created: {merch.name}")
        return merch

    def update_merchandise(self, merchandise_id: str, data: MerchandiseUpdate) -> Merchandise:
        merch = self.get_merchandise(merchandise_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(merch, key, value)
        self.db.commit()
        self.db.refresh(merch)
        return merch

    def delete_merchandise(self, merchandise_id: str) -> dict:
        merch = self.get_merchandise(merchandise_id)
        ordered = self.db.query(OrderItem).filter(OrderItem.merchandise_id == merch.id).count()

        self.db.query(CartItem).filter(CartItem.merchandise_id == merch.id).delete()
        if ordered:
            # Past orders keep pointing at the item
            merch.is_active = False
            self.db.commit()
            return {"success": True, "message": "Item deactivated"}

        self.db.delete(merch)
        self.db.commit()
        logger.info(f"🗑️ Merchandise deleted: {merchandise_id}")
        return {"success": True, "message": "Item deleted"}

    # ------------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------------

    def _cart_items(self, user_id: str) -> list[CartItem]:
        return (
            self.db.query(CartItem)
            .options(selectinload(CartItem.merchandise))
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.created_at)
            .all()
        )

    def get_cart(self, user: Profile) -> dict:
        items = self._cart_items(user.id)
        return {
            "items": items,
            "count": sum(i.quantity for i in items),
            "total": round(sum(i.merchandise.price * i.quantity for i in items), 2),
        }

    def add_to_cart(self, user: Profile, merchandise_id: str, quantity: int) -> dict:
        merch = self.get_merchandise(merchandise_id)
        if not merch.is_active:
            raise HTTPException(status_code=400, detail="Item is not available")

        item = (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user.id, CartItem.merchandise_id == merch.id)
            .first()
        )
        new_quantity = (item.quantity if item else 0) + quantity
        if new_quantity > (merch.stock_quantity or 0):
            raise HTTPException(status_code=400, detail="Not enough stock")

        if item:
            item.quantity = new_quantity
        else:
            self.db.add(CartItem(user_id=user.id, merchandise_id=merch.id, quantity=quantity))
        self.db.commit()
        return self.get_cart(user)

    def _get_cart_item(self, user: Profile, item_id: str) -> CartItem:
        item = (
            self.db.query(CartItem)
            .filter(CartItem.id == item_id, CartItem.user_id == user.id)
            .first()
        )
        if not item:
            raise HTTPException(status_code=404, detail="Cart item not found")
        return item

    def set_quantity(self, user: Profile, item_id: str, quantity: int) -> dict:
        item = self._get_cart_item(user, item_id)
        if quantity < 1:
            self.db.delete(item)
        else:
            if quantity > (item.merchandise.stock_quantity or 0):
                raise HTTPException(status_code=400, detail="Not enough stock")
            item.quantity = quantity
        self.db.commit()
        return self.get_cart(user)

    def remove_from_cart(self, user: Profile, item_id: str) -> dict:
        self.db.delete(self._get_cart_item(user, item_id))
        self.db.commit()
        return self.get_cart(user)

    def clear_cart(self, user: Profile) -> dict:
        self.db.query(CartItem).filter(CartItem.user_id == user.id).delete()
        self.db.commit()
        return self.get_cart(user)

    # ------------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------------

    def checkout(self, user: Profile, data: Optional[CheckoutRequest] = None) -> Order:
        items = self._cart_items(user.id)
        if not items:
            raise HTTPException(status_code=400, detail="Cart is empty")

        for item in items:
            if not item.merchandise.is_active:
                raise HTTPException(
                    status_code=400, detail=f"{item.merchandise.name} is no longer available"
                )

        total = round(sum(i.merchandise.price * i.quantity for i in items), 2)
        order = Order(
            user_id=user.id,
            status="pending",
            payment_status="pending",
            total_amount=total,
            shipping_address=data.shipping_address if data else None,
            notes=data.notes if data else None,
        )
        self.db.add(order)
        self.db.flush()

        for item in items:
            self.db.add(
                OrderItem(
                    order_id=order.id,
                    merchandise_id=item.merchandise_id,
                    quantity=item.quantity,
                    unit_price=item.merchandise.price,
                )
            )
            self.db.delete(item)

        self.db.commit()
        logger.info(f"🛒 Order {order.id} placed by {user.id}: R{total:.2f}")
        return self.get_order(order.id)

    def get_order(self, order_id: str) -> Order:
        order = (
            self.db.query(Order)
            .options(selectinload(Order.items).selectinload(OrderItem.merchandise))
            .filter(Order.id == order_id)
            .first()
        )
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    def get_order_for_user(self, order_id: str, user: Profile) -> Order:
        order = self.get_order(order_id)
        if order.user_id != user.id and not is_staff(self.db, user):
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    def list_orders(self, user_id: Optional[str] = None, status: Optional[str] = None) -> list[Order]:
        query = self.db.query(Order).options(
            selectinload(Order.items).selectinload(OrderItem.merchandise)
        )
        if user_id:
            query = query.filter(Order.user_id == user_id)
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc()).all()

    def update_order_status(self, order_id: str, status: str) -> Order:
        order = self.get_order(order_id)
        old_status = order.status
        order.status = status
        self.db.commit()
        logger.info(f"📦 Order {order.id}: {old_status} → {status}")
        return self.get_order(order.id)
