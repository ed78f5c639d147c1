"""Payment service - Checkout creation and webhook processing"""

import json
import logging
from datetime import datetime
from typing import Optional, Union

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ... import config
from ...auth import is_staff
from ...models import Booking, Profile
from ...models_store import Order, OrderItem
from ...services.notification_service import (
    create_in_app_notification,
    get_staff_user_ids,
    notify_user,
)
from ...shared.validators import validate_uuid
from ..bookings.service import describe_vehicle
from ..store.service import decrement_stock
from .schemas import CheckoutRequest
from .yoco_service import YocoAPIError, YocoService, verify_checkout

logger = logging.getLogger(__name__)

MAX_CHECKOUT_AMOUNT = 1_000_000
SUCCESS_EVENTS = {"payment.succeeded", "checkout.succeeded"}
FAILURE_EVENTS = {"payment.failed", "checkout.failed", "checkout.expired"}
VERIFIED_STATUSES = {"completed", "succeeded"}


def parse_event_date(value: Optional[str]) -> datetime:
    if value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return parsed.replace(tzinfo=None)
        except ValueError:
            logger.warning(f"⚠️ Unparseable event date: {value}")
    return datetime.utcnow()


class PaymentService:
    """Service layer for Yoco payments"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------------

    def _load_target(self, data: CheckoutRequest, user: Profile) -> Union[Booking, Order]:
        if data.order_type == "merchandise":
            target_id, model, label = data.order_id, Order, "Order"
        elif data.order_type == "booking":
            target_id, model, label = data.booking_id, Booking, "Booking"
        else:
            raise HTTPException(status_code=400, detail="orderType must be booking or merchandise")

        if not target_id or not validate_uuid(target_id):
            raise HTTPException(status_code=400, detail=f"{label} id must be a valid UUID")

        target = self.db.query(model).filter(model.id == target_id).first()
        if not target or (target.user_id != user.id and not is_staff(self.db, user)):
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return target

    async def create_checkout(self, data: CheckoutRequest, user: Profile) -> dict:
        if data.currency != config.CURRENCY:
            raise HTTPException(status_code=400, detail="Only ZAR currency supported")

        target = self._load_target(data, user)
        is_order = isinstance(target, Order)
        amount = float((target.total_amount if is_order else target.payment_amount) or 0)

        if amount <= 0 or amount > MAX_CHECKOUT_AMOUNT:
            raise HTTPException(status_code=400, detail="Invalid amount")
        if target.payment_status == "paid":
            raise HTTPException(status_code=400, detail="Already paid")

        yoco = YocoService(test_mode=data.test_mode)
        if not yoco.is_available():
            raise HTTPException(status_code=500, detail="Payment gateway not configured")

        page = "store" if is_order else "bookings"
        base = config.FRONTEND_URL.rstrip("/")
        metadata = (
            {"orderId": target.id, "orderType": "merchandise"}
            if is_order
            else {"bookingId": target.id, "orderType": "booking"}
        )

        try:
            checkout = await yoco.create_checkout(
                amount_cents=int(round(amount * 100)),
                currency=data.currency,
                success_url=f"{base}/{page}?payment=success",
                cancel_url=f"{base}/{page}?payment=failed",
                failure_url=f"{base}/{page}?payment=failed",
                metadata=metadata,
            )
        except YocoAPIError as e:
            raise HTTPException(status_code=502, detail="Failed to create checkout session") from e

        target.yoco_checkout_id = checkout.get("id")
        target.payment_status = "pending"
        self.db.commit()

        return {"checkoutId": checkout.get("id"), "redirectUrl": checkout.get("redirectUrl")}

    # ------------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------------

    def _find_booking(self, payload: dict) -> Optional[Booking]:
        booking_id = (payload.get("metadata") or {}).get("bookingId")
        query = self.db.query(Booking)
        if booking_id:
            return query.filter(Booking.id == booking_id).first()
        return query.filter(Booking.yoco_checkout_id == payload["id"]).first()

    def _find_order(self, payload: dict) -> Optional[Order]:
        order_id = (payload.get("metadata") or {}).get("orderId")
        query = self.db.query(Order).options(selectinload(Order.items).selectinload(OrderItem.merchandise))
        if order_id:
            return query.filter(Order.id == order_id).first()
        return query.filter(Order.yoco_checkout_id == payload["id"]).first()

    async def handle_webhook(self, raw_body: bytes) -> dict:
        try:
            event = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError) as e:
            raise HTTPException(status_code=400, detail="Invalid payload") from e

        if not isinstance(event, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        event_type = event.get("type")
        payload = event.get("payload")
        if not event_type or not isinstance(payload, dict) or not payload.get("id"):
            raise HTTPException(status_code=400, detail="Invalid payload")

        logger.info(f"📨 Yoco webhook: {event_type} ({payload['id']})")

        if event_type in SUCCESS_EVENTS:
            return await self._handle_success(payload)
        if event_type in FAILURE_EVENTS:
            return await self._handle_failure(payload)

        logger.info(f"ℹ️ Unhandled Yoco webhook type: {event_type}")
        return {"received": True}

    async def _handle_success(self, payload: dict) -> dict:
        verified = await verify_checkout(payload["id"])
        if not verified:
            logger.error(f"❌ Payment verification failed for {payload['id']}")
            raise HTTPException(status_code=403, detail="Payment verification failed")
        if verified.get("status") not in VERIFIED_STATUSES:
            logger.error(f"❌ Payment {payload['id']} not completed: {verified.get('status')}")
            raise HTTPException(status_code=400, detail="Payment not completed")

        metadata = payload.get("metadata") or {}
        amount_cents = payload.get("amount") or verified.get("amount")
        amount_text = f"R{amount_cents / 100:.2f}" if amount_cents else "N/A"
        paid_at = parse_event_date(payload.get("createdDate"))

        if metadata.get("orderType") == "merchandise" or metadata.get("orderId"):
            order = self._find_order(payload)
            if not order:
                raise HTTPException(status_code=404, detail="Order not found")
            if order.payment_status == "paid":
                return {"success": True, "orderId": order.id}

            order.payment_status = "paid"
            order.status = "confirmed"
            order.payment_date = paid_at
            order.yoco_payment_id = payload["id"]
            decrement_stock(self.db, order)
            self.db.commit()
            logger.info(f"✅ Order {order.id} paid ({amount_text})")

            create_in_app_notification(
                self.db,
                order.user_id,
                "order_confirmed",
                "Order Confirmed",
                f"Your order has been confirmed! Payment received: {amount_text}",
                priority="high",
            )
            return {"success": True, "orderId": order.id}

        booking = self._find_booking(payload)
        if not booking:
            raise HTTPException(status_code=400, detail="Missing booking or order ID in metadata")
        if booking.payment_status == "paid":
            return {"success": True, "bookingId": booking.id}

        booking.payment_status = "paid"
        booking.status = "confirmed" if booking.status == "pending" else booking.status
        booking.payment_date = paid_at
        booking.yoco_payment_id = payload["id"]
        self.db.commit()
        logger.info(f"✅ Booking {booking.id} paid ({amount_text})")

        vehicle_info = describe_vehicle(booking.vehicle) or "your vehicle"
        await notify_user(
            self.db,
            booking.user_id,
            "payment_confirmed",
            "Payment Confirmed",
            f"Your payment has been confirmed for {vehicle_info}. Your booking is now confirmed!",
            booking_id=booking.id,
            vehicle_id=booking.vehicle_id,
            priority="high",
        )

        for staff_id in get_staff_user_ids(self.db):
            create_in_app_notification(
                self.db,
                staff_id,
                "payment_received",
                "Payment Received",
                f"Payment received for booking {vehicle_info}. Amount: {amount_text}",
                booking_id=booking.id,
                vehicle_id=booking.vehicle_id,
            )

        return {"success": True, "bookingId": booking.id}

    async def _handle_failure(self, payload: dict) -> dict:
        metadata = payload.get("metadata") or {}
        target = (
            self._find_order(payload)
            if metadata.get("orderType") == "merchandise" or metadata.get("orderId")
            else self._find_booking(payload)
        )
        if not target:
            return {"success": True}

        target.payment_status = "failed"
        self.db.commit()
        logger.warning(f"⚠️ Payment failed for {target.__tablename__} {target.id}")

        await notify_user(
            self.db,
            target.user_id,
            "payment_failed",
            "Payment Failed",
            "Your payment could not be processed. Please try again or contact support.",
            booking_id=target.id if isinstance(target, Booking) else None,
            vehicle_id=target.vehicle_id if isinstance(target, Booking) else None,
            priority="high",
            action_required=True,
        )
        return {"success": True}

    async def register_webhook(self, name: str, url: str) -> dict:
        yoco = YocoService()
        if not yoco.is_available():
            raise HTTPException(status_code=500, detail="Payment gateway not configured")
        try:
            return await yoco.register_webhook(name, url)
        except YocoAPIError as e:
            raise HTTPException(status_code=502, detail=f"Failed to register webhook: {e.message}") from e
