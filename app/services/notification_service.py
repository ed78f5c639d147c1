"""
Unified Notification Service
Fans one event out to the in-app inbox, Web Push and WhatsApp,
honoring each recipient's channel and category preferences
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Profile, UserRole
from ..models_notifications import Notification, NotificationPreference
from .push_service import send_push_to_user
from .twilio_service import send_whatsapp

logger = logging.getLogger(__name__)

# Notification type -> preference flag gating external channels.
# Types not listed (payments, alerts, inquiries) are always delivered.
CATEGORY_PREFERENCES = {
    "stage_started": "notify_stage_updates",
    "stage_completed": "notify_stage_updates",
    "new_booking": "notify_booking_confirmations",
    "booking_confirmed": "notify_booking_confirmations",
    "payment_confirmed": "notify_booking_confirmations",
    "eta_updated": "notify_eta_updates",
    "booking_completed": "notify_ready_for_pickup",
    "ready_for_pickup": "notify_ready_for_pickup",
}


def get_preferences(db: Session, user_id: str) -> Optional[NotificationPreference]:
    return db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).first()


def create_in_app_notification(
    db: Session,
    recipient_uid: str,
    notification_type: str,
    title: str,
    message: str,
    booking_id: Optional[str] = None,
    vehicle_id: Optional[str] = None,
    sender_uid: Optional[str] = None,
    priority: str = "normal",
    action_required: bool = False,
) -> Notification:
    notification = Notification(
        recipient_uid=recipient_uid,
        sender_uid=sender_uid,
        booking_id=booking_id,
        vehicle_id=vehicle_id,
        type=notification_type,
        title=title,
        message=message,
        priority=priority,
        action_required=action_required,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


async def notify_user(
    db: Session,
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    booking_id: Optional[str] = None,
    vehicle_id: Optional[str] = None,
    sender_uid: Optional[str] = None,
    priority: str = "normal",
    action_required: bool = False,
    url: Optional[str] = None,
) -> dict:
    """
    Deliver one notification on every channel the user allows

    Returns:
        Dict with in_app / push_sent / whatsapp_sent status and per-channel errors
    """
    result = {
        "in_app": False,
        "push_sent": False,
        "whatsapp_sent": False,
        "push_error": None,
        "whatsapp_error": None,
    }
    prefs = get_preferences(db, user_id)

    if prefs is None or prefs.in_app_enabled:
        create_in_app_notification(
            db,
            recipient_uid=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            booking_id=booking_id,
            vehicle_id=vehicle_id,
            sender_uid=sender_uid,
            priority=priority,
            action_required=action_required,
        )
        result["in_app"] = True

    if prefs is None:
        # Push and WhatsApp are opt-in
        return result

    category_flag = CATEGORY_PREFERENCES.get(notification_type)
    if category_flag and not getattr(prefs, category_flag, True):
        logger.debug(f"🔕 {notification_type} muted by {category_flag} for user {user_id}")
        return result

    if prefs.push_enabled:
        try:
            data = {"url": url or "/", "type": notification_type}
            if booking_id:
                data["bookingId"] = booking_id
            push_result = await send_push_to_user(db, user_id, title, message, data=data)
            result["push_sent"] = push_result.get("success", False)
            if not result["push_sent"]:
                result["push_error"] = push_result.get("message")
        except Exception as e:
            result["push_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} push to {user_id}: {e}")

    if prefs.whatsapp_enabled:
        profile = db.query(Profile).filter(Profile.id == user_id).first()
        if profile and profile.phone:
            try:
                success, detail = await send_whatsapp(db, profile.phone, f"*{title}*\n\n{message}")
                result["whatsapp_sent"] = success
                if not success:
                    result["whatsapp_error"] = detail
            except Exception as e:
                result["whatsapp_error"] = str(e)
                logger.error(f"❌ Failed to send {notification_type} WhatsApp to {user_id}: {e}")
        else:
            logger.debug(f"⚠️ No phone number for {notification_type} WhatsApp to {user_id}")

    return result


def get_staff_user_ids(db: Session) -> list[str]:
    rows = (
        db.query(UserRole.user_id)
        .filter(UserRole.role.in_(["staff", "admin"]))
        .distinct()
        .all()
    )
    return [r[0] for r in rows]


async def notify_staff(
    db: Session,
    notification_type: str,
    title: str,
    message: str,
    booking_id: Optional[str] = None,
    priority: str = "normal",
    exclude_user_id: Optional[str] = None,
) -> int:
    """Notify every staff/admin user. Returns how many were notified."""
    count = 0
    for staff_id in get_staff_user_ids(db):
        if staff_id == exclude_user_id:
            continue
        await notify_user(
            db,
            staff_id,
            notification_type,
            title,
            message,
            booking_id=booking_id,
            priority=priority,
        )
        count += 1
    return count
