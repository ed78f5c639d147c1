"""Notifications router - Inbox, preferences, Web Push and WhatsApp"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ... import config
from ...auth import get_current_user, require_staff
from ...database import get_db
from ...models import Profile
from ...services.push_service import send_push_to_user
from ...services.twilio_service import send_whatsapp
from .schemas import (
    NotificationResponse,
    PreferencesResponse,
    PreferencesUpdate,
    PushSendRequest,
    PushSubscribeRequest,
    PushUnsubscribeRequest,
    WhatsAppSendRequest,
)
from .service import InboxService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_inbox_service(db: Session = Depends(get_db)) -> InboxService:
    """Dependency injection for InboxService"""
    return InboxService(db)


# ============================================================================
# INBOX
# ============================================================================


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    return service.list_notifications(current_user, unread_only, limit)


@router.get("/unread-count")
async def unread_count(
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    return {"count": service.unread_count(current_user)}


@router.post("/read-all")
async def mark_all_read(
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    return service.mark_all_read(current_user)


# ============================================================================
# PREFERENCES
# ============================================================================


@router.get("/preferences", response_model=PreferencesResponse)
async def get_preferences(
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    return service.get_preferences(current_user)


@router.patch("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    data: PreferencesUpdate,
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    return service.update_preferences(current_user, data)


# ============================================================================
# WEB PUSH
# ============================================================================


@router.get("/vapid-public-key")
async def get_vapid_public_key():
    """Application server key for PushManager.subscribe()"""
    if not config.VAPID_PUBLIC_KEY:
        raise HTTPException(status_code=500, detail="VAPID keys not configured")
    return {"publicKey": config.VAPID_PUBLIC_KEY}


@router.post("/push/subscribe", status_code=201)
async def subscribe(
    data: PushSubscribeRequest,
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    subscription = service.subscribe(current_user, data)
    return {"success": True, "subscription_id": subscription.id}


@router.post("/push/unsubscribe")
async def unsubscribe(
    data: PushUnsubscribeRequest,
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    return service.unsubscribe(current_user, data.endpoint)


@router.post("/push/send")
async def send_push(
    data: PushSendRequest,
    _staff: Profile = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return await send_push_to_user(db, data.user_id, data.title, data.body, data.data, data.tag)


# ============================================================================
# WHATSAPP
# ============================================================================


@router.post("/whatsapp/send")
async def send_whatsapp_message(
    data: WhatsAppSendRequest,
    _staff: Profile = Depends(require_staff),
    db: Session = Depends(get_db),
):
    success, detail = await send_whatsapp(db, data.to, data.message)
    if success:
        return {"success": True, "messageSid": detail}
    return {"success": False, "error": detail}


# ============================================================================
# SINGLE NOTIFICATION
# ============================================================================


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    return service.mark_read(current_user, notification_id)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    current_user: Profile = Depends(get_current_user),
    service: InboxService = Depends(get_inbox_service),
):
    return service.delete(current_user, notification_id)
