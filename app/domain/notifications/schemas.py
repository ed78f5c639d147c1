"""Notification domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_phone


class NotificationResponse(BaseModel):
    id: str
    recipient_uid: str
    sender_uid: Optional[str] = None
    booking_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    type: str
    title: str
    message: str
    priority: str
    action_required: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PreferencesResponse(BaseModel):
    push_enabled: bool
    whatsapp_enabled: bool
    in_app_enabled: bool
    notify_stage_updates: bool
    notify_booking_confirmations: bool
    notify_eta_updates: bool
    notify_ready_for_pickup: bool
    notify_promotions: bool

    class Config:
        from_attributes = True


class PreferencesUpdate(BaseModel):
    push_enabled: Optional[bool] = None
    whatsapp_enabled: Optional[bool] = None
    in_app_enabled: Optional[bool] = None
    notify_stage_updates: Optional[bool] = None
    notify_booking_confirmations: Optional[bool] = None
    notify_eta_updates: Optional[bool] = None
    notify_ready_for_pickup: Optional[bool] = None
    notify_promotions: Optional[bool] = None


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscribeRequest(BaseModel):
    """Mirrors the browser's PushSubscription.toJSON() shape"""

    endpoint: str
    keys: PushKeys
    device_info: Optional[str] = None

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v):
        if not v.startswith("https://"):
            raise ValueError("Push endpoint must be an https URL")
        return v


class PushUnsubscribeRequest(BaseModel):
    endpoint: str


class PushSendRequest(BaseModel):
    user_id: str
    title: str
    body: str
    data: Optional[dict[str, Any]] = None
    tag: Optional[str] = None


class WhatsAppSendRequest(BaseModel):
    to: str
    message: str

    @field_validator("to")
    @classmethod
    def validate_to(cls, v):
        return validate_phone(v)
