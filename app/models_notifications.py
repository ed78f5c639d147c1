"""
Notification Models
In-app inbox, per-user channel preferences, Web Push subscriptions and the WhatsApp send log
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    recipient_uid = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    sender_uid = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=True)
    type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(10), nullable=False, default="normal")  # low, normal, high, urgent
    action_required = Column(Boolean, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, unique=True)

    # Channels
    push_enabled = Column(Boolean, default=False)
    whatsapp_enabled = Column(Boolean, default=False)
    in_app_enabled = Column(Boolean, default=True)

    # Categories
    notify_stage_updates = Column(Boolean, default=True)
    notify_booking_confirmations = Column(Boolean, default=True)
    notify_eta_updates = Column(Boolean, default=True)
    notify_ready_for_pickup = Column(Boolean, default=True)
    notify_promotions = Column(Boolean, default=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "endpoint", name="uq_push_user_endpoint"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    endpoint = Column(Text, nullable=False)
    p256dh_key = Column(Text, nullable=False)
    auth_key = Column(Text, nullable=False)
    device_info = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class WhatsAppAlert(Base):
    """Outbound WhatsApp message: queued (pending) by the app, sent or failed once delivered"""

    __tablename__ = "whatsapp_alert_queue"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    phone_number = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, sent, failed
    message_sid = Column(String(64), nullable=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
