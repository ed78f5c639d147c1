"""Notification inbox service - Inbox, preferences and push subscriptions"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Profile
from ...models_notifications import Notification, NotificationPreference, PushSubscription
from .schemas import PreferencesUpdate, PushSubscribeRequest

logger = logging.getLogger(__name__)


class InboxService:
    """Service layer for a user's notifications"""

    def __init__(self, db: Session):
        self.db = db

    def list_notifications(self, user: Profile, unread_only: bool = False, limit: int = 50):
        query = self.db.query(Notification).filter(Notification.recipient_uid == user.id)
        if unread_only:
            query = query.filter(Notification.read_at.is_(None))
        return query.order_by(Notification.created_at.desc()).limit(limit).all()

    def unread_count(self, user: Profile) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.recipient_uid == user.id, Notification.read_at.is_(None))
            .count()
        )

    def _get_own(self, user: Profile, notification_id: str) -> Notification:
        notification = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.recipient_uid == user.id)
            .first()
        )
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        return notification

    def mark_read(self, user: Profile, notification_id: str) -> Notification:
        notification = self._get_own(user, notification_id)
        if not notification.read_at:
            notification.read_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_read(self, user: Profile) -> dict:
        updated = (
            self.db.query(Notification)
            .filter(Notification.recipient_uid == user.id, Notification.read_at.is_(None))
            .update({Notification.read_at: datetime.utcnow()}, synchronize_session=False)
        )
        self.db.commit()
        return {"success": True, "updated": updated}

    def delete(self, user: Profile, notification_id: str) -> dict:
        self.db.delete(self._get_own(user, notification_id))
        self.db.commit()
        return {"success": True}

    # ------------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------------

    def get_preferences(self, user: Profile) -> NotificationPreference:
        """Created with defaults on first read"""
        prefs = (
            self.db.query(NotificationPreference)
            .filter(NotificationPreference.user_id == user.id)
            .first()
        )
        if not prefs:
            prefs = NotificationPreference(user_id=user.id)
            self.db.add(prefs)
            self.db.commit()
            self.db.refresh(prefs)
        return prefs

    def update_preferences(self, user: Profile, data: PreferencesUpdate) -> NotificationPreference:
        prefs = self.get_preferences(user)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(prefs, key, value)
        self.db.commit()
        self.db.refresh(prefs)
        return prefs

    # ------------------------------------------------------------------------
    # Push subscriptions
    # ------------------------------------------------------------------------

    def subscribe(self, user: Profile, data: PushSubscribeRequest) -> PushSubscription:
        subscription = (
            self.db.query(PushSubscription)
            .filter(PushSubscription.user_id == user.id, PushSubscription.endpoint == data.endpoint)
            .first()
        )
        if subscription:
            subscription.p256dh_key = data.keys.p256dh
            subscription.auth_key = data.keys.auth
            subscription.device_info = data.device_info
        else:
            subscription = PushSubscription(
                user_id=user.id,
                endpoint=data.endpoint,
                p256dh_key=data.keys.p256dh,
                auth_key=data.keys.auth,
                device_info=data.device_info,
            )
            self.db.add(subscription)

        # Subscribing from a device is an explicit opt-in to push
        prefs = self.get_preferences(user)
        prefs.push_enabled = True

        self.db.commit()
        self.db.refresh(subscription)
        logger.info(f"🔔 Push subscription saved for user {user.id}")
        return subscription

    def unsubscribe(self, user: Profile, endpoint: str) -> dict:
        removed = (
            self.db.query(PushSubscription)
            .filter(PushSubscription.user_id == user.id, PushSubscription.endpoint == endpoint)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if not removed:
            raise HTTPException(status_code=404, detail="Subscription not found")
        logger.info(f"🔕 Push subscription removed for user {user.id}")
        return {"success": True}
