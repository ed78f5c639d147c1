"""
Twilio WhatsApp Service
Sends WhatsApp messages (staff alerts, customer updates) through the Twilio Messages API
"""

import logging
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from .. import config
from ..models_notifications import WhatsAppAlert
from ..shared.validators import format_whatsapp_number

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


def is_whatsapp_configured() -> bool:
    return bool(
        config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN and config.TWILIO_WHATSAPP_NUMBER
    )


def queue_whatsapp(db: Session, to_phone: str, message: str) -> WhatsAppAlert:
    """Store a message for the background worker to deliver"""
    alert = WhatsAppAlert(phone_number=to_phone, message=message, status="pending")
    db.add(alert)
    db.commit()
    db.refresh(alert)
    logger.info(f"📱 Queued WhatsApp message {alert.id} for {to_phone}")
    return alert


def _record(
    db: Session,
    alert: Optional[WhatsAppAlert],
    to_phone: str,
    message: str,
    status: str,
    message_sid: Optional[str] = None,
    error_message: Optional[str] = None,
) -> WhatsAppAlert:
    if alert is None:
        alert = WhatsAppAlert(phone_number=to_phone, message=message)
        db.add(alert)
    alert.status = status
    alert.message_sid = message_sid
    alert.error_message = error_message
    if status == "sent":
        alert.sent_at = datetime.utcnow()
    db.commit()
    return alert


async def send_whatsapp(
    db: Session,
    to_phone: str,
    message: str,
    alert: Optional[WhatsAppAlert] = None,
) -> tuple[bool, Optional[str]]:
    """
    Send a WhatsApp message via Twilio

    Args:
        db: Database session
        to_phone: Recipient number with country code; "+" is added when missing
        message: Message body
        alert: Existing queued row to update instead of logging a new one

    Returns:
        Tuple of (success, message_sid on success or error message on failure)
    """
    if not to_phone or not message:
        return False, "Missing required fields: to, message"

    if not is_whatsapp_configured():
        logger.error("❌ Missing Twilio credentials")
        _record(db, alert, to_phone, message, "failed", error_message="WhatsApp not configured")
        return False, "WhatsApp not configured"

    whatsapp_to = format_whatsapp_number(to_phone)
    whatsapp_from = format_whatsapp_number(config.TWILIO_WHATSAPP_NUMBER)
    account_sid = config.TWILIO_ACCOUNT_SID

    logger.info(f"📱 Sending WhatsApp message to {whatsapp_to}")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json",
                auth=(account_sid, config.TWILIO_AUTH_TOKEN),
                data={"To": whatsapp_to, "From": whatsapp_from, "Body": message},
                timeout=10.0,
            )

        logger.info(f"📡 Twilio API response status: {response.status_code}")
        result = response.json()

        if response.status_code in [200, 201]:
            message_sid = result.get("sid")
            _record(db, alert, to_phone, message, "sent", message_sid=message_sid)
            logger.info(f"✅ WhatsApp message sent to {whatsapp_to} (SID: {message_sid})")
            return True, message_sid

        error_message = result.get("message") or result.get("error_message") or "Unknown error"
        error_code = result.get("code")
        _record(
            db,
            alert,
            to_phone,
            message,
            "failed",
            error_message=f"[{error_code}] {error_message}" if error_code else error_message,
        )
        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        return False, error_message

    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"❌ Twilio API error: {str(e)}")
        _record(db, alert, to_phone, message, "failed", error_message=str(e))
        return False, str(e)


async def process_whatsapp_queue(db: Session, limit: int = 50) -> dict:
    """Deliver pending queued messages, oldest first"""
    pending = (
        db.query(WhatsAppAlert)
        .filter(WhatsAppAlert.status == "pending")
        .order_by(WhatsAppAlert.created_at.asc())
        .limit(limit)
        .all()
    )

    sent = 0
    for alert in pending:
        success, _ = await send_whatsapp(db, alert.phone_number, alert.message, alert=alert)
        if success:
            sent += 1

    if pending:
        logger.info(f"📱 WhatsApp queue processed: {sent}/{len(pending)} sent")
    return {"processed": len(pending), "sent": sent}
