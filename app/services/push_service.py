"""
Web Push Service
Delivers notifications to browser push subscriptions.

- VAPID authentication (RFC 8292): an ES256 JWT scoped to the push service origin
- Payload encryption (RFC 8291, aes128gcm): ECDH P-256 + HKDF-SHA256 + AES-128-GCM
"""

import base64
import json
import logging
import os
import time
from typing import Optional
from urllib.parse import urlparse

import httpx
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from jose import jwt
from sqlalchemy.orm import Session

from .. import config
from ..models_notifications import NotificationPreference, PushSubscription

logger = logging.getLogger(__name__)

RECORD_SIZE = 4096
PUSH_TTL_SECONDS = 86400
VAPID_TOKEN_LIFETIME_SECONDS = 12 * 60 * 60
DEFAULT_ICON = "/pwa-192x192.png"
DEFAULT_TAG = "race-technik-notification"


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    data = data.strip()
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def is_vapid_configured() -> bool:
    return bool(config.VAPID_PUBLIC_KEY and config.VAPID_PRIVATE_KEY)


def load_vapid_private_key(private_key: str) -> ec.EllipticCurvePrivateKey:
    """
    Load the VAPID signing key.
    Accepts a PEM string, a base64url PKCS8 DER blob, or the base64url raw 32-byte scalar
    produced by most VAPID key generators.
    """
    if private_key.strip().startswith("-----BEGIN"):
        key = serialization.load_pem_private_key(private_key.encode("utf-8"), password=None)
    else:
        raw = b64url_decode(private_key)
        if len(raw) == 32:
            return ec.derive_private_key(int.from_bytes(raw, "big"), ec.SECP256R1())
        key = serialization.load_der_private_key(raw, password=None)

    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise ValueError("VAPID private key must be an EC P-256 key")
    return key


def build_vapid_headers(endpoint: str, now: Optional[int] = None) -> dict:
    """Authorization header for a push endpoint: `vapid t=<jwt>, k=<public key>`"""
    parsed = urlparse(endpoint)
    audience = f"{parsed.scheme}://{parsed.netloc}"
    issued_at = int(now if now is not None else time.time())

    claims = {
        "aud": audience,
        "exp": issued_at + VAPID_TOKEN_LIFETIME_SECONDS,
        "sub": config.VAPID_SUBJECT,
    }

    private_key = load_vapid_private_key(config.VAPID_PRIVATE_KEY)
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")

    token = jwt.encode(claims, pem, algorithm="ES256")
    return {"Authorization": f"vapid t={token}, k={config.VAPID_PUBLIC_KEY}"}


def _hkdf(salt: bytes, info: bytes, length: int, ikm: bytes) -> bytes:
    return HKDF(algorithm=hashes.SHA256(), length=length, salt=salt, info=info).derive(ikm)


def encrypt_payload(
    payload: bytes,
    p256dh: str,
    auth: str,
    salt: Optional[bytes] = None,
    server_key: Optional[ec.EllipticCurvePrivateKey] = None,
) -> bytes:
    """
    Encrypt a push message body for one subscription (single aes128gcm record).

    Body layout: salt(16) | record size(4, big endian) | key id length(1) | server public key(65) | ciphertext
    """
    ua_public = b64url_decode(p256dh)
    auth_secret = b64url_decode(auth)
    salt = salt or os.urandom(16)
    server_key = server_key or ec.generate_private_key(ec.SECP256R1())

    as_public = server_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    ua_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), ua_public)
    shared_secret = server_key.exchange(ec.ECDH(), ua_key)

    ikm = _hkdf(auth_secret, b"WebPush: info\x00" + ua_public + as_public, 32, shared_secret)
    cek = _hkdf(salt, b"Content-Encoding: aes128gcm\x00", 16, ikm)
    nonce = _hkdf(salt, b"Content-Encoding: nonce\x00", 12, ikm)

    # 0x02 delimiter marks the final (and only) record
    ciphertext = AESGCM(cek).encrypt(nonce, payload + b"\x02", None)

    header = salt + RECORD_SIZE.to_bytes(4, "big") + bytes([len(as_public)]) + as_public
    return header + ciphertext


def build_payload(title: str, body: str, data: Optional[dict] = None, tag: Optional[str] = None) -> dict:
    data = dict(data or {})
    data.setdefault("url", "/")
    return {
        "title": title,
        "body": body,
        "icon": DEFAULT_ICON,
        "badge": DEFAULT_ICON,
        "tag": tag or DEFAULT_TAG,
        "data": data,
    }


async def deliver(client: httpx.AsyncClient, subscription: PushSubscription, payload: bytes) -> int:
    """POST one encrypted message, returning the push service status code"""
    body = encrypt_payload(payload, subscription.p256dh_key, subscription.auth_key)
    headers = build_vapid_headers(subscription.endpoint)
    headers.update(
        {
            "Content-Type": "application/octet-stream",
            "Content-Encoding": "aes128gcm",
            "TTL": str(PUSH_TTL_SECONDS),
        }
    )
    response = await client.post(subscription.endpoint, content=body, headers=headers)
    return response.status_code


async def send_push_to_user(
    db: Session,
    user_id: str,
    title: str,
    body: str,
    data: Optional[dict] = None,
    tag: Optional[str] = None,
) -> dict:
    """
    Send a push message to every subscription a user has.
    Subscriptions the push service reports as gone (404/410) are removed.
    """
    if not user_id or not title or not body:
        return {"success": False, "message": "Missing required fields: user_id, title, body"}

    prefs = db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).first()
    if prefs and not prefs.push_enabled:
        logger.debug(f"🔕 Push disabled for user {user_id}")
        return {"success": False, "message": "Push notifications disabled"}

    subscriptions = db.query(PushSubscription).filter(PushSubscription.user_id == user_id).all()
    if not subscriptions:
        return {"success": False, "message": "No push subscriptions found"}

    if not is_vapid_configured():
        logger.error("❌ VAPID keys not configured")
        return {"success": False, "message": "VAPID keys not configured"}

    payload = json.dumps(build_payload(title, body, data, tag)).encode("utf-8")
    total = len(subscriptions)
    sent = 0

    async with httpx.AsyncClient(timeout=10.0) as client:
        for subscription in subscriptions:
            try:
                status_code = await deliver(client, subscription, payload)
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"❌ Push delivery error for {subscription.id}: {e}")
                continue

            if status_code in (200, 201, 202):
                sent += 1
            elif status_code in (404, 410):
                logger.info(f"🧹 Removing expired push subscription {subscription.id}")
                db.delete(subscription)
            else:
                logger.warning(f"⚠️ Push service returned {status_code} for {subscription.id}")

    db.commit()
    logger.info(f"🔔 Push sent to user {user_id}: {sent}/{total}")
    return {"success": sent > 0, "sent": sent, "total": total}
