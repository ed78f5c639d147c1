"""
Webhook Security Module

Signature verification for inbound payment webhooks (Standard Webhooks scheme used by Yoco):
- Signed message is "webhook-id.webhook-timestamp.raw_body"
- HMAC-SHA256 keyed with the base64 part of the "whsec_" secret
- Constant-time signature comparison
- Timestamp tolerance to reject replays
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from typing import Mapping, Optional

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

# Maximum age of webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks."""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def extract_signing_key(secret: str) -> bytes:
    """
    Signing key bytes from a "whsec_BASE64KEY" style secret.
    Secrets that are not valid base64 are used as raw UTF-8 bytes.
    """
    raw = secret[6:] if secret.startswith("whsec_") else secret
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        return secret.encode("utf-8")


def compute_signature(secret: str, webhook_id: str, timestamp: str, body: bytes) -> str:
    signed_message = b".".join([webhook_id.encode("utf-8"), timestamp.encode("utf-8"), body])
    digest = hmac.new(extract_signing_key(secret), signed_message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_timestamp(timestamp: Optional[str], max_age: int = MAX_WEBHOOK_AGE_SECONDS) -> bool:
    """Reject webhooks whose timestamp is missing, malformed or outside the tolerance"""
    if not timestamp:
        return False

    try:
        age = abs(int(time.time()) - int(timestamp))
    except (ValueError, TypeError):
        logger.warning(f"🚫 Invalid webhook timestamp format: {timestamp}")
        return False

    if age > max_age:
        logger.warning(f"🚫 Webhook timestamp too old: {age}s (max: {max_age}s)")
        return False
    return True


def verify_signature_headers(headers: Mapping[str, str], body: bytes, secret: str) -> bool:
    """
    Verify Standard Webhooks headers against the raw body.

    The signature header may carry several space-separated "v1,<sig>" entries
    (one per active secret during rotation); any match is accepted.
    """
    webhook_id = headers.get("webhook-id", "")
    timestamp = headers.get("webhook-timestamp", "")
    signature_header = headers.get("webhook-signature", "")

    if not webhook_id or not signature_header:
        logger.error("❌ Missing webhook-id or webhook-signature header")
        return False

    if not verify_timestamp(timestamp):
        return False

    expected = compute_signature(secret, webhook_id, timestamp, body)
    for candidate in signature_header.split(" "):
        version, _, signature = candidate.partition(",")
        if version == "v1" and constant_time_compare(expected, signature):
            return True

    logger.error(f"❌ Webhook signature mismatch for {webhook_id}")
    return False


async def verify_yoco_webhook(request: Request, secret: str) -> bytes:
    """
    Verify a Yoco webhook request and return its raw body.

    Raises:
        HTTPException(401): when the signature cannot be verified
    """
    # Raw body BEFORE any parsing; the signature covers the exact bytes
    raw_body = await request.body()
    webhook_id = request.headers.get("webhook-id", "unknown")
    logger.info(f"📥 Yoco webhook received: id={webhook_id}")

    if not verify_signature_headers(request.headers, raw_body, secret):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    logger.info(f"✅ Yoco webhook signature verified: {webhook_id}")
    return raw_body
