"""Shared validation utilities"""

import re
import uuid
from typing import Optional


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    South African local numbers (0XX XXX XXXX) become +27XXXXXXXXX.
    Numbers that already carry a country code are kept as-is.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    has_plus = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if not has_plus and digits.startswith("0") and len(digits) == 10:
        digits = "27" + digits[1:]

    # E.164 allows up to 15 digits including the country code
    if len(digits) < 10 or len(digits) > 15:
        raise ValueError("Phone number must include 10 to 15 digits")

    return f"+{digits}"


def format_whatsapp_number(phone: str) -> str:
    """Prefix a number with "+" when missing and tag it for the WhatsApp channel"""
    phone = phone.strip()
    formatted = phone if phone.startswith("+") else f"+{phone}"
    return f"whatsapp:{formatted}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email
