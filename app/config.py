import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./race_technik.db")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Frontend base URL for payment redirects and staff invite links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Auth - tokens are issued by the hosted auth provider and signed with its JWT secret
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
JWT_ALGORITHM = "HS256"

# Comma-separated emails that are always treated as admins
ADMIN_EMAILS = [
    e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()
]

# Yoco Payments Configuration
YOCO_SECRET_KEY = os.getenv("YOCO_SECRET_KEY")
YOCO_TEST_SECRET_KEY = os.getenv("YOCO_TEST_SECRET_KEY")
YOCO_API_URL = os.getenv("YOCO_API_URL", "https://payments.yoco.com/api")
YOCO_WEBHOOK_SECRET = os.getenv("YOCO_WEBHOOK_SECRET")
# When enabled, bookings skip the gateway and start confirmed/paid
YOCO_TEST_MODE = os.getenv("YOCO_TEST_MODE", "false").lower() == "true"

# Twilio WhatsApp Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_WHATSAPP_NUMBER = os.getenv("TWILIO_WHATSAPP_NUMBER")  # e.g. +14155238886

# Web Push (VAPID) Configuration
# Public key: base64url uncompressed P-256 point. Private key: base64url raw scalar or PKCS8 DER.
VAPID_PUBLIC_KEY = os.getenv("VAPID_PUBLIC_KEY")
VAPID_PRIVATE_KEY = os.getenv("VAPID_PRIVATE_KEY")
VAPID_SUBJECT = os.getenv("VAPID_SUBJECT", "mailto:support@racetechnik.co.za")

# Business details used on invoices and messages
BUSINESS_NAME = os.getenv("BUSINESS_NAME", "RACE TECHNIK")
BUSINESS_TAGLINE = os.getenv("BUSINESS_TAGLINE", "Premium Motorsport Vehicle Protection")
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@racetechnik.co.za")
VAT_RATE = float(os.getenv("VAT_RATE", "0.15"))
CURRENCY = "ZAR"

# Feature toggles
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://racetechnik.co.za,https://www.racetechnik.co.za,http://localhost:5173,http://localhost:3000",
).split(",")
