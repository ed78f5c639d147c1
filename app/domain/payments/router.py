"""Payments router - Yoco checkout, webhook and webhook registration"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ... import config
from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import Profile
from ...rate_limiter import create_rate_limiter
from ...webhook_security import verify_yoco_webhook
from .schemas import CheckoutRequest, CheckoutResponse, WebhookRegistration
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])

WEBHOOK_RATE_LIMIT = 100
rate_limit_webhook = create_rate_limiter(
    limit=WEBHOOK_RATE_LIMIT, window_seconds=60, key_prefix="yoco_webhook"
)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    data: CheckoutRequest,
    current_user: Profile = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Start a hosted Yoco checkout for a booking or a merchandise order"""
    return await service.create_checkout(data, current_user)


@router.post("/yoco/webhook")
async def yoco_webhook(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
    _: None = Depends(rate_limit_webhook),
):
    """
    Yoco payment events.
    Signatures are verified when YOCO_WEBHOOK_SECRET is configured; successful payments are
    always re-checked against the Yoco API before anything is marked paid.
    """
    if config.YOCO_WEBHOOK_SECRET:
        raw_body = await verify_yoco_webhook(request, config.YOCO_WEBHOOK_SECRET)
    else:
        raw_body = await request.body()

    return await service.handle_webhook(raw_body)


@router.post("/yoco/register-webhook")
async def register_webhook(
    data: WebhookRegistration,
    _admin: Profile = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.register_webhook(data.name, data.url)
