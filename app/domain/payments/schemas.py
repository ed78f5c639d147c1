"""Payment domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    order_type: str = Field("booking", alias="orderType")
    booking_id: Optional[str] = Field(None, alias="bookingId")
    order_id: Optional[str] = Field(None, alias="orderId")
    currency: str = "ZAR"
    test_mode: bool = Field(False, alias="testMode")

    model_config = {"populate_by_name": True}


class CheckoutResponse(BaseModel):
    checkoutId: str
    redirectUrl: Optional[str] = None


class WebhookRegistration(BaseModel):
    name: str = "race-technik-payments"
    url: str
