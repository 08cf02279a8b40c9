# payment_schema.py
from pydantic import BaseModel
from typing import Optional


class CancelSubscriptionRequest(BaseModel):
    email: Optional[str] = None


class CancelSubscriptionResponse(BaseModel):
    ok: bool = True
    subscriptionId: str
    current_period_end: Optional[str] = None


class WebhookAck(BaseModel):
    received: bool = True
    event: str
    handled: bool
