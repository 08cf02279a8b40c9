# routes/payment.py
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from core.config import Settings
from core.dependencies import get_app_settings, get_gateway, get_reconciler, get_repository
from core.exceptions import InvalidRequestError, ProfileNotFoundError
from schemas.payment_schema import CancelSubscriptionRequest, CancelSubscriptionResponse, WebhookAck
from services.payment_service import StripeGateway
from services.profile_repository import ProfileRepository
from services.subscription_service import SubscriptionReconciler

router = APIRouter(prefix="/stripe", tags=["Payments"])
logger = logging.getLogger(__name__)


# -------------------------
# Webhook (raw body)
# -------------------------
@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    reconciler: SubscriptionReconciler = Depends(get_reconciler),
):
    """Handle Stripe webhook events for subscription status."""
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    # SignatureError propagates as 400; anything else as 500 so Stripe retries
    result = reconciler.handle_webhook(payload, sig_header)

    return WebhookAck(event=result.event_type, handled=result.handled)


# -------------------------
# Billing portal
# -------------------------
@router.get("/manage-billing")
def manage_billing(
    email: Optional[str] = None,
    repository: ProfileRepository = Depends(get_repository),
    gateway: StripeGateway = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
):
    """Redirect straight to the Stripe billing portal (so window.open works)."""
    if not email:
        raise InvalidRequestError("Missing email")

    profile = repository.find_profile(email=email)
    if not profile.stripe_customer_id:
        raise ProfileNotFoundError("No Stripe customer for this email")

    portal_url = gateway.create_billing_portal_session(
        customer_id=profile.stripe_customer_id,
        return_url=settings.billing_return_url(email),
    )
    return RedirectResponse(portal_url, status_code=303)


# -------------------------
# Cancel subscription
# -------------------------
@router.post("/cancel-subscription", response_model=CancelSubscriptionResponse)
def cancel_subscription(
    payload: Optional[CancelSubscriptionRequest] = None,
    reconciler: SubscriptionReconciler = Depends(get_reconciler),
):
    """Set cancel-at-period-end; the mover keeps access until the period ends."""
    if payload is None or not payload.email:
        raise InvalidRequestError("Missing email")

    profile = reconciler.cancel_subscription(payload.email)

    return CancelSubscriptionResponse(
        subscriptionId=profile.stripe_subscription_id,
        current_period_end=profile.current_period_end,
    )
