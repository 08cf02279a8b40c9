# ================================================================
# services/payment_service.py — Stripe gateway (customers, checkout,
# billing portal, subscriptions, webhook verification)
# ================================================================
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
import logging

import stripe

from core.exceptions import GatewayError, SignatureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionSnapshot:
    id: str
    current_period_end: Optional[int]


def subscription_period_end(subscription: Mapping[str, Any]) -> Optional[int]:
    """
    Epoch seconds of the current period end.

    Newer Stripe API versions only report it per subscription item, so fall
    back to the first item when the top-level field is missing.
    """
    period_end = subscription.get("current_period_end")
    if period_end is not None:
        return int(period_end)

    items = (subscription.get("items") or {}).get("data") or []
    if items and items[0].get("current_period_end") is not None:
        return int(items[0]["current_period_end"])
    return None


class StripeGateway:
    """
    Thin wrapper over the Stripe SDK.

    The API key travels with each call, so nothing is written to the
    module-level ``stripe.api_key``. Stripe SDK failures are re-raised as
    GatewayError.
    """

    def __init__(self, api_key: Optional[str], webhook_secret: Optional[str] = None):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _require_key(self) -> str:
        if not self.api_key:
            raise GatewayError("Stripe is not configured")
        return self.api_key

    # ------------------------
    # Webhooks
    # ------------------------
    def verify_event(self, payload: bytes, sig_header: Optional[str], secret: Optional[str] = None):
        secret = secret or self.webhook_secret
        if not secret:
            logger.error("❌ STRIPE_WEBHOOK_SECRET not configured")
            raise SignatureError("Webhook secret not configured")
        if not sig_header:
            logger.warning("❌ Missing stripe-signature header")
            raise SignatureError("Missing stripe-signature header")

        try:
            return stripe.Webhook.construct_event(payload=payload, sig_header=sig_header, secret=secret)
        except ValueError as e:
            logger.warning(f"❌ Invalid webhook payload: {e}")
            raise SignatureError("Invalid payload")
        except stripe.SignatureVerificationError as e:
            logger.warning(f"❌ Webhook signature error: {e}")
            raise SignatureError()

    # ------------------------
    # Customers & checkout
    # ------------------------
    def create_customer(self, email: str, name: str, metadata: Dict[str, str]) -> str:
        try:
            customer = stripe.Customer.create(
                api_key=self._require_key(),
                email=email,
                name=name,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe customer create failed for {email}: {e}")
            raise GatewayError("Signup failed")
        logger.info(f"💳 Stripe customer {customer.id} created for {email}")
        return customer.id

    def create_checkout_session(self, customer_id: str, price_id: Optional[str], success_url: str, cancel_url: str) -> str:
        if not price_id:
            raise GatewayError("No Stripe price configured for this plan")
        try:
            session = stripe.checkout.Session.create(
                api_key=self._require_key(),
                mode="subscription",
                customer=customer_id,
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe checkout session failed for {customer_id}: {e}")
            raise GatewayError("Signup failed")
        return session.url

    def create_billing_portal_session(self, customer_id: str, return_url: str) -> str:
        try:
            portal = stripe.billing_portal.Session.create(
                api_key=self._require_key(),
                customer=customer_id,
                return_url=return_url,
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe billing portal failed for {customer_id}: {e}")
            raise GatewayError("Server error")
        return portal.url

    # ------------------------
    # Subscriptions
    # ------------------------
    def update_subscription(self, subscription_id: str, cancel_at_period_end: bool) -> SubscriptionSnapshot:
        try:
            subscription = stripe.Subscription.modify(
                subscription_id,
                api_key=self._require_key(),
                cancel_at_period_end=cancel_at_period_end,
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe subscription update failed for {subscription_id}: {e}")
            raise GatewayError("Server error")
        return SubscriptionSnapshot(id=subscription["id"], current_period_end=subscription_period_end(subscription))
