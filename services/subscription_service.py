# ================================================================
# services/subscription_service.py — Billing status reconciliation
# ================================================================
from dataclasses import dataclass
from typing import Any, Mapping, Optional
import logging

from core.exceptions import ConflictOrLookupError, NoActiveSubscriptionError
from models.models import Profile, ProfileStatus
from services.date_labels import epoch_to_iso
from services.payment_service import StripeGateway, subscription_period_end
from services.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


@dataclass(frozen=True)
class ReconcileResult:
    event_type: str
    handled: bool
    profile_id: Optional[str] = None


class SubscriptionReconciler:
    """
    Applies Stripe lifecycle events to a profile's billing fields.

    pending → active (checkout completed) → cancelling (cancel requested)
    → cancelled (subscription deleted). Every transition is a plain
    overwrite, so redelivered events leave the profile unchanged.
    """

    def __init__(self, repository: ProfileRepository, gateway: StripeGateway):
        self.repository = repository
        self.gateway = gateway

    def handle_webhook(self, payload: bytes, sig_header: Optional[str]) -> ReconcileResult:
        event = self.gateway.verify_event(payload, sig_header)
        logger.info(f"✅ Webhook received: {event['type']}")
        return self.apply(event)

    def apply(self, event: Mapping[str, Any]) -> ReconcileResult:
        event_type = event["type"]
        data_object = event["data"]["object"]

        if event_type == CHECKOUT_COMPLETED:
            profile = self._update_by_customer(
                data_object.get("customer"),
                {"status": ProfileStatus.ACTIVE.value},
            )
            if profile:
                logger.info(f"✅ Profile activated for customer: {profile.stripe_customer_id}")

        elif event_type == SUBSCRIPTION_UPDATED:
            changes = {"stripe_subscription_id": data_object.get("id")}
            period_end = subscription_period_end(data_object)
            if period_end is not None:
                changes["current_period_end"] = epoch_to_iso(period_end)
            profile = self._update_by_customer(data_object.get("customer"), changes)
            if profile:
                logger.info(f"🔄 Subscription updated for: {profile.stripe_customer_id}")

        elif event_type == SUBSCRIPTION_DELETED:
            profile = self._find_by_customer(data_object.get("customer"))
            subscription_id = data_object.get("id")
            if profile and profile.stripe_subscription_id not in (None, subscription_id):
                # A stale delete for a replaced subscription must not end the current one
                logger.info(
                    f"ℹ️ Ignoring delete of {subscription_id}, current subscription is {profile.stripe_subscription_id}"
                )
                profile = None
            elif profile:
                profile = self.repository.update_profile({"id": profile.id}, {"status": ProfileStatus.CANCELLED.value})
                logger.info(f"🗑️ Subscription lapsed for: {profile.stripe_customer_id}")

        else:
            logger.info(f"ℹ️ Unhandled event type: {event_type}")
            return ReconcileResult(event_type=event_type, handled=False)

        return ReconcileResult(
            event_type=event_type,
            handled=profile is not None,
            profile_id=profile.id if profile else None,
        )

    def _find_by_customer(self, customer_id: Optional[str]) -> Optional[Profile]:
        if not customer_id:
            logger.warning("⚠️ Stripe event without a customer reference")
            return None
        try:
            return self.repository.find_profile(stripe_customer_id=customer_id)
        except ConflictOrLookupError as e:
            logger.info(f"ℹ️ No single profile for Stripe customer {customer_id} ({e.message}), ignoring event")
            return None

    def _update_by_customer(self, customer_id: Optional[str], changes: dict) -> Optional[Profile]:
        profile = self._find_by_customer(customer_id)
        if profile is None:
            return None
        return self.repository.update_profile({"id": profile.id}, changes)

    # ------------------------
    # Cancellation (internally triggered)
    # ------------------------
    def cancel_subscription(self, email: str) -> Profile:
        """Cancel at period end; the mover keeps access until the period lapses."""
        profile = self.repository.find_profile(email=email)
        if not profile.has_subscription:
            raise NoActiveSubscriptionError()

        snapshot = self.gateway.update_subscription(profile.stripe_subscription_id, cancel_at_period_end=True)

        changes = {
            "status": ProfileStatus.CANCELLING.value,
            "stripe_subscription_id": snapshot.id,
        }
        if snapshot.current_period_end is not None:
            changes["current_period_end"] = epoch_to_iso(snapshot.current_period_end)

        profile = self.repository.update_profile({"id": profile.id}, changes)
        logger.info(f"🛑 Subscription {snapshot.id} set to cancel at period end for {email}")
        return profile
