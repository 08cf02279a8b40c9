from fastapi import APIRouter, Depends
import logging

from core.config import Settings
from core.dependencies import get_app_settings, get_gateway, get_mirror, get_repository
from core.exceptions import InvalidRequestError, ProfileConflictError
from models.models import ProfileStatus
from schemas.user_schema import SignupRequest, SignupResponse
from services.mirror_service import MirrorSyncer
from services.payment_service import StripeGateway
from services.profile_repository import ProfileRepository

router = APIRouter(tags=["Authentication"])
logger = logging.getLogger(__name__)


# ==========================================================
# ✅ Public Signup: creates account, profile + Stripe checkout
# ==========================================================
@router.post("/signup", response_model=SignupResponse)
def public_signup(
    payload: SignupRequest,
    repository: ProfileRepository = Depends(get_repository),
    gateway: StripeGateway = Depends(get_gateway),
    mirror: MirrorSyncer = Depends(get_mirror),
    settings: Settings = Depends(get_app_settings),
):
    """Creates the mover's account and profile, then returns a Stripe Checkout URL."""
    if not payload.email or not payload.password:
        raise InvalidRequestError("Missing required fields")

    email = str(payload.email)
    plan = payload.plan.value
    logger.info(f"📝 Signup attempt for {email} ({plan})")

    # 1) Create account
    user_id = repository.create_account(email, payload.password)

    # 2) Insert profile
    try:
        profile = repository.insert_profile({
            "id": user_id,
            "email": email,
            "full_name": payload.fullName or "",
            "business_name": payload.businessName or "",
            "phone_e164": payload.phoneE164 or "",
            "sms_opt_in": payload.smsOptIn,
            "plan": plan,
            "status": ProfileStatus.PENDING.value,
        })
    except ProfileConflictError as e:
        raise InvalidRequestError(e.message)

    # 3) Airtable mirror (best effort)
    mirror.sync(profile)

    # 4) Stripe customer
    customer_id = gateway.create_customer(
        email=email,
        name=payload.fullName or payload.businessName or email,
        metadata={"user_id": user_id, "plan": plan},
    )
    repository.update_profile({"id": user_id}, {"stripe_customer_id": customer_id})

    # 5) Checkout session
    price_ids = settings.price_ids
    url = gateway.create_checkout_session(
        customer_id=customer_id,
        price_id=price_ids.get(plan) or price_ids["Starter"],
        success_url=settings.checkout_success_url(email),
        cancel_url=settings.checkout_cancel_url,
    )
    return SignupResponse(url=url)
