# ================================================================
# services/profile_projection.py — Mover card projection
# ================================================================
from typing import Optional

from models.models import Profile
from schemas.profile_schema import MoverView

# Fields counted towards profile completion
COMPLETION_FIELDS = (
    "full_name",
    "business_name",
    "phone_e164",
    "city",
    "state",
    "logo_url",
)

DEFAULT_MOVER_NAME = "Mover"
PLACEHOLDER_RATING = 4.9


def _filled(value) -> bool:
    return value is not None and str(value).strip() != ""


def compute_profile_completion(profile: Optional[Profile]) -> int:
    """Percentage (0–100) of tracked profile fields that are filled in."""
    if profile is None:
        return 0

    filled = sum(1 for field in COMPLETION_FIELDS if _filled(getattr(profile, field, None)))
    total = len(COMPLETION_FIELDS)

    # round half up
    return int(filled * 100 / total + 0.5)


def map_profile_to_mover(profile: Optional[Profile]) -> MoverView:
    """
    Build the dashboard's Mover card from a canonical profile.

    A missing profile yields an empty view rather than an error. verified,
    rating, jobsCompleted and features are placeholders until they are
    backed by real data.
    """
    if profile is None:
        return MoverView()

    view = MoverView(
        id=profile.id or "",
        name=profile.full_name or profile.business_name or DEFAULT_MOVER_NAME,
        email=profile.email or "",
        phone=profile.phone_e164 or "",
        city=profile.city or "",
        state=profile.state or "",
        logo=profile.logo_url or "",
        verified=True,
        rating=PLACEHOLDER_RATING,
        jobsCompleted=0,
        features=[],
        profileCompletion=compute_profile_completion(profile),
    )

    price = profile.starting_price
    if price is not None and price != "":
        view.startingPrice = float(price)

    return view
