# routes/profile.py
from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Optional
import os
import logging

from core.config import Settings
from core.dependencies import get_app_settings, get_mirror, get_repository, get_storage
from core.exceptions import InvalidRequestError
from models.models import utcnow
from schemas.profile_schema import (
    DashboardResponse,
    LogoUploadResponse,
    ProfileUpdate,
    UpdateProfileResponse,
)
from services.date_labels import format_date_label
from services.file_storage import LocalFileStorage
from services.mirror_service import MirrorSyncer
from services.profile_projection import map_profile_to_mover
from services.profile_repository import ProfileRepository

router = APIRouter(tags=["Profile"])
logger = logging.getLogger(__name__)

ALLOWED_LOGO_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".svg"}


# ==================================================================
#  ✅  Mover Dashboard (by email)
# ==================================================================
@router.get("/mover-dashboard", response_model=DashboardResponse)
def mover_dashboard(
    email: Optional[str] = None,
    repository: ProfileRepository = Depends(get_repository),
):
    """Dashboard card, plan and next payment date for a mover."""
    if not email:
        raise InvalidRequestError("Missing email")

    profile = repository.find_profile(email=email)

    return DashboardResponse(
        mover=map_profile_to_mover(profile).to_response(),
        subscriptionTier=profile.plan or "Starter",
        nextPaymentDate=format_date_label(profile.current_period_end),
        status=profile.status,
    )


# ==================================================================
#  ✅  Update Profile (by email)
# ==================================================================
@router.post("/update-profile", response_model=UpdateProfileResponse)
def update_profile(
    payload: ProfileUpdate,
    repository: ProfileRepository = Depends(get_repository),
    mirror: MirrorSyncer = Depends(get_mirror),
):
    if not payload.email:
        raise InvalidRequestError("Missing email")

    profile = repository.update_profile({"email": payload.email}, payload.changes())
    logger.info(f"✅ Profile updated for {payload.email}")

    # Keep the Airtable "Movers" row in sync with this profile
    mirror.sync(profile)

    mover = map_profile_to_mover(profile)
    return UpdateProfileResponse(mover=mover.to_response(), profileCompletion=mover.profileCompletion)


# ==================================================================
#  ✅  Upload Logo
# ==================================================================
@router.post("/upload-logo", response_model=LogoUploadResponse)
async def upload_logo(
    email: str = Form(...),
    file: UploadFile = File(...),
    repository: ProfileRepository = Depends(get_repository),
    mirror: MirrorSyncer = Depends(get_mirror),
    storage: LocalFileStorage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    if not email:
        raise InvalidRequestError("Missing email")

    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in ALLOWED_LOGO_EXTENSIONS:
        raise InvalidRequestError("Only .jpg, .jpeg, .png, .webp and .svg files are allowed.")

    contents = await file.read()
    if len(contents) > settings.MAX_LOGO_SIZE_MB * 1024 * 1024:
        raise InvalidRequestError(f"File size exceeds {settings.MAX_LOGO_SIZE_MB} MB limit.")

    profile = repository.find_profile(email=email)

    safe_filename = f"{profile.id}_{int(utcnow().timestamp())}{ext}"
    logo_url = storage.store(f"logos/{safe_filename}", contents, file.content_type)

    profile = repository.update_profile({"id": profile.id}, {"logo_url": logo_url})
    mirror.sync(profile)

    return LogoUploadResponse(logo_url=logo_url, mover=map_profile_to_mover(profile).to_response())
