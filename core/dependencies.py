# core/dependencies.py
"""
Service objects built once at startup and handed to routes via Depends.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Depends, Request
from sqlmodel import Session

from core.config import Settings
from core.database import get_session
from services.file_storage import LocalFileStorage
from services.mirror_service import AirtableMirrorStore, MirrorSyncer
from services.payment_service import StripeGateway
from services.profile_repository import ProfileRepository
from services.subscription_service import SubscriptionReconciler

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    gateway: StripeGateway
    mirror: MirrorSyncer
    storage: LocalFileStorage


def build_services(settings: Settings) -> ServiceContainer:
    store: Optional[AirtableMirrorStore] = None
    if settings.airtable_configured:
        store = AirtableMirrorStore(
            api_key=settings.AIRTABLE_API_KEY,
            base_id=settings.AIRTABLE_BASE_ID,
            api_url=settings.AIRTABLE_API_URL,
            timeout=settings.AIRTABLE_TIMEOUT_SECONDS,
        )
    else:
        logger.warning("⚠️ Airtable not fully configured (API key or Base ID missing)")

    if not settings.STRIPE_SECRET_KEY:
        logger.warning("⚠️ STRIPE_SECRET_KEY is not set, billing routes will fail")

    return ServiceContainer(
        settings=settings,
        gateway=StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET),
        mirror=MirrorSyncer(store, settings.AIRTABLE_TABLE_NAME),
        storage=LocalFileStorage(settings.UPLOAD_DIR, settings.BACKEND_URL),
    )


# ============================================================
# ✅ FastAPI dependencies
# ============================================================
def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_app_settings(services: ServiceContainer = Depends(get_services)) -> Settings:
    return services.settings


def get_gateway(services: ServiceContainer = Depends(get_services)) -> StripeGateway:
    return services.gateway


def get_mirror(services: ServiceContainer = Depends(get_services)) -> MirrorSyncer:
    return services.mirror


def get_storage(services: ServiceContainer = Depends(get_services)) -> LocalFileStorage:
    return services.storage


def get_repository(session: Session = Depends(get_session)) -> ProfileRepository:
    return ProfileRepository(session)


def get_reconciler(
    repository: ProfileRepository = Depends(get_repository),
    gateway: StripeGateway = Depends(get_gateway),
) -> SubscriptionReconciler:
    return SubscriptionReconciler(repository, gateway)
