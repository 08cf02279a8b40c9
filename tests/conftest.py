import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Make the flat packages (core, models, routes...) importable from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="packrocket-uploads-")
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy_key_for_testing"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STRIPE_PRICE_STARTER"] = "price_starter"
os.environ["STRIPE_PRICE_PRO"] = "price_pro"
os.environ.pop("AIRTABLE_API_KEY", None)
os.environ.pop("AIRTABLE_BASE_ID", None)

from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from core.config import Settings
from core.database import get_session
from core.dependencies import ServiceContainer, get_services
from core.exceptions import SignatureError
from models.models import Profile
from services.file_storage import LocalFileStorage
from services.mirror_service import MirrorSyncer
from services.payment_service import StripeGateway, SubscriptionSnapshot
from services.profile_repository import ProfileRepository


class FakeMirrorStore:
    """In-memory stand-in for the Airtable table client."""

    def __init__(self):
        self.records: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []
        self._next = 1

    def find_by_email(self, table: str, email: str) -> Optional[Dict[str, Any]]:
        self.calls.append("find")
        for record_id, fields in self.records.items():
            if fields.get("Email") == email:
                return {"id": record_id, "fields": dict(fields)}
        return None

    def create_record(self, table: str, fields: Dict[str, Any]) -> str:
        self.calls.append("create")
        record_id = f"rec{self._next}"
        self._next += 1
        self.records[record_id] = dict(fields)
        return record_id

    def update_record(self, table: str, record_id: str, fields: Dict[str, Any]) -> None:
        self.calls.append("update")
        self.records[record_id].update(fields)


class FakeGateway(StripeGateway):
    """Stripe gateway double; webhook bodies are trusted when signed "valid"."""

    def __init__(self):
        super().__init__("sk_test_fake", "whsec_fake")
        self.customers: List[Dict[str, Any]] = []
        self.checkout_sessions: List[Dict[str, Any]] = []
        self.portal_sessions: List[Dict[str, Any]] = []
        self.subscription_updates: List[Dict[str, Any]] = []
        self.period_end = 1767225600  # 2026-01-01T00:00:00Z

    def verify_event(self, payload, sig_header, secret=None):
        if sig_header != "valid":
            raise SignatureError()
        return json.loads(payload)

    def create_customer(self, email, name, metadata):
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers.append({"id": customer_id, "email": email, "name": name, "metadata": metadata})
        return customer_id

    def create_checkout_session(self, customer_id, price_id, success_url, cancel_url):
        self.checkout_sessions.append({
            "customer": customer_id,
            "price": price_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
        })
        return f"https://checkout.stripe.com/c/pay/cs_test_{len(self.checkout_sessions)}"

    def create_billing_portal_session(self, customer_id, return_url):
        self.portal_sessions.append({"customer": customer_id, "return_url": return_url})
        return "https://billing.stripe.com/p/session/test_123"

    def update_subscription(self, subscription_id, cancel_at_period_end):
        self.subscription_updates.append({"id": subscription_id, "cancel_at_period_end": cancel_at_period_end})
        return SubscriptionSnapshot(id=subscription_id, current_period_end=self.period_end)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repository(session):
    return ProfileRepository(session)


@pytest.fixture
def mirror_store():
    return FakeMirrorStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def services(gateway, mirror_store, tmp_path):
    settings = Settings(
        PUBLIC_URL="https://movers.example.com",
        BACKEND_URL="https://api.example.com",
        STRIPE_PRICE_STARTER="price_starter",
        STRIPE_PRICE_PRO="price_pro",
        STRIPE_PRICE_ENTERPRISE=None,
        UPLOAD_DIR=str(tmp_path),
    )
    return ServiceContainer(
        settings=settings,
        gateway=gateway,
        mirror=MirrorSyncer(mirror_store, "Movers"),
        storage=LocalFileStorage(str(tmp_path), settings.BACKEND_URL),
    )


@pytest.fixture
def client(engine, services):
    from main import app

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(repository):
    def _make(**overrides) -> Profile:
        fields = {
            "id": "user-1",
            "email": "mover@example.com",
            "full_name": "Jane Doe",
            "business_name": "Acme Movers",
            "phone_e164": "+15551234567",
            "plan": "Starter",
            "status": "pending",
        }
        fields.update(overrides)
        return repository.insert_profile(fields)

    return _make
