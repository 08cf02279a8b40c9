# ================================================================
# services/mirror_service.py — Airtable "Movers" mirror
# ================================================================
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging

import requests

from models.models import Profile

logger = logging.getLogger(__name__)


# ------------------------
# Airtable REST client
# ------------------------
class AirtableMirrorStore:
    """Minimal Airtable table client: find-by-email, create, update."""

    def __init__(self, api_key: str, base_id: str, api_url: str = "https://api.airtable.com/v0", timeout: float = 10.0):
        self.base_id = base_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def _table_url(self, table: str) -> str:
        return f"{self.api_url}/{self.base_id}/{quote(table, safe='')}"

    def _request(self, method: str, table: str, **kwargs) -> Dict[str, Any]:
        response = self.session.request(method, self._table_url(table), timeout=self.timeout, **kwargs)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def email_formula(email: str) -> str:
        escaped = email.replace("\\", "\\\\").replace('"', '\\"')
        return f'{{Email}} = "{escaped}"'

    def find_by_email(self, table: str, email: str) -> Optional[Dict[str, Any]]:
        data = self._request(
            "GET",
            table,
            params={"filterByFormula": self.email_formula(email), "maxRecords": 1},
        )
        records: List[Dict[str, Any]] = data.get("records") or []
        return records[0] if records else None

    def create_record(self, table: str, fields: Dict[str, Any]) -> str:
        data = self._request("POST", table, json={"records": [{"fields": fields}]})
        return data["records"][0]["id"]

    def update_record(self, table: str, record_id: str, fields: Dict[str, Any]) -> None:
        self._request("PATCH", table, json={"records": [{"id": record_id, "fields": fields}]})


# ------------------------
# Sync outcome
# ------------------------
class SyncStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncOutcome:
    status: SyncStatus
    email: Optional[str] = None
    record_id: Optional[str] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != SyncStatus.FAILED


def build_mirror_fields(profile: Profile) -> Dict[str, Any]:
    fields: Dict[str, Any] = {
        "Email": profile.email,
        "Name": profile.business_name or profile.full_name or "Mover",
        "Phone": profile.phone_e164 or "",
        "City": profile.city or "",
        "State": profile.state or "",
        "Plan": profile.plan or "",
    }

    if profile.logo_url:
        fields["Logo"] = [{"url": profile.logo_url}]

    if profile.starting_price is not None:
        fields["Starting price"] = float(profile.starting_price)

    return fields


class MirrorSyncer:
    """
    Best-effort upsert of a profile into the Airtable mirror, keyed by Email.

    ``sync`` never raises: a missing configuration or email is a skip, and
    any store failure is logged and returned as a FAILED outcome so the
    primary write path is never blocked.
    """

    def __init__(self, store: Optional[AirtableMirrorStore], table_name: Optional[str]):
        self.store = store
        self.table_name = table_name

    @property
    def configured(self) -> bool:
        return self.store is not None and bool(self.table_name)

    def sync(self, profile: Optional[Profile]) -> SyncOutcome:
        if not self.configured:
            logger.info("ℹ️ Airtable env not fully set or table missing, skipping sync")
            return SyncOutcome(SyncStatus.SKIPPED, detail="mirror not configured")

        if profile is None or not profile.email:
            logger.info("ℹ️ No profile or email passed to mirror sync, skipping")
            return SyncOutcome(SyncStatus.SKIPPED, detail="no email")

        email = profile.email
        try:
            fields = build_mirror_fields(profile)
            existing = self.store.find_by_email(self.table_name, email)

            if existing:
                self.store.update_record(self.table_name, existing["id"], fields)
                logger.info(f"✅ Updated Airtable mover row for: {email}")
                return SyncOutcome(SyncStatus.UPDATED, email=email, record_id=existing["id"])

            record_id = self.store.create_record(self.table_name, fields)
            logger.info(f"✅ Created Airtable mover row for: {email}")
            return SyncOutcome(SyncStatus.CREATED, email=email, record_id=record_id)

        except Exception as e:
            logger.exception(f"❌ Airtable sync failed for {email}")
            return SyncOutcome(SyncStatus.FAILED, email=email, detail=str(e))
