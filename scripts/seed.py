# scripts/seed.py

import os
import sys
import argparse

from sqlmodel import Session, select

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import settings
from core.database import engine, create_db_and_tables
from core.dependencies import build_services
from core.exceptions import UpstreamAuthError
from models.models import Profile, ProfileStatus
from services.profile_repository import ProfileRepository

DEMO_MOVERS = [
    {
        "email": "demo-mover@packrocket.dev",
        "password": "demo1234",
        "full_name": "Dana Demo",
        "business_name": "Demo Moving Co",
        "phone_e164": "+15125550100",
        "city": "Austin",
        "state": "TX",
        "starting_price": 299,
        "plan": "Pro",
        "status": ProfileStatus.ACTIVE.value,
    },
    {
        "email": "starter-mover@packrocket.dev",
        "password": "demo1234",
        "business_name": "Two Guys & A Van",
        "plan": "Starter",
        "status": ProfileStatus.PENDING.value,
    },
]


def seed_dev_data():
    """Seed development database with demo mover accounts."""
    print("🌱 Seeding development data...")
    create_db_and_tables()

    with Session(engine) as session:
        repository = ProfileRepository(session)
        for mover in DEMO_MOVERS:
            fields = dict(mover)
            password = fields.pop("password")
            try:
                user_id = repository.create_account(fields["email"], password)
            except UpstreamAuthError:
                print(f"ℹ️ {fields['email']} already exists, skipping")
                continue
            repository.insert_profile({"id": user_id, **fields})
            print(f"✅ Added {fields['email']}")

    print("🌱 Development data seeding complete.")


def sync_mirror():
    """Push every profile to the Airtable mirror (best effort)."""
    mirror = build_services(settings).mirror
    if not mirror.configured:
        print("⚠️ Airtable not configured, nothing to sync")
        return

    with Session(engine) as session:
        profiles = session.exec(select(Profile)).all()
        outcomes = [mirror.sync(profile) for profile in profiles]

    failed = [o for o in outcomes if not o.ok]
    print(f"🔄 Synced {len(outcomes) - len(failed)}/{len(outcomes)} profiles to Airtable")
    for outcome in failed:
        print(f"❌ {outcome.email}: {outcome.detail}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the PackRocket database.")
    parser.add_argument(
        "command",
        choices=["seed", "sync-mirror"],
        default="seed",
        nargs="?",
        help="seed demo movers, or push all profiles to the Airtable mirror",
    )
    args = parser.parse_args()

    if args.command == "seed":
        seed_dev_data()
    elif args.command == "sync-mirror":
        sync_mirror()
