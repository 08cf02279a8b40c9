# ================================================================
# services/profile_repository.py — Accounts + profiles datastore
# ================================================================
from typing import Any, Dict
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from core.exceptions import (
    ProfileConflictError,
    ProfileNotFoundError,
    UpstreamAuthError,
)
from core.security import hash_password
from models.models import Account, Profile, utcnow

logger = logging.getLogger(__name__)


class ProfileRepository:
    """
    Identity + canonical profile store.

    Lookups expect exactly one row for a unique key; zero rows raise
    ProfileNotFoundError, several raise ProfileConflictError.
    """

    def __init__(self, session: Session):
        self.session = session

    # ------------------------
    # Identity
    # ------------------------
    def create_account(self, email: str, password: str) -> str:
        account = Account(email=email, password_hash=hash_password(password))
        self.session.add(account)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"❌ Account create failed for {email}: {e.orig}")
            raise UpstreamAuthError()
        self.session.refresh(account)
        logger.info(f"✅ Account created for {email}")
        return account.id

    # ------------------------
    # Profiles
    # ------------------------
    def insert_profile(self, fields: Dict[str, Any]) -> Profile:
        profile = Profile(**fields)
        profile.updated_at = utcnow()
        self.session.add(profile)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"❌ Profile insert failed for {fields.get('email')}: {e.orig}")
            raise ProfileConflictError(str(e.orig))
        self.session.refresh(profile)
        return profile

    def find_profile(self, **filters: Any) -> Profile:
        if not filters:
            raise ValueError("find_profile needs at least one filter")

        statement = select(Profile)
        for column, value in filters.items():
            statement = statement.where(getattr(Profile, column) == value)

        rows = self.session.exec(statement.limit(2)).all()
        if not rows:
            raise ProfileNotFoundError()
        if len(rows) > 1:
            raise ProfileConflictError()
        return rows[0]

    def update_profile(self, key: Dict[str, Any], fields: Dict[str, Any]) -> Profile:
        """Apply ``fields`` to the single profile matching ``key``; stamps updated_at."""
        profile = self.find_profile(**key)
        for field, value in fields.items():
            setattr(profile, field, value)
        profile.updated_at = utcnow()

        self.session.add(profile)
        self.session.commit()
        self.session.refresh(profile)
        return profile
