# models/models.py
from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
import uuid

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# ENUMS
# ============================================================
class PlanName(str, Enum):
    STARTER = "Starter"
    PRO = "Pro"
    ENTERPRISE = "Enterprise"


class ProfileStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"


# ============================================================
# ACCOUNT (identity)
# ============================================================
class Account(SQLModel, table=True):
    __tablename__ = "accounts"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    email: str = Field(index=True, unique=True, max_length=255, nullable=False)
    password_hash: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


# ============================================================
# PROFILE (canonical mover record)
# ============================================================
class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: str = Field(primary_key=True, max_length=36)
    email: str = Field(index=True, unique=True, max_length=255, nullable=False)

    # Descriptive
    full_name: Optional[str] = Field(default="", max_length=200)
    business_name: Optional[str] = Field(default="", max_length=200)
    phone_e164: Optional[str] = Field(default="", max_length=20)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    logo_url: Optional[str] = Field(default=None, max_length=1024)
    starting_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    sms_opt_in: bool = Field(default=False)

    # Commercial
    plan: str = Field(default=PlanName.STARTER.value, max_length=20)
    status: str = Field(default=ProfileStatus.PENDING.value, max_length=20, index=True)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255)
    current_period_end: Optional[str] = Field(default=None, max_length=40)  # ISO-8601, UTC

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    @property
    def has_subscription(self) -> bool:
        return bool(self.stripe_subscription_id)
