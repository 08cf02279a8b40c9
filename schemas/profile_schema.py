# profile_schema.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from decimal import Decimal


class MoverView(BaseModel):
    """
    Public "Mover" card shape consumed by the dashboard frontend.

    Fields are only emitted when set, so an unset ``startingPrice`` is absent
    from the JSON and ``MoverView()`` serializes to ``{}``.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    logo: Optional[str] = None
    verified: Optional[bool] = None  # placeholder, no real verification yet
    rating: Optional[float] = None  # placeholder
    jobsCompleted: Optional[int] = None  # placeholder
    startingPrice: Optional[float] = None
    features: Optional[List[str]] = None  # placeholder
    profileCompletion: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set

    def to_response(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ProfileUpdate(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = Field(default=None, max_length=200)
    business_name: Optional[str] = Field(default=None, max_length=200)
    phone_e164: Optional[str] = Field(default=None, max_length=20)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    logo_url: Optional[str] = Field(default=None, max_length=1024)
    starting_price: Optional[Decimal] = Field(default=None, ge=0)

    model_config = ConfigDict(extra="ignore")

    @field_validator("starting_price", mode="before")
    @classmethod
    def blank_price_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def changes(self) -> dict:
        """Fields present in the request body, minus the lookup key."""
        data = self.model_dump(exclude_unset=True)
        data.pop("email", None)
        return data


class DashboardResponse(BaseModel):
    ok: bool = True
    mover: dict
    subscriptionTier: str
    nextPaymentDate: str
    status: str


class UpdateProfileResponse(BaseModel):
    ok: bool = True
    mover: dict
    profileCompletion: int


class LogoUploadResponse(BaseModel):
    ok: bool = True
    logo_url: str
    mover: dict
