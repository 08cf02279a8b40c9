# user_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional

from models.models import PlanName


# ---------------------------
# Signup (account + subscription)
# ---------------------------
class SignupRequest(BaseModel):
    fullName: Optional[str] = Field(default=None, max_length=200)
    businessName: Optional[str] = Field(default=None, max_length=200)
    email: Optional[EmailStr] = None
    phoneE164: Optional[str] = Field(default=None, max_length=20)
    password: Optional[str] = None
    smsOptIn: bool = False
    plan: PlanName = PlanName.STARTER

    model_config = ConfigDict(extra="ignore")


class SignupResponse(BaseModel):
    url: str
