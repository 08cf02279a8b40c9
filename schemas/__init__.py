from .payment_schema import CancelSubscriptionRequest, CancelSubscriptionResponse, WebhookAck
from .profile_schema import MoverView, ProfileUpdate, DashboardResponse, UpdateProfileResponse, LogoUploadResponse
from .user_schema import SignupRequest, SignupResponse

__all__ = [
    # Payment
    "CancelSubscriptionRequest", "CancelSubscriptionResponse", "WebhookAck",

    # Profile
    "MoverView", "ProfileUpdate", "DashboardResponse", "UpdateProfileResponse", "LogoUploadResponse",

    # User
    "SignupRequest", "SignupResponse",
]
