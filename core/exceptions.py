# core/exceptions.py
from typing import Optional


class MoverServiceError(Exception):
    """Base error carrying the HTTP status and the message shown to the caller."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(MoverServiceError):
    status_code = 400
    default_message = "Missing required fields"


class UpstreamAuthError(MoverServiceError):
    status_code = 400
    default_message = "Auth create failed"


class ConflictOrLookupError(MoverServiceError):
    status_code = 404
    default_message = "Profile not found"


class ProfileNotFoundError(ConflictOrLookupError):
    pass


class ProfileConflictError(ConflictOrLookupError):
    """Several rows for a unique key; reported to callers as not found."""


class NoActiveSubscriptionError(MoverServiceError):
    status_code = 400
    default_message = "No active subscription found for this user"


class SignatureError(MoverServiceError):
    status_code = 400
    default_message = "Webhook Error"


class GatewayError(MoverServiceError):
    status_code = 500
    default_message = "Payment gateway error"


class StorageError(MoverServiceError):
    status_code = 500
    default_message = "File storage failed"
