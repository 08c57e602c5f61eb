"""Application error kinds shared by services and routers"""
from typing import Optional


class ArmoryError(Exception):
    """Base class. Each subclass maps to one error kind and a default HTTP status."""

    kind = "internal"
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ArmoryError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class AlreadyExists(ArmoryError):
    kind = "already_exists"
    status_code = 400
    default_message = "Already exists"


class Unauthorized(ArmoryError):
    kind = "unauthorized"
    status_code = 401
    default_message = "You do not have permission to access that page"


class Forbidden(ArmoryError):
    kind = "forbidden"
    status_code = 403
    default_message = "You must be an administrator to access this page"


class NotAnUpgrade(ArmoryError):
    kind = "not_an_upgrade"
    status_code = 400
    default_message = "That plan is not an upgrade from your current subscription"


class QuotaExceeded(ArmoryError):
    kind = "quota_exceeded"
    status_code = 403
    default_message = (
        "You've reached the limit of 2 guns for the free tier. "
        "Please upgrade your subscription to add more guns."
    )


class RateLimited(ArmoryError):
    kind = "rate_limited"
    status_code = 429
    default_message = "Too many requests"


class ValidationFailed(ArmoryError):
    kind = "validation_failed"
    status_code = 400
    default_message = "Invalid input"


class SignatureInvalid(ArmoryError):
    kind = "signature_invalid"
    status_code = 400
    default_message = "Invalid signature"


class Transient(ArmoryError):
    kind = "transient"
    status_code = 503
    default_message = "A temporary error occurred. Please try again."


class Internal(ArmoryError):
    kind = "internal"
    status_code = 500
