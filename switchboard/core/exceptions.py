"""
Custom Exceptions for the Lead Switchboard
Provides structured error handling across the application
"""

from typing import Optional, Dict, Any


class SwitchboardException(Exception):
    """Base exception for all switchboard errors"""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


# Authentication
class AuthenticationError(SwitchboardException):
    """Raised when authentication fails"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            error_code="AUTH_FAILED",
            details=details,
            status_code=401
        )


class InvalidAPIKeyError(AuthenticationError):
    """Raised when API key is invalid"""

    def __init__(self, message: str = "Invalid or missing API key"):
        super().__init__(message=message, details={"hint": "Send the admin key in X-API-Key"})


# Tenant Exceptions
class TenantError(SwitchboardException):
    """Base exception for tenant-related errors"""
    pass


class TenantNotFoundError(TenantError):
    """Raised when tenant is not found"""

    def __init__(self, tenant_id: str):
        super().__init__(
            message=f"Tenant not found: {tenant_id}",
            error_code="TENANT_NOT_FOUND",
            details={"tenant_id": tenant_id},
            status_code=404
        )


# Lead Intake Exceptions
class LeadIntakeError(SwitchboardException):
    """Base exception for malformed lead webhooks"""
    pass


class MissingPhoneError(LeadIntakeError):
    """Raised when the webhook payload carries no phone number"""

    def __init__(self, payload_keys: Optional[list] = None):
        super().__init__(
            message="Phone number required",
            error_code="PHONE_REQUIRED",
            details={"payload_keys": payload_keys or []},
            status_code=400
        )


class InvalidPhoneNumberError(LeadIntakeError):
    """Raised when phone number cannot be normalized"""

    def __init__(self, phone_number: str):
        super().__init__(
            message=f"Invalid phone number: {phone_number}",
            error_code="INVALID_PHONE_NUMBER",
            details={
                "phone_number": phone_number,
                "hint": "Use a dialable number, e.g. +14155551234"
            },
            status_code=400
        )


class LeadNotFoundError(SwitchboardException):
    """Raised when a lead is not found"""

    def __init__(self, lead_id: str):
        super().__init__(
            message=f"Lead not found: {lead_id}",
            error_code="LEAD_NOT_FOUND",
            details={"lead_id": lead_id},
            status_code=404
        )


# Provider Exceptions
class ProviderError(SwitchboardException):
    """Base exception for call provider errors"""
    pass


class ProviderConfigurationError(ProviderError):
    """Raised when a provider is missing credentials or a callback base URL"""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="PROVIDER_NOT_CONFIGURED",
            details={"provider": provider} if provider else {},
            status_code=500
        )


# Storage Exceptions
class DatabaseError(SwitchboardException):
    """Raised when the database is unreachable or a query fails"""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            status_code=500
        )


class DuplicateRecordError(DatabaseError):
    """Raised when an insert violates a unique constraint"""

    def __init__(self, message: str = "Duplicate record"):
        super().__init__(message=message)
        self.error_code = "DUPLICATE_RECORD"
        self.status_code = 409


# Webhook Exceptions
class WebhookError(SwitchboardException):
    """Base exception for webhook errors"""
    pass


class WebhookValidationError(WebhookError):
    """Raised when the callback shared secret does not match"""

    def __init__(self, message: str = "Invalid webhook secret"):
        super().__init__(
            message=message,
            error_code="WEBHOOK_VALIDATION_FAILED",
            status_code=403
        )


# Rate Limiting
class RateLimitError(SwitchboardException):
    """Raised when rate limit is exceeded"""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            message="Rate limit exceeded",
            error_code="RATE_LIMIT_EXCEEDED",
            details={"retry_after_seconds": retry_after},
            status_code=429
        )
