"""Core module for configuration, settings, and shared utilities"""

from .config import settings, get_settings, Settings
from .logging import setup_logging, get_logger
from .exceptions import (
    SwitchboardException,
    AuthenticationError,
    InvalidAPIKeyError,
    TenantError,
    TenantNotFoundError,
    LeadIntakeError,
    MissingPhoneError,
    InvalidPhoneNumberError,
    LeadNotFoundError,
    ProviderError,
    ProviderConfigurationError,
    DatabaseError,
    DuplicateRecordError,
    WebhookError,
    WebhookValidationError,
    RateLimitError
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    "Settings",
    # Logging
    "setup_logging",
    "get_logger",
    # Exceptions
    "SwitchboardException",
    "AuthenticationError",
    "InvalidAPIKeyError",
    "TenantError",
    "TenantNotFoundError",
    "LeadIntakeError",
    "MissingPhoneError",
    "InvalidPhoneNumberError",
    "LeadNotFoundError",
    "ProviderError",
    "ProviderConfigurationError",
    "DatabaseError",
    "DuplicateRecordError",
    "WebhookError",
    "WebhookValidationError",
    "RateLimitError"
]
