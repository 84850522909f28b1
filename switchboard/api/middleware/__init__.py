"""API Middleware"""

from .auth import (
    get_api_key,
    require_admin
)

from .rate_limit import (
    RateLimiter,
    get_rate_limiter,
    check_webhook_rate_limit
)

from .webhook_security import (
    CallbackSecretValidator,
    validate_callback_secret
)

__all__ = [
    # Auth
    "get_api_key",
    "require_admin",
    # Rate limiting
    "RateLimiter",
    "get_rate_limiter",
    "check_webhook_rate_limit",
    # Webhook security
    "CallbackSecretValidator",
    "validate_callback_secret"
]
