"""
Webhook Security Middleware
Optional shared-secret check for provider status callbacks
"""

import hmac
from typing import Optional
from fastapi import Request

from switchboard.core.config import settings
from switchboard.core.logging import get_logger
from switchboard.core.exceptions import WebhookValidationError

logger = get_logger(__name__)

SECRET_HEADER = "X-Webhook-Secret"


class CallbackSecretValidator:
    """
    Compares the X-Webhook-Secret header against CALLBACK_SECRET.
    With no secret configured every callback is accepted.
    """

    def __init__(self, secret: Optional[str] = None):
        self.secret = secret if secret is not None else settings.callback_secret

    def validate(self, request: Request) -> bool:
        """
        Validate a callback request

        Returns:
            True if valid, raises WebhookValidationError if invalid
        """
        if not self.secret:
            return True

        provided = request.headers.get(SECRET_HEADER)
        if not provided:
            logger.warning(f"Callback without {SECRET_HEADER} header")
            raise WebhookValidationError(f"Missing {SECRET_HEADER} header")

        if not hmac.compare_digest(provided, self.secret):
            logger.warning("Invalid callback secret")
            raise WebhookValidationError()

        return True


async def validate_callback_secret(request: Request) -> bool:
    """
    Dependency for provider callback routes

    Usage:
        @router.post("/{provider}")
        async def callback(request: Request, _: bool = Depends(validate_callback_secret)):
            ...
    """
    return CallbackSecretValidator().validate(request)
