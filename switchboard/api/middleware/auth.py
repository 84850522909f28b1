"""
Authentication Middleware
Guards the admin surface with a shared API key
"""

import hmac
from typing import Optional
from fastapi import Request

from switchboard.core.config import settings
from switchboard.core.logging import get_logger
from switchboard.core.exceptions import AuthenticationError, InvalidAPIKeyError

logger = get_logger(__name__)


async def get_api_key(request: Request) -> Optional[str]:
    """Extract API key from request"""
    # Try header first
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key

    # Try Authorization header (Bearer token)
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    return None


async def require_admin(request: Request) -> str:
    """
    Dependency for admin routes

    Usage:
        @router.get("/tenants")
        async def list_tenants(_: str = Depends(require_admin)):
            ...

    Raises:
        AuthenticationError: If no admin key is configured
        InvalidAPIKeyError: If the key is missing or wrong
    """
    expected = settings.admin_api_key
    if not expected:
        logger.warning("Admin request rejected: ADMIN_API_KEY not configured")
        raise AuthenticationError("Admin API is disabled")

    api_key = await get_api_key(request)
    if not api_key or not hmac.compare_digest(api_key, expected):
        logger.warning(f"Invalid admin API key from {request.client.host if request.client else 'unknown'}")
        raise InvalidAPIKeyError()

    return api_key
