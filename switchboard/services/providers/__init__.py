"""Outbound call providers"""

from .base import (
    CallProviderClient,
    CallRequest,
    DispatchConfig,
    normalize_base_url,
    is_placeholder
)
from .bland import BlandProvider
from .vapi import VapiProvider

__all__ = [
    "CallProviderClient",
    "CallRequest",
    "DispatchConfig",
    "normalize_base_url",
    "is_placeholder",
    "BlandProvider",
    "VapiProvider"
]
