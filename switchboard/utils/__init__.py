"""Utility modules"""

from .helpers import (
    normalize_phone,
    generate_dedupe_key,
    is_within_quiet_hours,
    submission_age_seconds,
    sanitize_for_storage,
    truncate_text
)

__all__ = [
    "normalize_phone",
    "generate_dedupe_key",
    "is_within_quiet_hours",
    "submission_age_seconds",
    "sanitize_for_storage",
    "truncate_text"
]
