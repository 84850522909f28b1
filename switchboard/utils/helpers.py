"""
Utility Functions

Phone normalization, dedupe keys, quiet hours and payload sanitizing
for the lead pipeline.
"""

import json
import math
import re
import time
from datetime import datetime, timezone as dt_timezone
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat, ValidationResult

from switchboard.core.logging import get_logger

logger = get_logger(__name__)

REDACTED = "[REDACTED]"
OMITTED = "[omitted]"
CIRCULAR = "[CIRCULAR]"

SECRET_KEY_FRAGMENTS = ("authorization", "api_key", "apikey", "token", "secret", "password")

OVERSIZED_KEYS = frozenset({
    "transcript",
    "transcripts",
    "concatenated_transcript",
    "conversation",
    "messages",
    "decision",
    "payload",
})


def _is_dialable(number: phonenumbers.PhoneNumber) -> bool:
    return phonenumbers.is_possible_number_with_reason(number) == ValidationResult.IS_POSSIBLE


def normalize_phone(phone: Optional[str], default_region: str = "US") -> Optional[str]:
    """
    Normalize a phone number to E.164 format.

    Examples:
        "(555) 123-4567" -> "+15551234567"
        "555.123.4567" -> "+15551234567"
        "not-a-phone" -> None

    Args:
        phone: Phone number in any format
        default_region: Region used when the number has no country code

    Returns:
        E.164 phone number, or None when the input is not dialable
    """
    if not phone:
        return None

    raw = str(phone).strip()
    digits = re.sub(r"\D", "", raw)

    try:
        parsed = phonenumbers.parse(raw, default_region)
        if _is_dialable(parsed):
            return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)
    except NumberParseException:
        pass

    if len(digits) < 10:
        return None

    country_code = phonenumbers.country_code_for_region(default_region)
    candidate = f"+{country_code}{digits}" if country_code else f"+{digits}"

    try:
        parsed = phonenumbers.parse(candidate, None)
        if _is_dialable(parsed):
            return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)
    except NumberParseException as e:
        logger.debug(f"Phone normalization failed for {raw!r}: {e}")

    return None


def generate_dedupe_key(
    contact_id: Optional[str],
    phone: Optional[str],
    window_minutes: int = 30,
    now: Optional[float] = None,
) -> str:
    """
    Build a tenant-scoped idempotency key bucketed by time window.

    The same contact (or phone) inside one window maps to the same key;
    once the window rolls over a new key is produced. Contact ids win over
    phone numbers since CRMs keep them stable.

    Raises:
        ValueError: when neither a contact id nor a phone is given
    """
    if window_minutes <= 0:
        window_minutes = 30

    timestamp = time.time() if now is None else now
    bucket = int(timestamp // (window_minutes * 60))

    safe_contact_id = str(contact_id).strip() if contact_id is not None else ""
    safe_phone = str(phone).strip() if phone is not None else ""

    if safe_contact_id:
        return f"contact:{safe_contact_id}:window:{bucket}"

    if safe_phone:
        return f"phone:{safe_phone}:window:{bucket}"

    raise ValueError("Cannot generate dedupe key without contact id or phone")


def _minutes_since_midnight(hhmm: str) -> int:
    hours, minutes = hhmm.strip().split(":")
    hours, minutes = int(hours), int(minutes)
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"time out of range: {hhmm}")
    return hours * 60 + minutes


def is_within_quiet_hours(
    timezone: str,
    quiet_start: str,
    quiet_end: str,
    now: Optional[datetime] = None,
) -> bool:
    """
    Check whether the current local time falls inside [quiet_start, quiet_end).

    A start later than the end means the window wraps midnight. Any parsing
    or timezone failure returns False so an evaluation error never blocks
    a call.

    Args:
        timezone: IANA timezone name of the tenant
        quiet_start: Local start time, "HH:MM"
        quiet_end: Local end time, "HH:MM"
        now: Instant to evaluate (defaults to the current time)
    """
    try:
        tz = ZoneInfo(timezone)
        current = now.astimezone(tz) if now is not None else datetime.now(tz)
        current_minutes = current.hour * 60 + current.minute

        start_minutes = _minutes_since_midnight(quiet_start)
        end_minutes = _minutes_since_midnight(quiet_end)

        if start_minutes <= end_minutes:
            return start_minutes <= current_minutes < end_minutes
        return current_minutes >= start_minutes or current_minutes < end_minutes

    except Exception as e:
        logger.warning(f"Quiet hours check failed ({timezone}, {quiet_start}-{quiet_end}): {e}")
        return False


def submission_age_seconds(timestamp: Any, now: Optional[float] = None) -> Optional[int]:
    """
    Best-effort age in seconds of an embedded submission timestamp.

    Accepts ISO-8601 strings, epoch seconds or epoch milliseconds.
    Returns None when the timestamp is missing or unparseable.
    """
    if timestamp is None or timestamp == "" or isinstance(timestamp, bool):
        return None

    current = time.time() if now is None else now

    if isinstance(timestamp, str) and re.fullmatch(r"\d+(\.\d+)?", timestamp.strip()):
        timestamp = float(timestamp)

    if isinstance(timestamp, (int, float)):
        try:
            epoch = timestamp / 1000 if timestamp > 1e12 else float(timestamp)
        except OverflowError:
            return None
        if not math.isfinite(epoch):
            return None
        return int(current - epoch)

    if isinstance(timestamp, datetime):
        parsed = timestamp
    else:
        try:
            parsed = datetime.fromisoformat(str(timestamp).strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_timezone.utc)

    return int(current - parsed.timestamp())


def _redact(value: Any, omit_keys: frozenset, ancestors: set) -> Any:
    if isinstance(value, (dict, list, tuple)):
        marker = id(value)
        if marker in ancestors:
            return CIRCULAR
        ancestors.add(marker)
        try:
            if isinstance(value, dict):
                out = {}
                for key, item in value.items():
                    lowered = str(key).lower()
                    if any(fragment in lowered for fragment in SECRET_KEY_FRAGMENTS):
                        out[key] = REDACTED
                    elif lowered in omit_keys:
                        out[key] = OMITTED
                    else:
                        out[key] = _redact(item, omit_keys, ancestors)
                return out
            return [_redact(item, omit_keys, ancestors) for item in value]
        finally:
            ancestors.discard(marker)
    return value


def sanitize_for_storage(
    data: Any,
    max_chars: int = 8000,
    omit_keys: Optional[Iterable[str]] = None,
    preview_chars: int = 1000,
) -> Any:
    """
    Make arbitrary structured data safe to persist as JSON.

    Secret-looking keys are redacted, known oversized fields are omitted,
    circular references become a marker, and anything that still serializes
    past max_chars is replaced by a summary with its top-level keys, an
    approximate size and a short preview.
    """
    if data is None:
        return None

    omitted = frozenset(k.lower() for k in omit_keys) if omit_keys is not None else OVERSIZED_KEYS

    try:
        redacted = _redact(data, omitted, set())
        serialized = json.dumps(redacted, default=str)
    except Exception:
        return {"note": "data omitted (non-serializable)"}

    if len(serialized) > max_chars:
        return {
            "note": "data truncated (too large)",
            "approx_size": len(serialized),
            "keys": [str(k) for k in redacted.keys()] if isinstance(redacted, dict) else [],
            "preview": serialized[:preview_chars] + "...[TRUNCATED]",
        }

    # Round-trip so stored values are plain JSON types
    return json.loads(serialized)


def truncate_text(text: Optional[str], max_length: int = 100, suffix: str = "...") -> Optional[str]:
    """
    Truncate text to a maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add when truncated

    Returns:
        Truncated text
    """
    if text is None or len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix
