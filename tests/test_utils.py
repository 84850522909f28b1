"""
Tests for utility helpers
"""

import pytest
from datetime import datetime, timezone

from switchboard.utils.helpers import (
    generate_dedupe_key,
    is_within_quiet_hours,
    normalize_phone,
    sanitize_for_storage,
    submission_age_seconds,
    truncate_text,
)

# 2024-01-15 12:00:00 UTC
FIXED_NOW = 1705320000.0


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestNormalizePhone:
    """Tests for E.164 normalization"""

    @pytest.mark.parametrize("raw", [
        "(415) 555-1234",
        "415.555.1234",
        "415-555-1234",
        "4155551234",
        "+1 415 555 1234",
        "1-415-555-1234",
    ])
    def test_us_formats(self, raw):
        assert normalize_phone(raw) == "+14155551234"

    def test_international_number_keeps_country_code(self):
        assert normalize_phone("+44 20 7946 0958") == "+442079460958"

    def test_default_region_applies_to_national_numbers(self):
        assert normalize_phone("020 7946 0958", default_region="GB") == "+442079460958"

    @pytest.mark.parametrize("raw", [None, "", "   ", "not-a-phone", "12345", "555-1234"])
    def test_rejects_non_dialable(self, raw):
        assert normalize_phone(raw) is None


class TestDedupeKey:
    """Tests for time-bucketed dedupe keys"""

    def test_contact_id_wins_over_phone(self):
        key = generate_dedupe_key("c-1", "+14155551234", 30, now=FIXED_NOW)
        assert key.startswith("contact:c-1:window:")

    def test_phone_used_without_contact_id(self):
        key = generate_dedupe_key(None, "+14155551234", 30, now=FIXED_NOW)
        assert key.startswith("phone:+14155551234:window:")

    def test_blank_contact_id_falls_back_to_phone(self):
        key = generate_dedupe_key("  ", "+14155551234", 30, now=FIXED_NOW)
        assert key.startswith("phone:")

    def test_same_window_same_key(self):
        first = generate_dedupe_key("c-1", None, 30, now=FIXED_NOW)
        second = generate_dedupe_key("c-1", None, 30, now=FIXED_NOW + 1799)
        assert first == second

    def test_window_rollover_changes_key(self):
        first = generate_dedupe_key("c-1", None, 30, now=FIXED_NOW)
        second = generate_dedupe_key("c-1", None, 30, now=FIXED_NOW + 1800)
        assert first != second

    def test_requires_contact_or_phone(self):
        with pytest.raises(ValueError):
            generate_dedupe_key(None, None, 30, now=FIXED_NOW)


class TestQuietHours:
    """Tests for tenant-local quiet hour windows"""

    def test_wrapping_window_early_morning(self):
        # 07:00 in New York
        assert is_within_quiet_hours("America/New_York", "20:00", "08:00", _utc(2024, 1, 15, 12, 0))

    def test_wrapping_window_late_evening(self):
        # 21:00 in New York
        assert is_within_quiet_hours("America/New_York", "20:00", "08:00", _utc(2024, 1, 16, 2, 0))

    def test_wrapping_window_daytime(self):
        # 13:00 in New York
        assert not is_within_quiet_hours("America/New_York", "20:00", "08:00", _utc(2024, 1, 15, 18, 0))

    def test_wrapping_window_end_is_exclusive(self):
        # 08:00 in New York
        assert not is_within_quiet_hours("America/New_York", "20:00", "08:00", _utc(2024, 1, 15, 13, 0))

    def test_non_wrapping_window(self):
        # 12:30 and 14:00 in New York
        assert is_within_quiet_hours("America/New_York", "12:00", "14:00", _utc(2024, 1, 15, 17, 30))
        assert not is_within_quiet_hours("America/New_York", "12:00", "14:00", _utc(2024, 1, 15, 19, 0))

    def test_uses_tenant_timezone(self):
        # 12:00 UTC is 04:00 in Los Angeles and 13:00 in Berlin
        now = _utc(2024, 1, 15, 12, 0)
        assert is_within_quiet_hours("America/Los_Angeles", "20:00", "08:00", now)
        assert not is_within_quiet_hours("Europe/Berlin", "20:00", "08:00", now)

    def test_invalid_timezone_never_blocks(self):
        assert not is_within_quiet_hours("Mars/Olympus", "00:00", "23:59", _utc(2024, 1, 15, 12, 0))

    def test_invalid_time_never_blocks(self):
        assert not is_within_quiet_hours("America/New_York", "25:00", "08:00", _utc(2024, 1, 15, 12, 0))


class TestSubmissionAge:
    """Tests for embedded submission timestamp parsing"""

    def test_missing(self):
        assert submission_age_seconds(None, now=FIXED_NOW) is None
        assert submission_age_seconds("", now=FIXED_NOW) is None

    def test_epoch_seconds(self):
        assert submission_age_seconds(FIXED_NOW - 60, now=FIXED_NOW) == 60

    def test_epoch_milliseconds(self):
        assert submission_age_seconds(int((FIXED_NOW - 60) * 1000), now=FIXED_NOW) == 60

    def test_numeric_string(self):
        assert submission_age_seconds(str(int(FIXED_NOW - 90)), now=FIXED_NOW) == 90

    def test_iso_with_zulu(self):
        assert submission_age_seconds("2024-01-15T11:59:00Z", now=FIXED_NOW) == 60

    def test_naive_iso_is_utc(self):
        assert submission_age_seconds("2024-01-15T11:59:00", now=FIXED_NOW) == 60

    def test_future_timestamp_is_negative(self):
        assert submission_age_seconds(FIXED_NOW + 30, now=FIXED_NOW) == -30

    def test_unparseable(self):
        assert submission_age_seconds("yesterday-ish", now=FIXED_NOW) is None

    @pytest.mark.parametrize("timestamp", ["9" * 400, 10 ** 400, float("inf"), float("nan")])
    def test_out_of_range_number(self, timestamp):
        assert submission_age_seconds(timestamp, now=FIXED_NOW) is None


class TestSanitizeForStorage:
    """Tests for the storage sanitizer"""

    def test_none_passes_through(self):
        assert sanitize_for_storage(None) is None

    def test_redacts_secret_keys(self):
        result = sanitize_for_storage({
            "api_key": "sk-live",
            "Authorization": "Bearer abc",
            "nested": {"access_token": "t", "name": "ok"},
            "name": "Dana",
        })
        assert result["api_key"] == "[REDACTED]"
        assert result["Authorization"] == "[REDACTED]"
        assert result["nested"] == {"access_token": "[REDACTED]", "name": "ok"}
        assert result["name"] == "Dana"

    def test_omits_oversized_keys_by_default(self):
        result = sanitize_for_storage({"transcript": "hello", "messages": [1, 2], "status": "done"})
        assert result == {"transcript": "[omitted]", "messages": "[omitted]", "status": "done"}

    def test_empty_omit_keys_keeps_everything_but_secrets(self):
        result = sanitize_for_storage({"transcript": "hello", "password": "x"}, omit_keys=())
        assert result == {"transcript": "hello", "password": "[REDACTED]"}

    def test_circular_reference(self):
        data = {"a": 1}
        data["self"] = data
        assert sanitize_for_storage(data) == {"a": 1, "self": "[CIRCULAR]"}

    def test_shared_reference_is_not_circular(self):
        shared = [1, 2]
        assert sanitize_for_storage({"x": shared, "y": shared}) == {"x": [1, 2], "y": [1, 2]}

    def test_truncates_large_data(self):
        result = sanitize_for_storage({"blob": "x" * 500, "id": 1}, max_chars=100, preview_chars=20)
        assert result["note"] == "data truncated (too large)"
        assert result["approx_size"] > 100
        assert result["keys"] == ["blob", "id"]
        assert result["preview"].endswith("...[TRUNCATED]")
        assert len(result["preview"]) == 20 + len("...[TRUNCATED]")

    def test_non_serializable(self):
        class Broken:
            def __str__(self):
                raise RuntimeError("boom")

        assert sanitize_for_storage({"obj": Broken()}) == {"note": "data omitted (non-serializable)"}

    def test_output_is_plain_json(self):
        result = sanitize_for_storage({"when": datetime(2024, 1, 15), "items": (1, 2)})
        assert result == {"when": "2024-01-15 00:00:00", "items": [1, 2]}


class TestTruncateText:

    def test_short_text_unchanged(self):
        assert truncate_text("hello", 10) == "hello"

    def test_long_text_truncated(self):
        assert truncate_text("abcdefghij", 6) == "abc..."

    def test_none(self):
        assert truncate_text(None) is None
