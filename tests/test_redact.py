from __future__ import annotations

from n26a_bt._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "id": "alice",
        "password": "pw",
        "token": {"token": "abc", "exp": "2026-01-01T00:00:00Z"},
        "headers": {"Authorization": "Bearer abc"},
    }

    redacted = redact_for_log(payload)
    assert redacted["id"] == "alice"
    assert redacted["password"] == "<redacted>"
    assert redacted["token"] == "<redacted>"
    assert redacted["headers"]["Authorization"] == "<redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_masks_request_headers_in_any_case() -> None:
    headers = {"content-type": "application/json", "AUTHORIZATION": "Bearer abc", "Cookie": "sid=1"}

    redacted = redact_for_log(headers)
    assert redacted == {"content-type": "application/json", "AUTHORIZATION": "<redacted>", "Cookie": "<redacted>"}
    assert headers["AUTHORIZATION"] == "Bearer abc"


def test_redact_for_log_passes_through_non_mappings() -> None:
    assert redact_for_log(None) is None
    assert redact_for_log(3) == 3
    assert redact_for_log("short") == "short"
