from __future__ import annotations

from streamprefs._redact import REDACTED, redact_for_log


def test_redact_for_log_hides_sensitive_values() -> None:
    assert redact_for_log("s3cret", sensitive=True) == REDACTED
    assert redact_for_log({"token": "abc"}, sensitive=True) == REDACTED


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_orders_sets_and_keeps_scalars() -> None:
    assert redact_for_log(frozenset({"b", "a"})) == ["a", "b"]
    assert redact_for_log(3) == 3
    assert redact_for_log(None) is None
    assert redact_for_log(b"\x00\x01") == "<bytes:2b>"


def test_redact_for_log_truncates_unknown_object_repr() -> None:
    class _Big:
        def __repr__(self) -> str:
            return "B" * 300

    assert redact_for_log(_Big(), max_string=5) == "BBBBB…<truncated>"
