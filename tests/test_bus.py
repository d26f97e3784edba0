from __future__ import annotations

import pytest

from streamprefs.bus import AllKeys, ByKey, ChangeBus, key_filter_for
from streamprefs.exceptions import PreferencesClosedError


def test_key_filter_variants() -> None:
    assert key_filter_for("a") == ByKey("a")
    assert key_filter_for(None) == AllKeys()
    assert ByKey("a").matches("a")
    assert not ByKey("a").matches("b")
    assert AllKeys().matches("anything")


def test_publish_fans_out_in_order_with_filters() -> None:
    bus = ChangeBus()
    only_a: list[str] = []
    everything: list[str] = []
    bus.listen(only_a.append, key_filter=ByKey("a"))
    bus.listen(everything.append)

    for key in ("a", "b", "a", "c"):
        bus.publish(key)

    assert only_a == ["a", "a"]
    assert everything == ["a", "b", "a", "c"]


def test_no_replay_for_late_listeners() -> None:
    bus = ChangeBus()
    bus.publish("a")
    received: list[str] = []
    bus.listen(received.append)

    assert received == []


def test_paused_subscription_collapses_pending_events() -> None:
    bus = ChangeBus()
    received: list[str] = []
    subscription = bus.listen(received.append)

    subscription.pause()
    bus.publish("a")
    bus.publish("b")
    assert received == []

    subscription.resume()
    assert received == ["b"]

    subscription.resume()
    bus.publish("c")
    assert received == ["b", "c"]


def test_cancel_detaches_and_is_idempotent() -> None:
    bus = ChangeBus()
    received: list[str] = []
    subscription = bus.listen(received.append)

    subscription.cancel()
    subscription.cancel()
    bus.publish("a")

    assert received == []
    assert bus.subscriber_count == 0
    assert not subscription.is_active


def test_cancel_during_publish_skips_cancelled_listener() -> None:
    bus = ChangeBus()
    received: list[str] = []

    def _first(_key: str) -> None:
        second.cancel()

    bus.listen(_first)
    second = bus.listen(received.append)

    bus.publish("a")
    assert received == []


def test_failing_listener_is_isolated(caplog: pytest.LogCaptureFixture) -> None:
    bus = ChangeBus()
    received: list[str] = []

    def _boom(_key: str) -> None:
        raise RuntimeError("boom")

    bus.listen(_boom)
    bus.listen(received.append)

    bus.publish("a")

    assert received == ["a"]
    assert "Change listener failed" in caplog.text


def test_close_finishes_listeners_and_rejects_publish() -> None:
    bus = ChangeBus()
    done: list[str] = []
    bus.listen(lambda _: None, on_done=lambda: done.append("first"))
    bus.listen(lambda _: None, on_done=lambda: done.append("second"))

    bus.close()
    bus.close()

    assert done == ["first", "second"]
    assert bus.is_closed
    assert bus.subscriber_count == 0
    with pytest.raises(PreferencesClosedError):
        bus.publish("a")


def test_listen_on_closed_bus_is_already_done() -> None:
    bus = ChangeBus()
    bus.close()
    done: list[bool] = []

    subscription = bus.listen(lambda _: None, on_done=lambda: done.append(True))

    assert done == [True]
    assert not subscription.is_active


def test_failing_listener_on_resume_is_isolated(caplog: pytest.LogCaptureFixture) -> None:
    bus = ChangeBus()
    received: list[str] = []

    def _boom(_key: str) -> None:
        raise RuntimeError("boom")

    subscription = bus.listen(_boom)
    bus.listen(received.append)

    subscription.pause()
    bus.publish("a")
    subscription.resume()

    assert received == ["a"]
    assert not subscription.is_paused
    assert subscription.is_active
    assert "Change listener failed for key 'a' on resume" in caplog.text
