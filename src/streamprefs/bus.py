"""Change bus: process-wide broadcast of "this key changed" events.

Every write or clear publishes the affected key here. Each listener gets
its own :class:`BusSubscription` carrying a :class:`KeyFilter`, a pause
count and a cancelled flag, so no listener state is shared.

Delivery is synchronous. Events are never replayed to listeners that
subscribe later. A paused subscription consumes nothing; matching events
that arrive meanwhile collapse into a single pending event delivered on
resume, since listeners only care that the key changed, not how often.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from streamprefs.exceptions import PreferencesClosedError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ByKey:
    """Admit only events for one key."""

    key: str

    def matches(self, key: str) -> bool:
        return key == self.key


@dataclass(frozen=True, slots=True)
class AllKeys:
    """Admit every event. Used by the store-wide key set preference."""

    def matches(self, key: str) -> bool:
        return True


KeyFilter = ByKey | AllKeys


def key_filter_for(key: str | None) -> KeyFilter:
    return AllKeys() if key is None else ByKey(key)


class BusSubscription:
    """Handle for one listener on a :class:`ChangeBus`."""

    def __init__(
        self,
        bus: ChangeBus,
        on_key: Callable[[str], None],
        key_filter: KeyFilter,
        on_done: Callable[[], None] | None,
    ) -> None:
        self._bus = bus
        self._on_key = on_key
        self._filter = key_filter
        self._on_done = on_done
        self._pause_count = 0
        self._pending: str | None = None
        self._active = True

    @property
    def key_filter(self) -> KeyFilter:
        return self._filter

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_paused(self) -> bool:
        return self._pause_count > 0

    def pause(self) -> None:
        if self._active:
            self._pause_count += 1

    def resume(self) -> None:
        if not self._active or self._pause_count == 0:
            return
        self._pause_count -= 1
        if self._pause_count == 0 and self._pending is not None:
            key, self._pending = self._pending, None
            try:
                self._on_key(key)
            except Exception:
                _logger.warning("Change listener failed for key %r on resume", key, exc_info=True)

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._pending = None
        self._bus._detach(self)

    def _deliver(self, key: str) -> None:
        if not self._active or not self._filter.matches(key):
            return
        if self._pause_count:
            self._pending = key
            return
        self._on_key(key)

    def _finish(self) -> None:
        if not self._active:
            return
        self._active = False
        self._pending = None
        if self._on_done is not None:
            self._on_done()


class ChangeBus:
    """Multi-subscriber broadcast of changed keys.

    Usage::

        bus = ChangeBus()
        sub = bus.listen(print, key_filter=ByKey("volume"))
        bus.publish("volume")  # prints "volume"
        sub.cancel()
    """

    def __init__(self) -> None:
        self._subscriptions: list[BusSubscription] = []
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def listen(
        self,
        on_key: Callable[[str], None],
        *,
        key_filter: KeyFilter | None = None,
        on_done: Callable[[], None] | None = None,
    ) -> BusSubscription:
        """Register *on_key* for future events admitted by *key_filter*.

        On a closed bus the returned subscription is already finished and
        *on_done* has been called.
        """
        subscription = BusSubscription(self, on_key, key_filter or AllKeys(), on_done)
        if self._closed:
            subscription._finish()
            return subscription
        self._subscriptions.append(subscription)
        _logger.debug("Bus listener added (%s), %d active", subscription.key_filter, len(self._subscriptions))
        return subscription

    def publish(self, key: str) -> None:
        """Deliver *key* to every live subscription.

        A listener that raises is logged and skipped; the others still
        receive the event.

        Raises
        ------
        PreferencesClosedError
            If the bus has been closed.
        """
        if self._closed:
            raise PreferencesClosedError(f"Cannot publish {key!r}: change bus is closed")
        # Snapshot: listeners may subscribe or cancel while being notified.
        for subscription in list(self._subscriptions):
            try:
                subscription._deliver(key)
            except Exception:
                _logger.warning("Change listener failed for key %r", key, exc_info=True)

    def close(self) -> None:
        """Finish every subscription and reject further events."""
        if self._closed:
            return
        self._closed = True
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            try:
                subscription._finish()
            except Exception:
                _logger.warning("Change listener done-callback failed", exc_info=True)

    def _detach(self, subscription: BusSubscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            return
        _logger.debug("Bus listener removed (%s), %d active", subscription.key_filter, len(self._subscriptions))
