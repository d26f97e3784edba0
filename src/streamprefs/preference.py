"""Observable preferences.

A :class:`Preference` binds a key, a default value and an adapter to a
store and a :class:`~streamprefs.bus.ChangeBus`. It can be read
synchronously, written asynchronously, and observed: every subscription
first receives the current value, then each distinct value that follows a
change to its key. When nothing is stored the default value stands in.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Generic, TypeVar

from streamprefs._redact import redact_for_log
from streamprefs.adapters.base import PreferenceAdapter
from streamprefs.bus import BusSubscription, ChangeBus, KeyFilter, key_filter_for
from streamprefs.exceptions import PreferencesClosedError, PreferenceUnsupportedError
from streamprefs.stores.base import KeyValueStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Unset(enum.Enum):
    TOKEN = 0


#: Cursor value before the first emission. Never equal to a real value.
_UNSET = _Unset.TOKEN


class SubscriptionState(enum.StrEnum):
    IDLE = "idle"
    PRIMED = "primed"
    CANCELLED = "cancelled"
    DONE = "done"


class Preference(Generic[T]):
    """A single typed value persisted under ``key``.

    Usage::

        volume = prefs.get_int("volume", default_value=5)
        volume.get()             # 5
        await volume.set(8)      # True
        sub = volume.listen(print)
        async for value in volume:
            ...

    Two preferences are equal when they are of the same class and share a
    key; the default value and adapter play no part.

    Instances are normally created by
    :class:`~streamprefs.preferences.StreamingPreferences`.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str | None,
        default_value: T,
        adapter: PreferenceAdapter[T],
        bus: ChangeBus,
    ) -> None:
        self._store = store
        self._key = key
        self._default_value = default_value
        self._adapter = adapter
        self._bus = bus
        self._key_filter = key_filter_for(key)

    @property
    def key(self) -> str | None:
        """Store key, or ``None`` for the read-only key set preference."""
        return self._key

    @property
    def default_value(self) -> T:
        """Value observed while nothing is stored under :attr:`key`."""
        return self._default_value

    @property
    def key_filter(self) -> KeyFilter:
        return self._key_filter

    def get(self) -> T:
        """Return the stored value, or :attr:`default_value` if there is none."""
        value = self._adapter.get_value(self._store, self._key)  # type: ignore[arg-type]
        return self._default_value if value is None else value

    def set(self, value: T) -> Awaitable[bool]:
        """Store *value* and notify every listener of this key.

        Listeners are notified even when the store reports failure, so they
        always re-read what actually got persisted.

        Returns
        -------
        Awaitable[bool]
            Resolves to the store's success flag.

        Raises
        ------
        PreferenceUnsupportedError
            Immediately, for the key-less preference.
        PreferencesClosedError
            Immediately, once the change bus is closed. The store is not
            touched.
        """
        key = self._require_key("set")
        _logger.debug(
            "Setting %r -> %r",
            key,
            redact_for_log(value, sensitive=self._adapter.sensitive),
        )
        return self._update_and_notify(key, lambda: self._adapter.set_value(self._store, key, value))

    def clear(self) -> Awaitable[bool]:
        """Remove the stored value; listeners then observe :attr:`default_value`.

        Raises
        ------
        PreferenceUnsupportedError
            Immediately, for the key-less preference.
        PreferencesClosedError
            Immediately, once the change bus is closed.
        """
        key = self._require_key("clear")
        _logger.debug("Clearing %r", key)
        return self._update_and_notify(key, lambda: self._store.remove(key))

    def listen(
        self,
        on_value: Callable[[T], None],
        *,
        on_error: Callable[[Exception], None] | None = None,
        on_done: Callable[[], None] | None = None,
    ) -> PreferenceSubscription[T]:
        """Subscribe to value changes.

        *on_value* is called with the current value before this method
        returns, then once per distinct value after each change.

        Errors raised while reading the initial value propagate from here;
        later read errors go to *on_error*. *on_done* runs when the change
        bus is closed.
        """
        subscription = PreferenceSubscription(self, on_value, on_error=on_error, on_done=on_done)
        subscription._start()
        return subscription

    def stream(self) -> PreferenceStream[T]:
        """Return an async iterator over this preference's values.

        The subscription starts immediately, so the first value is the one
        current at the time of this call.
        """
        return PreferenceStream(self)

    async def __aiter__(self) -> AsyncIterator[T]:
        # The stream is closed when the loop exits, including on break.
        async with self.stream() as values:
            async for value in values:
                yield value

    def _require_key(self, operation: str) -> str:
        if self._key is None:
            raise PreferenceUnsupportedError(f"{operation}() not supported for a preference without a key.")
        if self._bus.is_closed:
            raise PreferencesClosedError(f"{operation}() called on {self._key!r} after the change bus was closed")
        return self._key

    async def _update_and_notify(self, key: str, operation: Callable[[], Awaitable[bool]]) -> bool:
        try:
            is_successful = await operation()
        finally:
            if self._bus.is_closed:
                _logger.debug("Bus closed during update of %r; change not published", key)
            else:
                self._bus.publish(key)
        if not is_successful:
            _logger.debug("Store reported failure for %r", key)
        return is_successful

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Preference) or type(self) is not type(other):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(key={self._key!r}, "
            f"default_value={redact_for_log(self._default_value, sensitive=self._adapter.sensitive)!r}, "
            f"adapter={self._adapter!r})"
        )


class PreferenceSubscription(Generic[T]):
    """One consumer of a preference's values.

    Holds the cursor (the last value emitted) and a handle on the change
    bus. Lifecycle: ``IDLE`` until started, ``PRIMED`` once the current
    value has been emitted, then ``CANCELLED`` or ``DONE``. A cancelled
    subscription is never revived; listen again for a fresh one.
    """

    def __init__(
        self,
        preference: Preference[T],
        on_value: Callable[[T], None],
        *,
        on_error: Callable[[Exception], None] | None = None,
        on_done: Callable[[], None] | None = None,
    ) -> None:
        self._preference = preference
        self._on_value = on_value
        self._on_error = on_error
        self._on_done = on_done
        self._state = SubscriptionState.IDLE
        self._last_value: T | _Unset = _UNSET
        self._upstream: BusSubscription | None = None
        # Resume signals still pending, mapped to whether we created the task.
        self._resume_signals: dict[asyncio.Future[Any], bool] = {}

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state in (SubscriptionState.IDLE, SubscriptionState.PRIMED)

    @property
    def is_paused(self) -> bool:
        return self._upstream is not None and self._upstream.is_paused

    @property
    def preference(self) -> Preference[T]:
        return self._preference

    def pause(self, resume_signal: Awaitable[Any] | None = None) -> None:
        """Stop consuming changes until :meth:`resume`.

        Pauses nest. Changes made while paused are re-read once on resume.
        With *resume_signal*, resume automatically when it completes.
        """
        if self._upstream is None or not self.is_active:
            return
        self._upstream.pause()
        if resume_signal is not None:
            future = asyncio.ensure_future(resume_signal)
            self._resume_signals[future] = future is not resume_signal
            future.add_done_callback(self._on_resume_signal)

    def resume(self) -> None:
        if self._upstream is not None and self.is_active:
            self._upstream.resume()

    def cancel(self) -> None:
        """Stop delivery immediately and release the bus subscription."""
        if not self.is_active:
            return
        self._state = SubscriptionState.CANCELLED
        self._last_value = _UNSET
        self._drop_resume_signals()
        upstream, self._upstream = self._upstream, None
        if upstream is not None:
            upstream.cancel()
        _logger.debug("Subscription to %r cancelled", self._preference.key)

    def _on_resume_signal(self, future: asyncio.Future[Any]) -> None:
        self._resume_signals.pop(future, None)
        if not future.cancelled() and future.exception() is not None:
            _logger.debug(
                "Resume signal for %r failed; resuming anyway",
                self._preference.key,
                exc_info=future.exception(),
            )
        self.resume()

    def _drop_resume_signals(self) -> None:
        signals, self._resume_signals = self._resume_signals, {}
        for future, owned in signals.items():
            future.remove_done_callback(self._on_resume_signal)
            if owned:
                future.cancel()

    def _start(self) -> None:
        if self._state is not SubscriptionState.IDLE:
            raise RuntimeError(f"Subscription already {self._state}")
        value = self._preference.get()
        self._state = SubscriptionState.PRIMED
        self._emit_if_changed(value)
        # on_value may have cancelled us during the first emission.
        if self._state is not SubscriptionState.PRIMED:
            return
        self._upstream = self._preference._bus.listen(
            self._on_key,
            key_filter=self._preference.key_filter,
            on_done=self._on_upstream_done,
        )
        _logger.debug("Subscribed to %r", self._preference.key)

    def _on_key(self, _key: str) -> None:
        if self._state is not SubscriptionState.PRIMED:
            return
        try:
            value = self._preference.get()
        except Exception as exc:
            if self._on_error is None:
                raise
            self._on_error(exc)
            return
        # The read may have triggered a cancel via a re-entrant callback.
        if self._state is SubscriptionState.PRIMED:
            self._emit_if_changed(value)

    def _emit_if_changed(self, value: T) -> None:
        if self._last_value is not _UNSET and value == self._last_value:
            return
        self._last_value = value
        self._on_value(value)

    def _on_upstream_done(self) -> None:
        if not self.is_active:
            return
        self._state = SubscriptionState.DONE
        self._last_value = _UNSET
        self._upstream = None
        self._drop_resume_signals()
        if self._on_done is not None:
            self._on_done()


class _StreamDone:
    pass


_STREAM_DONE = _StreamDone()


class PreferenceStream(Generic[T]):
    """Async iterator over a preference's values.

    Each stream owns its own subscription and queue, so a slow consumer
    only delays itself. Use it as an async context manager, or call
    :meth:`aclose`, to cancel the subscription when done early.
    """

    def __init__(self, preference: Preference[T]) -> None:
        self._queue: asyncio.Queue[T | BaseException | _StreamDone] = asyncio.Queue()
        self._finished = False
        self._subscription = preference.listen(
            self._queue.put_nowait,
            on_error=self._queue.put_nowait,
            on_done=lambda: self._queue.put_nowait(_STREAM_DONE),
        )

    @property
    def subscription(self) -> PreferenceSubscription[T]:
        return self._subscription

    def __aiter__(self) -> PreferenceStream[T]:
        return self

    async def __anext__(self) -> T:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if isinstance(item, _StreamDone):
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def aclose(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._subscription.cancel()
        # Wake a consumer blocked in __anext__.
        self._queue.put_nowait(_STREAM_DONE)

    async def __aenter__(self) -> PreferenceStream[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
