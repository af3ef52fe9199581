"""
Event Bus - Listener Registry
===============================
One channel's listener storage.

Maps event_name → ordered list of ListenerEntry. Registration order is
dispatch order.

Rules:
- Identical (event_name, callback, context) registrations are stored
  once unless BusConfig.allow_duplicate_listeners is set
- An event name is present only while it has listeners
- Muting suppresses delivery, never registrations
- Dispatch works on a snapshot, so listeners may listen/unlisten/
  dispatch on this registry while being invoked
- Thread-safe; the lock is never held while listeners run
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable, Optional, Union

from eventbus.config import DEFAULT_CHANNEL, BusConfig
from eventbus.dispatcher import DispatchResult, deliver
from eventbus.errors import InvalidEventName, InvalidListenerError
from eventbus.listener import NO_PAYLOAD, Event, ListenerEntry, handler_name

logger = logging.getLogger("eventbus.channels")


def _validate_event_name(event_name: str) -> None:
    if not event_name or not isinstance(event_name, str):
        raise InvalidEventName(event_name)


def resolve_event(event: Union[str, Event], payload: Any) -> tuple[str, Any]:
    """
    Split a dispatch argument into (event_name, payload).

    An Event with no explicit payload is its own payload. A plain name
    with no explicit payload delivers None.
    """
    if isinstance(event, Event):
        _validate_event_name(event.name)
        return event.name, event if payload is NO_PAYLOAD else payload

    _validate_event_name(event)
    return event, None if payload is NO_PAYLOAD else payload


class ListenerRegistry:
    """
    In-memory listener registry for a single channel.

    Usage:
        channel = ListenerRegistry("ui")

        entry = channel.listen("saved", on_saved)
        channel.dispatch("saved", {"id": 7})   # on_saved({"id": 7})

        channel.mute()
        channel.dispatch("saved")               # nothing runs
        channel.unmute()

        channel.unlisten_listener(entry)
    """

    def __init__(
        self,
        channel_id: str = DEFAULT_CHANNEL,
        config: Optional[BusConfig] = None,
    ):
        self._channel_id = channel_id
        self._config = config or BusConfig()
        self._listeners: dict[str, list[ListenerEntry]] = {}
        self._muted: bool = False
        self._lock = Lock()

    @property
    def channel_id(self) -> str:
        return self._channel_id

    @property
    def config(self) -> BusConfig:
        return self._config

    @property
    def muted(self) -> bool:
        return self._muted

    # ══════════════════════════════════════════════════════════
    # REGISTRATION
    # ══════════════════════════════════════════════════════════

    def listen(
        self,
        event_name: str,
        callback: Callable[[Any], None],
        context: Optional[Any] = None,
    ) -> ListenerEntry:
        """
        Register callback for event_name.

        Args:
            event_name: Name to listen to.
            callback:   Called with the dispatched payload.
            context:    Receiver the registration is scoped to. Part of
                        its identity; never passed to callback.

        Returns:
            The stored entry. For a repeated identical registration,
            the entry stored the first time.

        Raises:
            InvalidEventName:     event_name is not a non-empty string.
            InvalidListenerError: callback is not callable.
        """
        _validate_event_name(event_name)
        if not callable(callback):
            raise InvalidListenerError(callback)

        with self._lock:
            entries = self._listeners.setdefault(event_name, [])

            if not self._config.allow_duplicate_listeners:
                for existing in entries:
                    if existing.matches(event_name, callback, context):
                        return existing

            entry = ListenerEntry(
                event_name, callback, context, self._channel_id
            )
            entries.append(entry)

        logger.debug(
            f"Listener registered: {handler_name(callback)} → "
            f"'{event_name}' (channel: {self._channel_id})"
        )
        return entry

    def unlisten(
        self,
        event_name: str,
        callback: Callable[[Any], None],
        context: Optional[Any] = None,
    ) -> bool:
        """
        Remove the first registration matching the triple.

        Returns False (not an error) when nothing matched.
        """
        with self._lock:
            entries = self._listeners.get(event_name)
            if not entries:
                return False

            for index, entry in enumerate(entries):
                if entry.matches(event_name, callback, context):
                    del entries[index]
                    self._drop_if_empty(event_name)
                    break
            else:
                return False

        logger.debug(
            f"Listener removed: {handler_name(callback)} from "
            f"'{event_name}' (channel: {self._channel_id})"
        )
        return True

    def unlisten_listener(self, entry: ListenerEntry) -> bool:
        """Remove a previously returned entry by identity."""
        with self._lock:
            entries = self._listeners.get(entry.event_name)
            if not entries:
                return False

            for index, existing in enumerate(entries):
                if existing is entry:
                    del entries[index]
                    self._drop_if_empty(entry.event_name)
                    return True

            return False

    def clear(self) -> None:
        """Drop every registration on this channel."""
        with self._lock:
            self._listeners.clear()

    def _drop_if_empty(self, event_name: str) -> None:
        # Caller holds the lock
        if not self._listeners.get(event_name):
            self._listeners.pop(event_name, None)

    # ══════════════════════════════════════════════════════════
    # DISPATCH
    # ══════════════════════════════════════════════════════════

    def dispatch(
        self, event: Union[str, Event], payload: Any = NO_PAYLOAD
    ) -> DispatchResult:
        """
        Invoke every listener of the event, in registration order.

        No listeners, or a muted channel, is a silent no-op.

        Raises:
            InvalidEventName: event name is not a non-empty string.
            Any listener exception, under ErrorPolicy.PROPAGATE.
        """
        event_name, payload = resolve_event(event, payload)

        with self._lock:
            if self._muted:
                return DispatchResult(
                    event_name=event_name,
                    channel_id=self._channel_id,
                    muted=True,
                )
            snapshot = tuple(self._listeners.get(event_name, ()))

        if not snapshot:
            logger.debug(
                f"No listeners for '{event_name}' "
                f"(channel: {self._channel_id})"
            )
            return DispatchResult(
                event_name=event_name, channel_id=self._channel_id
            )

        return deliver(
            snapshot,
            payload,
            event_name=event_name,
            channel_id=self._channel_id,
            policy=self._config.error_policy,
        )

    def mute(self) -> None:
        """Suppress delivery. Registrations are kept."""
        with self._lock:
            self._muted = True

    def unmute(self) -> None:
        with self._lock:
            self._muted = False

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    def get_listeners(self, event_name: str) -> list[ListenerEntry]:
        """
        Snapshot of the listeners for event_name.
        Returns empty list if none (not an error).
        """
        with self._lock:
            return list(self._listeners.get(event_name, []))

    def has_listeners(self, event_name: str) -> bool:
        with self._lock:
            return bool(self._listeners.get(event_name))

    def listener_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._listeners.get(event_name, []))

    def event_names(self) -> frozenset[str]:
        """Return all event names with at least one listener."""
        with self._lock:
            return frozenset(self._listeners.keys())

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._listeners.values())

    def __repr__(self) -> str:
        return (
            f"ListenerRegistry(channel_id={self._channel_id!r}, "
            f"events={len(self._listeners)}, muted={self._muted})"
        )
