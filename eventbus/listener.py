"""
Event Bus - Listener Entries
==============================
What a channel stores for every registration.

A ListenerEntry is the identity triple (event_name, callback, context).
It compares and hashes by object identity, so the entry returned from
listen() is a handle the caller can later pass to unlisten_listener().
Signature matching (used for de-duplication and unlisten) is a separate,
explicit check: matches() / same_signature().
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional

from eventbus.config import DEFAULT_CHANNEL


@dataclass(frozen=True)
class Event:
    """
    Optional event object for dispatch.

    Dispatching an Event uses its name as the event name. When no
    explicit payload is given, listeners receive the Event itself.
    """

    name: str
    target: Optional[Any] = None


# Default for dispatch payloads, so an explicit None is still delivered
NO_PAYLOAD = object()


def _same_callable(a: Callable, b: Callable) -> bool:
    if a is b:
        return True
    # obj.method builds a new bound method on every access
    if inspect.ismethod(a) and inspect.ismethod(b):
        return a.__func__ is b.__func__ and a.__self__ is b.__self__
    return False


def handler_name(callback: Callable) -> str:
    """Readable name of a callback for logs and failure reports."""
    return getattr(callback, "__qualname__", None) or repr(callback)


@dataclass(frozen=True, eq=False)
class ListenerEntry:
    """
    A stored registration on a channel.

    Fields:
        event_name: Name the entry listens to.
        callback:   Callable receiving the payload.
        context:    Receiver the registration is scoped to (or None).
                    Part of the identity only; never passed to callback.
        channel_id: Channel the entry was registered on.
    """

    event_name: str
    callback: Callable
    context: Optional[Any] = None
    channel_id: str = DEFAULT_CHANNEL

    def matches(
        self, event_name: str, callback: Callable, context: Optional[Any]
    ) -> bool:
        """Identity match on the (event_name, callback, context) triple."""
        return (
            self.event_name == event_name
            and self.context is context
            and _same_callable(self.callback, callback)
        )

    def same_signature(self, other: "ListenerEntry") -> bool:
        return self.matches(other.event_name, other.callback, other.context)

    def trigger(self, payload: Any) -> None:
        """Invoke the callback with payload as its sole argument."""
        self.callback(payload)
