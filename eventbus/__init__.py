"""
Event Bus - Public API
========================
In-process publish/subscribe with isolated channels.
Publishers and listeners only share an event name.
"""

from eventbus.config import DEFAULT_CHANNEL, BusConfig, ErrorPolicy
from eventbus.dispatcher import DispatchResult, ListenerFailure
from eventbus.errors import (
    ChannelAlreadyExists,
    ChannelNotFound,
    EventBusError,
    InvalidChannelId,
    InvalidEventName,
    InvalidListenerError,
)
from eventbus.listener import NO_PAYLOAD, Event, ListenerEntry
from eventbus.registry import ListenerRegistry
from eventbus.router import EventRouter

__all__ = [
    "DEFAULT_CHANNEL",
    "BusConfig",
    "ErrorPolicy",
    "NO_PAYLOAD",
    "Event",
    "ListenerEntry",
    "ListenerRegistry",
    "EventRouter",
    "DispatchResult",
    "ListenerFailure",
    "EventBusError",
    "ChannelNotFound",
    "ChannelAlreadyExists",
    "InvalidChannelId",
    "InvalidEventName",
    "InvalidListenerError",
]
