"""
Event Bus - Channel Router
============================
Owns every channel and routes listen / unlisten / dispatch to it.

Channel policy:
- The default channel exists from construction, under DEFAULT_CHANNEL
- channel(id) is get-or-create and the normal way to open a channel
- create_channel(id) is strict and refuses ids that are taken
- listen / dispatch / mute on a missing channel raise ChannelNotFound
- unlisten on a missing channel returns False

Destroying a channel drops all of its listeners. The default channel is
not protected; once destroyed, calls that omit channel_id fail like
calls to any other missing channel until channel(DEFAULT_CHANNEL)
re-creates it.
"""

from __future__ import annotations

import logging
import uuid
from threading import Lock
from typing import Any, Callable, Optional, Union

from eventbus.config import DEFAULT_CHANNEL, BusConfig
from eventbus.dispatcher import DispatchResult
from eventbus.errors import (
    ChannelAlreadyExists,
    ChannelNotFound,
    InvalidChannelId,
)
from eventbus.listener import NO_PAYLOAD, Event, ListenerEntry
from eventbus.registry import ListenerRegistry

logger = logging.getLogger("eventbus.router")


def _generate_channel_id() -> str:
    return f"channel-{uuid.uuid4().hex}"


def _validate_channel_id(channel_id: str) -> None:
    if not channel_id or not isinstance(channel_id, str):
        raise InvalidChannelId(channel_id)


class EventRouter:
    """
    Channel-aware event bus.

    Usage:
        bus = EventRouter()

        # Default channel
        bus.listen("ready", on_ready)
        bus.dispatch("ready", payload)

        # Dedicated channel
        audio = bus.channel("audio")
        audio.listen("volume", on_volume)
        bus.dispatch("volume", 0.5, channel_id="audio")

        bus.destroy_channel("audio")
    """

    def __init__(self, config: Optional[BusConfig] = None):
        self._config = config or BusConfig()
        self._channels: dict[str, ListenerRegistry] = {
            DEFAULT_CHANNEL: ListenerRegistry(DEFAULT_CHANNEL, self._config)
        }
        self._lock = Lock()

    @property
    def config(self) -> BusConfig:
        return self._config

    # ══════════════════════════════════════════════════════════
    # CHANNEL LIFECYCLE
    # ══════════════════════════════════════════════════════════

    def channel(self, channel_id: Optional[str] = None) -> ListenerRegistry:
        """
        Return the channel for channel_id, creating it if absent.

        Omitting channel_id opens a new channel under a generated,
        process-unique id (read it back from .channel_id).
        """
        if channel_id is None:
            channel_id = _generate_channel_id()
        _validate_channel_id(channel_id)

        with self._lock:
            registry = self._channels.get(channel_id)
            if registry is not None:
                return registry

            registry = ListenerRegistry(channel_id, self._config)
            self._channels[channel_id] = registry

        logger.info(f"Channel created: '{channel_id}'")
        return registry

    def create_channel(
        self, channel_id: Optional[str] = None
    ) -> ListenerRegistry:
        """
        Create a channel that must not exist yet.

        Raises:
            ChannelAlreadyExists: channel_id is taken (including
                                  DEFAULT_CHANNEL while it exists).
            InvalidChannelId:     channel_id is not a non-empty string.
        """
        if channel_id is None:
            channel_id = _generate_channel_id()
        _validate_channel_id(channel_id)

        with self._lock:
            if channel_id in self._channels:
                raise ChannelAlreadyExists(channel_id)

            registry = ListenerRegistry(channel_id, self._config)
            self._channels[channel_id] = registry

        logger.info(f"Channel created: '{channel_id}'")
        return registry

    def get_channel(self, channel_id: str) -> Optional[ListenerRegistry]:
        """Return the channel for channel_id, or None."""
        with self._lock:
            return self._channels.get(channel_id)

    def has_channel(self, channel_id: str) -> bool:
        with self._lock:
            return channel_id in self._channels

    def channel_ids(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._channels.keys())

    def destroy_channel(self, channel_id: str) -> bool:
        """
        Remove a channel and every listener on it.

        Returns False when the channel does not exist.
        """
        with self._lock:
            registry = self._channels.pop(channel_id, None)

        if registry is None:
            return False

        registry.clear()
        logger.info(f"Channel destroyed: '{channel_id}'")
        return True

    def _require(self, channel_id: Optional[str]) -> ListenerRegistry:
        if channel_id is None:
            channel_id = DEFAULT_CHANNEL

        with self._lock:
            registry = self._channels.get(channel_id)

        if registry is None:
            raise ChannelNotFound(channel_id)
        return registry

    # ══════════════════════════════════════════════════════════
    # ROUTED OPERATIONS
    # ══════════════════════════════════════════════════════════

    def listen(
        self,
        event_name: str,
        callback: Callable[[Any], None],
        context: Optional[Any] = None,
        channel_id: Optional[str] = None,
    ) -> ListenerEntry:
        """
        Register a listener on channel_id (default channel if omitted).

        Raises:
            ChannelNotFound: the channel does not exist. listen never
                             creates channels.
        """
        return self._require(channel_id).listen(event_name, callback, context)

    def unlisten(
        self,
        event_name: str,
        callback: Callable[[Any], None],
        context: Optional[Any] = None,
        channel_id: Optional[str] = None,
    ) -> bool:
        """
        Remove a listener by signature.

        Returns False (not an error) if the channel or listener is gone.
        """
        registry = self.get_channel(
            DEFAULT_CHANNEL if channel_id is None else channel_id
        )
        if registry is None:
            return False
        return registry.unlisten(event_name, callback, context)

    def unlisten_listener(
        self, entry: ListenerEntry, channel_id: Optional[str] = None
    ) -> bool:
        """
        Remove a listener by the handle listen() returned.

        The handle knows its own channel; channel_id only needs passing
        to restrict removal to that channel. Returns False when the
        channel is gone or the handle belongs to another channel.
        """
        if channel_id is None:
            channel_id = entry.channel_id
        elif channel_id != entry.channel_id:
            return False

        registry = self.get_channel(channel_id)
        if registry is None:
            return False
        return registry.unlisten_listener(entry)

    def dispatch(
        self,
        event: Union[str, Event],
        payload: Any = NO_PAYLOAD,
        channel_id: Optional[str] = None,
    ) -> DispatchResult:
        """
        Dispatch on channel_id (default channel if omitted).

        Raises:
            ChannelNotFound: the channel does not exist.
        """
        return self._require(channel_id).dispatch(event, payload)

    def mute(self, channel_id: Optional[str] = None) -> None:
        self._require(channel_id).mute()

    def unmute(self, channel_id: Optional[str] = None) -> None:
        self._require(channel_id).unmute()

    def __repr__(self) -> str:
        return f"EventRouter(channels={len(self._channels)})"
