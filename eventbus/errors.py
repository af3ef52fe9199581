"""
Event Bus - Errors
====================
Error types for channel routing and listener registration.

Listener callbacks are never wrapped in these types. A failure inside a
callback surfaces as the callback's own exception (PROPAGATE policy) or
is recorded on the DispatchResult (ISOLATE policy).
"""


class EventBusError(Exception):
    """Base error for Event Bus operations."""
    pass


class ChannelNotFound(EventBusError):
    """Referenced channel does not exist."""

    def __init__(self, channel_id: str):
        self.channel_id = channel_id
        super().__init__(
            f"Channel '{channel_id}' does not exist. "
            f"Create it with channel() or create_channel() first."
        )


class ChannelAlreadyExists(EventBusError):
    """Strict creation attempted on a channel id that is taken."""

    def __init__(self, channel_id: str):
        self.channel_id = channel_id
        super().__init__(f"Channel '{channel_id}' already exists.")


class InvalidChannelId(EventBusError):
    """Channel id is not a non-empty string."""

    def __init__(self, channel_id):
        self.channel_id = channel_id
        super().__init__(
            f"Channel id must be a non-empty string, got {channel_id!r}."
        )


class InvalidEventName(EventBusError):
    """Event name is not a non-empty string."""

    def __init__(self, event_name):
        self.event_name = event_name
        super().__init__(
            f"Event name must be a non-empty string, got {event_name!r}."
        )


class InvalidListenerError(EventBusError):
    """Listener callback is not callable."""

    def __init__(self, callback):
        self.callback = callback
        super().__init__(
            f"Listener callback must be callable, got {type(callback).__name__}."
        )
