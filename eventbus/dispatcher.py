"""
Event Bus - Dispatcher
========================
Runs one dispatch pass over a snapshot of a channel's listeners.

Dispatch behavior:
1. Walk the snapshot in registration order
2. Trigger each entry with the payload
3. On listener failure, apply the configured ErrorPolicy:
   - PROPAGATE: re-raise, the rest of the pass is abandoned
   - ISOLATE:   log, record, continue to the next listener

This module does NOT:
- Look up listeners (the registry snapshots them)
- Check the mute flag
- Hold any lock while listeners run

It only delivers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from eventbus.config import ErrorPolicy
from eventbus.listener import ListenerEntry, handler_name

logger = logging.getLogger("eventbus.channels")


# ══════════════════════════════════════════════════════════════
# DISPATCH RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ListenerFailure:
    """One isolated listener failure."""

    handler: str
    error: str
    error_type: str

    def to_dict(self) -> dict:
        return {
            "handler": self.handler,
            "error": self.error,
            "error_type": self.error_type,
        }


@dataclass(frozen=True)
class DispatchResult:
    """
    Outcome of a dispatch pass.

    notified counts listeners that returned normally. failed and
    failures are only ever non-empty under ErrorPolicy.ISOLATE, since
    under PROPAGATE the first failure leaves dispatch by raising.
    """

    event_name: str
    channel_id: str
    notified: int = 0
    failed: int = 0
    failures: tuple[ListenerFailure, ...] = ()
    muted: bool = False

    @property
    def delivered(self) -> bool:
        return self.notified > 0

    def to_dict(self) -> dict:
        return {
            "event_name": self.event_name,
            "channel_id": self.channel_id,
            "notified": self.notified,
            "failed": self.failed,
            "failures": [f.to_dict() for f in self.failures],
            "muted": self.muted,
        }


# ══════════════════════════════════════════════════════════════
# DELIVERY
# ══════════════════════════════════════════════════════════════

def deliver(
    entries: Sequence[ListenerEntry],
    payload: Any,
    *,
    event_name: str,
    channel_id: str,
    policy: ErrorPolicy = ErrorPolicy.PROPAGATE,
) -> DispatchResult:
    """
    Trigger every entry in order with payload.

    Args:
        entries:    Snapshot of the listeners to run. Never the live list.
        payload:    Passed untouched to each listener.
        event_name: For reporting.
        channel_id: For reporting.
        policy:     Listener failure handling.

    Raises:
        Whatever a listener raises, when policy is PROPAGATE.
    """
    notified = 0
    failures: list[ListenerFailure] = []

    for entry in entries:
        try:
            entry.trigger(payload)
        except Exception as exc:
            if policy is ErrorPolicy.PROPAGATE:
                raise

            name = handler_name(entry.callback)
            failures.append(
                ListenerFailure(
                    handler=name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            )
            logger.error(
                f"Listener failed: {name} for '{event_name}' "
                f"(channel: {channel_id}): {exc}",
                exc_info=True,
            )
            continue

        notified += 1

    logger.debug(
        f"Dispatch complete: '{event_name}' (channel: {channel_id}) - "
        f"{notified} notified, {len(failures)} failed"
    )

    return DispatchResult(
        event_name=event_name,
        channel_id=channel_id,
        notified=notified,
        failed=len(failures),
        failures=tuple(failures),
    )
