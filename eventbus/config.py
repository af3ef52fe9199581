"""
Event Bus - Configuration
===========================
Behavioural switches shared by a router and every channel it creates.

Two decisions are configurable:
- What happens when a listener raises during dispatch.
- Whether the same (event_name, callback, context) may be stored twice.

Defaults keep the strict behaviour: failures propagate to the
dispatching caller, and identical registrations are de-duplicated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ══════════════════════════════════════════════════════════════
# LISTENER ERROR POLICY
# ══════════════════════════════════════════════════════════════

class ErrorPolicy(Enum):
    """How a dispatch pass reacts to a listener exception."""
    PROPAGATE = "PROPAGATE"  # Re-raise, remaining listeners are skipped
    ISOLATE = "ISOLATE"      # Log, record, continue with next listener


# ══════════════════════════════════════════════════════════════
# BUS CONFIG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BusConfig:
    """
    Immutable bus configuration.

    Fields:
        error_policy:              Listener failure handling during dispatch.
        allow_duplicate_listeners: Store identical registrations again
                                   instead of returning the existing entry.
    """

    error_policy: ErrorPolicy = ErrorPolicy.PROPAGATE
    allow_duplicate_listeners: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.error_policy, ErrorPolicy):
            raise TypeError(
                f"error_policy must be an ErrorPolicy, "
                f"got {type(self.error_policy).__name__}."
            )

        if not isinstance(self.allow_duplicate_listeners, bool):
            raise ValueError("allow_duplicate_listeners must be a bool.")

    @property
    def isolates_failures(self) -> bool:
        return self.error_policy == ErrorPolicy.ISOLATE


# ══════════════════════════════════════════════════════════════
# RESERVED IDS
# ══════════════════════════════════════════════════════════════

# Reserved id of the channel every router starts with. Asking a router
# for this id returns the default channel rather than a new one.
DEFAULT_CHANNEL = "__default__"
