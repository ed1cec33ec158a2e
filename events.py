# -----------------------------
# events.py
# -----------------------------
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List

# outbound (core -> connection)
WAITING = "waiting"
PARTNER_FOUND = "partner-found"
MESSAGE = "message"
PARTNER_DISCONNECTED = "partner-disconnected"
RATE_LIMITED = "rate-limited"
IDLE = "idle"

# inbound (connection -> core)
REQUEST_MATCH = "request-match"
SEND_MESSAGE = "send-message"
SKIP = "skip"
LEAVE = "leave"

INBOUND_ALIASES = {"find-partner": REQUEST_MATCH, "leave-chat": LEAVE}


@dataclass(frozen=True)
class Effect:
    """A notification the transport should deliver to ``recipient``."""
    recipient: str
    event: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.event, **self.payload}


Effects = List[Effect]
