# -----------------------------
# session.py
# -----------------------------
"""Connection lifecycle: idle -> waiting -> paired, and back.

Each operation mutates the shared pool/table synchronously and returns the
notifications to send, in order. Nothing here does I/O; the transport
delivers the returned effects.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional

from events import (
    IDLE, INBOUND_ALIASES, LEAVE, REQUEST_MATCH, SEND_MESSAGE, SKIP, Effect, Effects,
)
from matchmaking import Matchmaker
from ratelimit import DEFAULT_LIMIT, DEFAULT_WINDOW_MS, RateLimiter, Scheduler
from registry import ConnectionRegistry, ConnectionState
from relay import MAX_MESSAGE_LENGTH, MessageRelay
from sanitize import Sanitizer, passthrough

logger = logging.getLogger(__name__)


class SessionController:
    def __init__(
        self,
        scheduler: Scheduler,
        sanitize: Sanitizer = passthrough,
        rate_limit: int = DEFAULT_LIMIT,
        rate_window_ms: int = DEFAULT_WINDOW_MS,
        max_message_length: int = MAX_MESSAGE_LENGTH,
    ):
        self.registry = ConnectionRegistry()
        self.matchmaker = Matchmaker(self.registry.is_live)
        self.limiter = RateLimiter(scheduler, limit=rate_limit, window_ms=rate_window_ms)
        self.relay = MessageRelay(
            self.matchmaker.pairs, self.limiter, sanitize, self.registry.is_live,
            max_length=max_message_length,
        )

    # ---------------- events ----------------

    def connect(self, conn_id: str) -> Effects:
        self.registry.add(conn_id)
        logger.info("Connected %s (%d online)", conn_id, len(self.registry))
        return []

    def request_match(self, conn_id: str) -> Effects:
        if not self.registry.is_live(conn_id):
            return []
        return self.matchmaker.request_match(conn_id)

    def send_message(self, conn_id: str, raw: Any) -> Effects:
        conn = self.registry.get(conn_id)
        if conn is None:
            return []
        return self.relay.send_message(conn_id, raw, conn.rate)

    def skip(self, conn_id: str) -> Effects:
        """Leave the current partner and look for a new one right away.

        The former partner is only notified; it is not put back in the pool.
        """
        if not self.registry.is_live(conn_id):
            return []
        effects = self.matchmaker.unpair(conn_id, notify=True)
        if effects:
            logger.info("%s skipped their partner", conn_id)
        return effects + self.matchmaker.request_match(conn_id)

    def leave(self, conn_id: str) -> Effects:
        if not self.registry.is_live(conn_id):
            return []
        effects = self.matchmaker.unpair(conn_id, notify=True)
        self.matchmaker.cancel_waiting(conn_id)
        return effects + [Effect(conn_id, IDLE)]

    def disconnect(self, conn_id: str) -> Effects:
        conn = self.registry.get(conn_id)
        if conn is None:
            return []
        self.limiter.cancel(conn.rate)
        self.matchmaker.cancel_waiting(conn_id)
        effects = self.matchmaker.unpair(conn_id, notify=True)
        self.registry.discard(conn_id)
        logger.info("Disconnected %s (%d online)", conn_id, len(self.registry))
        return effects

    def dispatch(self, conn_id: str, event: str, payload: Optional[Mapping[str, Any]] = None) -> Effects:
        """Route an inbound event name to its operation; unknown names are ignored."""
        event = INBOUND_ALIASES.get(event, event)
        if event == REQUEST_MATCH:
            return self.request_match(conn_id)
        if event == SEND_MESSAGE:
            return self.send_message(conn_id, (payload or {}).get("text"))
        if event == SKIP:
            return self.skip(conn_id)
        if event == LEAVE:
            return self.leave(conn_id)
        logger.debug("Ignored unknown event %r from %s", event, conn_id)
        return []

    # ---------------- introspection ----------------

    def state_of(self, conn_id: str) -> Optional[ConnectionState]:
        if not self.registry.is_live(conn_id):
            return None
        if conn_id in self.matchmaker.pairs:
            return ConnectionState.PAIRED
        if conn_id in self.matchmaker.pool:
            return ConnectionState.WAITING
        return ConnectionState.IDLE

    def partner_of(self, conn_id: str) -> Optional[str]:
        return self.matchmaker.partner_of(conn_id)

    def waiting_ids(self) -> List[str]:
        return list(self.matchmaker.pool)

    def stats(self) -> Dict[str, int]:
        return {
            "online": len(self.registry),
            "waiting": len(self.matchmaker.pool),
            "pairs": len(self.matchmaker.pairs),
        }
