# -----------------------------
# matchmaking.py
# -----------------------------
from __future__ import annotations
import logging
from typing import Callable, Dict, Iterator, Optional

from events import PARTNER_DISCONNECTED, PARTNER_FOUND, WAITING, Effect, Effects

logger = logging.getLogger(__name__)

IsLive = Callable[[str], bool]


class WaitingPool:
    """Insertion-ordered set of connections looking for a partner (oldest first)."""

    def __init__(self, is_live: IsLive):
        self._is_live = is_live
        self._ids: Dict[str, None] = {}

    def enqueue(self, conn_id: str) -> None:
        self._ids.setdefault(conn_id, None)

    def remove(self, conn_id: str) -> bool:
        if conn_id not in self._ids:
            return False
        del self._ids[conn_id]
        return True

    def take_next_eligible(self, excluding: str) -> Optional[str]:
        """Pop the longest-waiting live candidate other than ``excluding``.

        Stale (no longer live) entries met during the scan are discarded.
        """
        for candidate in list(self._ids):
            if not self._is_live(candidate):
                del self._ids[candidate]
                logger.debug("Dropped stale pool entry %s", candidate)
                continue
            if candidate == excluding:
                continue
            del self._ids[candidate]
            return candidate
        return None

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))


class PairingTable:
    """Symmetric 1:1 map of active sessions."""

    def __init__(self):
        self._partners: Dict[str, str] = {}

    def pair(self, a: str, b: str) -> None:
        if a == b:
            raise ValueError("cannot pair a connection with itself")
        if a in self._partners or b in self._partners:
            raise ValueError("connection already paired")
        self._partners[a] = b
        self._partners[b] = a

    def unpair(self, conn_id: str) -> Optional[str]:
        """Remove both directions of ``conn_id``'s session; returns the former partner."""
        partner = self._partners.pop(conn_id, None)
        if partner is not None:
            self._partners.pop(partner, None)
        return partner

    def partner_of(self, conn_id: str) -> Optional[str]:
        return self._partners.get(conn_id)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._partners

    def __len__(self) -> int:
        """Number of active pairs."""
        return len(self._partners) // 2


class Matchmaker:
    """Owns the waiting pool and the pairing table.

    Every method runs to completion without awaiting, so on a single event
    loop the pool and the table are never observed half-updated.
    """

    def __init__(self, is_live: IsLive):
        self.is_live = is_live
        self.pool = WaitingPool(is_live)
        self.pairs = PairingTable()

    def request_match(self, conn_id: str) -> Effects:
        if conn_id in self.pairs or conn_id in self.pool:
            logger.debug("Ignored duplicate match request from %s", conn_id)
            return []
        other = self.pool.take_next_eligible(excluding=conn_id)
        if other is None:
            self.pool.enqueue(conn_id)
            return [Effect(conn_id, WAITING)]
        self.pairs.pair(conn_id, other)
        logger.info("Paired %s with %s", conn_id, other)
        return [Effect(conn_id, PARTNER_FOUND), Effect(other, PARTNER_FOUND)]

    def unpair(self, conn_id: str, notify: bool = True) -> Effects:
        partner = self.pairs.unpair(conn_id)
        if partner is None:
            return []
        logger.info("Unpaired %s from %s", conn_id, partner)
        if notify and self.is_live(partner):
            return [Effect(partner, PARTNER_DISCONNECTED)]
        return []

    def cancel_waiting(self, conn_id: str) -> None:
        self.pool.remove(conn_id)

    def partner_of(self, conn_id: str) -> Optional[str]:
        return self.pairs.partner_of(conn_id)
