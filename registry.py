# -----------------------------
# registry.py
# -----------------------------
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional

from ratelimit import RateWindow


class ConnectionState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    PAIRED = "paired"


@dataclass
class Connection:
    id: str
    rate: RateWindow = field(default_factory=RateWindow)


class ConnectionRegistry:
    """Connections known to the core, indexed by id. Liveness is membership."""

    def __init__(self):
        self._conns: Dict[str, Connection] = {}

    def add(self, conn_id: str) -> Connection:
        conn = self._conns.get(conn_id)
        if conn is None:
            conn = Connection(id=conn_id)
            self._conns[conn_id] = conn
        return conn

    def get(self, conn_id: str) -> Optional[Connection]:
        return self._conns.get(conn_id)

    def discard(self, conn_id: str) -> Optional[Connection]:
        return self._conns.pop(conn_id, None)

    def is_live(self, conn_id: str) -> bool:
        return conn_id in self._conns

    def __len__(self) -> int:
        return len(self._conns)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._conns))
