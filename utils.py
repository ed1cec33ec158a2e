
from __future__ import annotations
import logging, sys, uuid

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

def secure_uuid() -> str:
    """Generate a cryptographically strong UUID4 string."""
    return str(uuid.uuid4())

def new_connection_id() -> str:
    """Opaque identity for a freshly accepted connection."""
    return f"c-{secure_uuid()}"

def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the root logger; repeated calls only update the level."""
    root = logging.getLogger()
    root.setLevel(level)
    if any(getattr(h, "_chat_handler", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._chat_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
