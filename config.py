# -----------------------------
# config.py
# -----------------------------
from __future__ import annotations
import os
from dataclasses import dataclass

@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    max_message_length: int = 500
    message_rate_limit: int = 10       # max messages per window per connection
    message_rate_window_ms: int = 5000
    max_payload_bytes: int = 10_000    # 10 KB, larger frames close the socket
    http_rate_limit: str = "200 per 15 minutes"
    static_dir: str = "static"
    log_level: str = "INFO"
    sanitize_enabled: bool = True

def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value

def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")

def load_settings() -> Settings:
    """Read settings from the environment; unset variables keep their defaults."""
    return Settings(
        host=os.environ.get("HOST", Settings.host),
        port=_int_env("PORT", Settings.port),
        max_message_length=_int_env("MAX_MESSAGE_LENGTH", Settings.max_message_length),
        message_rate_limit=_int_env("MESSAGE_RATE_LIMIT", Settings.message_rate_limit),
        message_rate_window_ms=_int_env("MESSAGE_RATE_WINDOW_MS", Settings.message_rate_window_ms),
        max_payload_bytes=_int_env("MAX_PAYLOAD_BYTES", Settings.max_payload_bytes),
        http_rate_limit=os.environ.get("HTTP_RATE_LIMIT", Settings.http_rate_limit),
        static_dir=os.environ.get("STATIC_DIR", Settings.static_dir),
        log_level=os.environ.get("LOG_LEVEL", Settings.log_level).upper(),
        sanitize_enabled=_bool_env("SANITIZE_ENABLED", Settings.sanitize_enabled),
    )
