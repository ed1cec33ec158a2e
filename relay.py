# -----------------------------
# relay.py
# -----------------------------
from __future__ import annotations
import logging
from typing import Any, Callable, Optional

from events import MESSAGE, RATE_LIMITED, Effect, Effects
from matchmaking import PairingTable
from ratelimit import RateLimiter, RateWindow
from sanitize import Sanitizer

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 500


def clean_text(raw: Any, max_length: int = MAX_MESSAGE_LENGTH) -> Optional[str]:
    """Trim and truncate ``raw``; None if it is not text or is blank."""
    if not isinstance(raw, str):
        return None
    text = raw.strip()[:max_length]
    return text or None


class MessageRelay:
    def __init__(
        self,
        pairs: PairingTable,
        limiter: RateLimiter,
        sanitize: Sanitizer,
        is_live: Callable[[str], bool],
        max_length: int = MAX_MESSAGE_LENGTH,
    ):
        self.pairs = pairs
        self.limiter = limiter
        self.sanitize = sanitize
        self.is_live = is_live
        self.max_length = max_length

    def send_message(self, sender: str, raw: Any, window: RateWindow) -> Effects:
        text = clean_text(raw, self.max_length)
        if text is None:
            logger.debug("Dropped invalid message from %s", sender)
            return []
        partner = self.pairs.partner_of(sender)
        if partner is None:
            logger.debug("Dropped message from unpaired %s", sender)
            return []

        decision = self.limiter.attempt_send(window)
        if not decision.allowed:
            logger.debug("Rate limited %s (count=%d)", sender, window.count)
            return [Effect(sender, RATE_LIMITED, {"retryAfter": decision.retry_after_ms})]

        text = self._sanitized(text)
        effects = []
        if self.is_live(partner):
            effects.append(Effect(partner, MESSAGE, {"text": text, "self": False}))
        effects.append(Effect(sender, MESSAGE, {"text": text, "self": True}))
        return effects

    def _sanitized(self, text: str) -> str:
        # never block delivery on a filter failure
        try:
            cleaned = self.sanitize(text)
        except Exception:
            logger.warning("Sanitizer failed; delivering unfiltered text", exc_info=True)
            return text
        if not isinstance(cleaned, str):
            logger.warning("Sanitizer returned %s; delivering unfiltered text", type(cleaned).__name__)
            return text
        return cleaned
