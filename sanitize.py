# -----------------------------
# sanitize.py
# -----------------------------
from __future__ import annotations
from typing import Callable, Iterable, Optional

from better_profanity import Profanity

Sanitizer = Callable[[str], str]


class ProfanitySanitizer:
    """Masks profanity with asterisks. Best effort; callers must tolerate failures."""

    def __init__(self, extra_words: Optional[Iterable[str]] = None, censor_char: str = "*"):
        self._censor_char = censor_char
        self._filter = Profanity()
        self._filter.load_censor_words()
        if extra_words:
            self._filter.add_censor_words(list(extra_words))

    def __call__(self, text: str) -> str:
        return self._filter.censor(text, self._censor_char)


def passthrough(text: str) -> str:
    return text


def build_sanitizer(enabled: bool = True) -> Sanitizer:
    return ProfanitySanitizer() if enabled else passthrough
