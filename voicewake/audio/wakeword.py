from __future__ import annotations

from typing import Iterable


def matches(text: str, triggers: Iterable[str]) -> bool:
    """True when any trigger phrase appears in ``text``, ignoring case."""
    if not text:
        return False
    lowered = text.lower()
    return any(t and t.lower() in lowered for t in triggers)
