from __future__ import annotations

from bidi.algorithm import get_display
import arabic_reshaper


def _is_rtl(text: str) -> bool:
    # Hebrew and Arabic blocks
    return any("\u0590" <= c <= "\u06ff" for c in text)


def printable(text: str) -> str:
    """Reorder Hebrew/Arabic text so terminals show it the right way round."""
    if not text or not _is_rtl(text):
        return text
    return get_display(arabic_reshaper.reshape(text))
