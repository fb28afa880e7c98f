from __future__ import annotations

"""
Glyph width helpers shared by the wrapper, the layout engine and the painter.
"""

import functools
import unicodedata

from wcwidth import wcwidth


_ZERO_WIDTH = {
    "\u200b",  # ZERO WIDTH SPACE
    "\u200c",  # ZERO WIDTH NON-JOINER
    "\u200d",  # ZERO WIDTH JOINER
    "\u200e",  # LEFT-TO-RIGHT MARK
    "\u200f",  # RIGHT-TO-LEFT MARK
    "\ufeff",  # ZERO WIDTH NO-BREAK SPACE (BOM)
    "\ufe0e",  # VARIATION SELECTOR-15
    "\ufe0f",  # VARIATION SELECTOR-16
}


def _is_zero_width(ch: str) -> bool:
    if ch in _ZERO_WIDTH:
        return True
    # Cf includes many format/zero-width chars
    return unicodedata.category(ch) == "Cf" or unicodedata.combining(ch) != 0


@functools.lru_cache(maxsize=4096)
def char_width(ch: str) -> int:
    """Display columns for a single code point: 0, 1 or 2."""
    if unicodedata.category(ch) == "Cc":
        # Control characters (NUL included) are drawn as one cell
        return 1
    if _is_zero_width(ch):
        return 0
    w = wcwidth(ch)
    if w < 0:
        return 1
    return min(2, int(w))


def display_width(s: str) -> int:
    return sum(char_width(ch) for ch in (s or ""))


def truncate_to_width(s: str, width: int) -> str:
    """Trim string so its display width is <= width (Unicode-aware)."""
    s = s or ""
    if width <= 0:
        return ""
    cols = 0
    for i, ch in enumerate(s):
        cols += char_width(ch)
        if cols > width:
            # Zero-width marks already kept stay with their base glyph
            return s[:i]
    return s


def pad_to_width(s: str, width: int) -> str:
    """Pad or trim string to exactly `width` display cells (Unicode-aware)."""
    if width <= 0:
        return ""
    trimmed = truncate_to_width(s, width)
    return trimmed + " " * max(0, width - display_width(trimmed))


def center_offset(s: str, width: int) -> int:
    """X offset that centers `s` within a row of `width` cells (never negative)."""
    return max(0, (width - display_width(s)) // 2)


__all__ = [
    "char_width",
    "display_width",
    "truncate_to_width",
    "pad_to_width",
    "center_offset",
]
