"""Keysmash: terminal typing practice.

Core modules (no curses, no file I/O):
`ui_utils` (glyph widths), `text_wrap`, `session`, `metrics`, `layout`.
Collaborators: `corpus` (text provider), `config`, `screens`, `cursor`, `app`.
"""

__version__ = "0.3.0"

__all__ = [
    "ui_utils",
    "text_wrap",
    "session",
    "metrics",
    "layout",
    "corpus",
    "config",
    "error_codes",
    "screens",
    "cursor",
    "app",
]
