from __future__ import annotations

"""
Builders for the text shown around a typing session.

They return plain strings (or (row, text) pairs) so the curses painter only
has to place them; nothing here touches the terminal.
"""

from typing import Iterable, List, Optional, Tuple

from .error_codes import ERROR_TITLES, VIEWPORT_TOO_SMALL
from .metrics import LiveStats
from .session import SessionResult
from .ui_utils import display_width, pad_to_width, truncate_to_width


APP_TITLE = "KEYSMASH"
FULL_TITLE = "KEYSMASH - TYPING TEST"
HELP_TEXT = "ESC to quit"
RESULT_OPTIONS = "R: Retry  N: New Test  Q: Quit"
TOO_SMALL = ERROR_TITLES[VIEWPORT_TOO_SMALL]
REFERENCE_TITLE = "Text to type:"
INPUT_TITLE = "Your typing:"


def spaced(entries: Iterable[Tuple[int, str]]) -> List[str]:
    """Lay out (offset, text) pairs as a block of lines, blank rows in between."""
    items = sorted(entries)
    if not items:
        return []
    base = items[0][0]
    lines: List[str] = [""] * (items[-1][0] - base + 1)
    for offset, text in items:
        lines[offset - base] = text
    return lines


def welcome_lines() -> List[str]:
    return spaced([
        (-3, APP_TITLE),
        (-1, "TYPING TEST"),
        (3, "Press any key to start, ESC to quit"),
    ])


def error_lines(message: str) -> List[str]:
    return spaced([
        (-4, "ERROR"),
        (0, message),
        (4, "Press any key to retry, ESC to quit"),
    ])


def results_lines(result: SessionResult) -> List[str]:
    return spaced([
        (-8, "TEST COMPLETE"),
        (-6, f"Source: {result.source_label}"),
        (-3, f"WPM: {result.wpm:.1f}"),
        (-1, f"Accuracy: {result.accuracy:.1f}%"),
        (1, f"Time: {result.elapsed:.1f}s"),
        (3, f"Characters: {len(result.user_input)} (Errors: {result.error_count})"),
        (6, RESULT_OPTIONS),
    ])


def source_line(label: str) -> str:
    return f"Source: {label}"


def stats_line(stats: LiveStats, compact: bool = False) -> str:
    if compact:
        return f"WPM: {stats.wpm:.1f} | Err: {stats.errors}"
    return f"Time: {stats.elapsed:.1f}s | WPM: {stats.wpm:.1f} | Errors: {stats.errors}"


def percent_line(percent: int) -> str:
    return f"Progress: {percent}%"


def progress_bar(percent: int, width: int, max_width: int = 60) -> str:
    """`[====    ] 42%`, or just `42%` when fewer than 10 cells are available."""
    percent = max(0, min(100, int(percent)))
    bar_w = min(max_width, width)
    if bar_w < 10:
        return f"{percent}%"
    filled = bar_w * percent // 100
    return f"[{pad_to_width('=' * filled, bar_w)}] {percent}%"


def minimal_lines(width: int, height: int, stats: Optional[LiveStats] = None) -> List[Tuple[int, str]]:
    """Rows for the status-only screen used when the viewport is too small."""
    rows: List[Tuple[int, str]] = []
    if height > 0:
        rows.append((0, truncate_to_width(APP_TITLE, width)))
    if height > 2 and width > 15:
        rows.append((2, TOO_SMALL))
    if height > 4 and stats is not None:
        text = f"WPM:{stats.wpm:.1f}"
        if width > display_width(text) + 2:
            rows.append((4, text))
    if height > 6 and width > 15:
        rows.append((6, HELP_TEXT))
    return rows


__all__ = [
    "APP_TITLE",
    "FULL_TITLE",
    "HELP_TEXT",
    "RESULT_OPTIONS",
    "TOO_SMALL",
    "REFERENCE_TITLE",
    "INPUT_TITLE",
    "spaced",
    "welcome_lines",
    "error_lines",
    "results_lines",
    "source_line",
    "stats_line",
    "percent_line",
    "progress_bar",
    "minimal_lines",
]
