from __future__ import annotations

import curses
import os
import sys
from typing import Mapping, Optional, Tuple


# DECSCUSR codes (CSI Ps q): blinking/steady pairs per style
_STYLE_CODES = {
    "block": (1, 2),
    "underline": (3, 4),
    "bar": (5, 6),
}


def style_code(style: str, blink: bool) -> int:
    blinking, steady = _STYLE_CODES.get((style or "").strip().lower(), _STYLE_CODES["block"])
    return blinking if blink else steady


class CursorController:
    """Places the terminal (hardware) cursor once per frame with minimal flicker.

    Usage per frame:
      ctrl.begin()
      ctrl.want(y, x)       # last call wins
      ctrl.apply(stdscr)    # once, after everything is drawn
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        env = os.environ if env is None else env
        style = env.get("KEYSMASH_CURSOR_STYLE", "block")
        blink_raw = env.get("KEYSMASH_CURSOR_BLINK")
        if blink_raw is None:
            blink = True
        else:
            blink = str(blink_raw).strip().lower() in ("1", "true", "yes", "on")
        self._style_code = style_code(style, blink)
        self._style_last: Optional[int] = None
        self._want: Tuple[int, Optional[int], Optional[int]] = (0, None, None)
        self._last_vis = 0

    @property
    def wanted(self) -> Tuple[int, Optional[int], Optional[int]]:
        return self._want

    def _apply_style(self) -> None:
        if self._style_last != self._style_code:
            sys.stdout.write(f"\x1b[{self._style_code} q")
            sys.stdout.flush()
            self._style_last = self._style_code

    def begin(self) -> None:
        self._want = (0, None, None)

    def want(self, y: Optional[int], x: Optional[int], vis: int = 1) -> None:
        if y is None or x is None:
            self._want = (0, None, None)
            return
        self._want = (max(0, int(vis)), int(y), int(x))

    def apply(self, stdscr) -> None:
        vis, y, x = self._want
        if vis > 0 and y is not None and x is not None:
            self._apply_style()
            if vis != self._last_vis:
                try:
                    curses.curs_set(2 if vis >= 2 else 1)
                except curses.error:
                    pass
            try:
                stdscr.move(y, x)
            except curses.error:
                pass
        elif self._last_vis != 0:
            try:
                curses.curs_set(0)
            except curses.error:
                pass
        self._last_vis = vis


__all__ = ["CursorController", "style_code"]
