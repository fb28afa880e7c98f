from __future__ import annotations

"""
Curses driver: welcome screen, typing session loop, results and retry.

One thread owns the screen and the session. The loop blocks on the next key,
applies it, recomputes the layout and repaints before reading the next one.
"""

import curses
import json
import locale
import logging
import logging.handlers
import os
import sys
import time
from typing import Dict, List, Mapping, Optional, Tuple

from . import screens
from .config import STYLE_ROLES, Settings, StyleSpec, env_flag, load_settings
from .corpus import TextProvider, find_texts_dir
from .cursor import CursorController
from .error_codes import TEXTS_DIR_MISSING, AppError
from .layout import LayoutResult, Viewport, compute_layout
from .metrics import INCORRECT, live_stats
from .session import (
    COMPLETED,
    KEY_BACKSPACE,
    KEY_CANCEL,
    KEY_CHAR,
    KEY_NEWLINE,
    KeyEvent,
    SessionResult,
    SessionState,
    apply_key,
    finish,
    new_session,
    reset_for_retry,
)
from .ui_utils import center_offset, display_width, truncate_to_width


LOGGER = logging.getLogger("keysmash")
KEYLOG_ENABLED = env_flag("KEYSMASH_KEYLOG")

# Style role -> curses attribute, filled by init_colors()
CP: Dict[str, int] = {role: 0 for role in STYLE_ROLES}

# Post-test choices
RETRY = "retry"
NEW_TEST = "new"
QUIT = "quit"

_ESC = "\x1b"
_BACKSPACE_CHARS = ("\x7f", "\b")
_NEWLINE_CHARS = ("\n", "\r")

USAGE = (
    "Usage: keysmash [LEVEL] [options]\n"
    "  LEVEL: DEBUG|INFO|WARNING|ERROR (sets LOG_LEVEL)\n"
    "Options:\n"
    "  --texts-dir=PATH            Directory with .txt texts\n"
    "  --strict-newlines           Enter only counts where the text has a line break\n"
    "  --log-file=PATH | -l PATH   Write logs to PATH (rotating)\n"
    "  --stderr-tui                Force log to stderr during TUI (may break UI)\n"
    "  --json                      JSON-formatted logs\n"
)


def apply_cli_args(argv: List[str], env: Optional[Dict[str, str]] = None) -> bool:
    """Translate command-line flags into environment settings.

    Returns False when the caller should exit (help was printed).
    """
    env = os.environ if env is None else env
    args = list(argv[1:])
    for i, a in enumerate(args):
        av = (a or "").strip()
        if av.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
            env["LOG_LEVEL"] = av.upper()
        elif av.startswith("--log-file="):
            env["KEYSMASH_LOG_FILE"] = av.split("=", 1)[1]
        elif av in ("-l", "--log-file") and i + 1 < len(args):
            env["KEYSMASH_LOG_FILE"] = args[i + 1]
        elif av.startswith("--texts-dir="):
            env["KEYSMASH_TEXTS_DIR"] = av.split("=", 1)[1]
        elif av == "--strict-newlines":
            env["KEYSMASH_NEWLINE_POLICY"] = "strict"
        elif av == "--stderr-tui":
            env["KEYSMASH_STDERR_TUI"] = "1"
        elif av == "--json":
            env["LOG_JSON"] = "1"
        elif av in ("-h", "--help"):
            print(USAGE)
            return False
    return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(settings: Settings, env: Optional[Mapping[str, str]] = None) -> logging.Logger:
    """Log to a rotating file; stderr only when explicitly forced (it would break the TUI)."""
    env = os.environ if env is None else env
    level_name = str(env.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    LOGGER.handlers = []
    LOGGER.setLevel(level)
    LOGGER.propagate = False

    if env_flag("LOG_JSON", env=env):
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")

    log_path = env.get("KEYSMASH_LOG_FILE")
    file_error: Optional[OSError] = None
    if not log_path and settings.log_dir is not None:
        try:
            settings.log_dir.mkdir(parents=True, exist_ok=True)
            log_path = str(settings.log_dir / "keysmash.log")
        except OSError as exc:
            file_error = exc
    if log_path:
        try:
            fh = logging.handlers.RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        except OSError as exc:
            file_error = exc
        else:
            fh.setFormatter(formatter)
            LOGGER.addHandler(fh)
    if env_flag("KEYSMASH_STDERR_TUI", env=env) or not LOGGER.handlers:
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(formatter)
        LOGGER.addHandler(sh)
    if file_error is not None:
        LOGGER.warning("Log file unavailable, logging to stderr: %s", file_error)
    LOGGER.info("Keysmash starting with LOG_LEVEL=%s", level_name)
    return LOGGER


def key_event(ch) -> Optional[KeyEvent]:
    """Map a `get_wch()` result to a session key event (None: not a typing key)."""
    if ch is None:
        return None
    if isinstance(ch, str):
        if ch == _ESC:
            return KeyEvent(KEY_CANCEL)
        if ch in _BACKSPACE_CHARS:
            return KeyEvent(KEY_BACKSPACE)
        if ch in _NEWLINE_CHARS:
            return KeyEvent(KEY_NEWLINE)
        if ch == "\t" or ch.isprintable():
            return KeyEvent(KEY_CHAR, ch)
        return None
    if ch == 27:
        return KeyEvent(KEY_CANCEL)
    if ch in (curses.KEY_BACKSPACE, 127, 8):
        return KeyEvent(KEY_BACKSPACE)
    if ch in (curses.KEY_ENTER, 10, 13):
        return KeyEvent(KEY_NEWLINE)
    return None


def _is_escape(ch) -> bool:
    return ch == _ESC or ch == 27


def _is_resize(ch) -> bool:
    return ch == curses.KEY_RESIZE


def _color_index(name: Optional[str]) -> int:
    if name is None:
        return -1
    return getattr(curses, f"COLOR_{name.upper()}")


def style_attr(spec: StyleSpec, pair: int) -> int:
    attr = curses.color_pair(pair) if (spec.fg or spec.bg) else 0
    if spec.bold:
        attr |= curses.A_BOLD
    if spec.reverse:
        attr |= curses.A_REVERSE
    return attr


def init_colors(styles: Dict[str, StyleSpec]) -> None:
    """Resolve style roles to curses attributes once at startup."""
    colors = curses.has_colors()
    if colors:
        curses.start_color()
        try:
            curses.use_default_colors()
        except curses.error:
            pass
    for idx, role in enumerate(STYLE_ROLES, start=1):
        spec = styles.get(role, StyleSpec())
        if colors and (spec.fg or spec.bg):
            curses.init_pair(idx, _color_index(spec.fg), _color_index(spec.bg))
            CP[role] = style_attr(spec, idx)
        else:
            # Monochrome terminals still get bold/reverse
            CP[role] = style_attr(StyleSpec(bold=spec.bold, reverse=spec.reverse), 0)
    if not colors:
        CP["incorrect"] = CP["incorrect"] | curses.A_REVERSE
    LOGGER.debug("colors=%s roles=%s", colors, sorted(CP))


def _put(stdscr, y: int, x: int, text: str, attr: int = 0) -> None:
    """Draw `text` clipped to the screen; writing the bottom-right cell is allowed to fail."""
    h, w = stdscr.getmaxyx()
    if y < 0 or y >= h or x < 0 or x >= w or not text:
        return
    clipped = truncate_to_width(text, w - x)
    try:
        stdscr.addstr(y, x, clipped, attr)
    except curses.error:
        pass


def _put_centered(stdscr, y: int, text: str, attr: int = 0) -> None:
    _, w = stdscr.getmaxyx()
    _put(stdscr, y, center_offset(text, w), text, attr)


def _draw_block(stdscr, lines: List[str], first_row: int, attr: int = 0) -> None:
    for i, line in enumerate(lines):
        if line:
            _put_centered(stdscr, first_row + i, line, attr if i == 0 else CP["default"])


def _viewport(stdscr) -> Viewport:
    h, w = stdscr.getmaxyx()
    return Viewport(width=w, height=h)


def _next_key(stdscr):
    try:
        return stdscr.get_wch()
    except curses.error:
        return None


def wait_for_key(stdscr, lines: List[str], offset: int) -> bool:
    """Show a centered block until a key arrives; False means ESC."""
    while True:
        stdscr.erase()
        h, _ = stdscr.getmaxyx()
        _draw_block(stdscr, lines, h // 2 + offset, CP["title"])
        stdscr.refresh()
        ch = _next_key(stdscr)
        if ch is None or _is_resize(ch):
            continue
        return not _is_escape(ch)


def show_welcome(stdscr) -> bool:
    return wait_for_key(stdscr, screens.welcome_lines(), -3)


def show_error(stdscr, err: AppError) -> bool:
    LOGGER.warning("%s", err)
    return wait_for_key(stdscr, screens.error_lines(str(err)), -4)


def _draw_minimal(stdscr, state: SessionState, view: LayoutResult, now: float) -> None:
    stats = live_stats(state, now) if state.started else None
    for row, text in screens.minimal_lines(view.width, view.height, stats):
        _put_centered(stdscr, row, text, CP["title"] if row == 0 else CP["default"])


def _draw_header(stdscr, state: SessionState, view: LayoutResult, now: float) -> None:
    if view.full_header:
        _put_centered(stdscr, view.title_row, screens.FULL_TITLE, CP["title"])
        if view.source_row is not None:
            _put_centered(stdscr, view.source_row, screens.source_line(state.source_label), CP["default"])
    else:
        _put_centered(stdscr, view.title_row, screens.APP_TITLE, CP["title"])
    if state.started:
        stats = live_stats(state, now)
        _put_centered(stdscr, view.stats_row, screens.stats_line(stats, compact=not view.full_header), CP["default"])
        if view.full_header:
            _put(stdscr, view.stats_row + 1, view.padding, screens.percent_line(stats.percent), CP["default"])


def _draw_scroll_marks(stdscr, view: LayoutResult, first_row: int, rows: int, window) -> None:
    if view.width <= 20:
        return
    if window.more_above:
        _put(stdscr, first_row, view.width - 6, "↑", CP["default"])
    if window.more_below:
        _put(stdscr, first_row + rows - 1, view.width - 6, "↓", CP["default"])


def _draw_input_line(stdscr, y: int, x: int, line: str, marks: Tuple[str, ...]) -> None:
    col = x
    for ch, mark in zip(line, marks):
        attr = CP["incorrect"] if mark == INCORRECT else CP["correct"]
        _put(stdscr, y, col, ch, attr)
        col += display_width(ch)


def render_session(stdscr, state: SessionState, cursor: CursorController, now: float) -> LayoutResult:
    stdscr.erase()
    cursor.begin()
    view = compute_layout(state, _viewport(stdscr))
    if view.degraded:
        _draw_minimal(stdscr, state, view, now)
        cursor.apply(stdscr)
        stdscr.refresh()
        return view

    _draw_header(stdscr, state, view, now)
    divider = "-" * view.width
    _put(stdscr, view.divider_row, 0, divider, CP["default"])
    _put(stdscr, view.ref_title_row, view.padding, screens.REFERENCE_TITLE, CP["title"])
    for i, line in enumerate(view.visible_ref_lines()):
        _put(stdscr, view.ref_text_row + i, view.padding, line, CP["pending"])
    _draw_scroll_marks(stdscr, view, view.ref_text_row, view.ref_rows, view.ref_window)

    if view.separator_row < view.height - 1:
        _put(stdscr, view.separator_row, 0, divider, CP["default"])
    if view.input_label_row < view.height - 1:
        _put(stdscr, view.input_label_row, view.padding, screens.INPUT_TITLE, CP["title"])
    visible = zip(view.visible_input_lines(), view.visible_input_marks())
    for i, (line, marks) in enumerate(visible):
        y = view.input_text_row + i
        if y < view.height - 1:
            _draw_input_line(stdscr, y, view.padding, line, marks)
    if view.trailing_mark == INCORRECT and view.cursor_x is not None and view.cursor_y is not None:
        # Mistyped trailing whitespace has no glyph of its own
        _put(stdscr, view.cursor_y, view.cursor_x, " ", CP["incorrect"])
    _draw_scroll_marks(stdscr, view, view.input_text_row, view.input_rows, view.input_window)

    bar = screens.progress_bar(view.percent, view.width - 2 * view.padding)
    if bar.startswith("["):
        _put(stdscr, view.progress_row, view.padding, bar, CP["default"])
    else:
        _put_centered(stdscr, view.progress_row, bar, CP["default"])
    _put(stdscr, view.help_row, view.padding, screens.HELP_TEXT, CP["default"])

    cursor.want(view.cursor_y, view.cursor_x)
    cursor.apply(stdscr)
    stdscr.refresh()
    return view


def run_session(
    stdscr,
    state: SessionState,
    settings: Settings,
    cursor: CursorController,
    clock=time.monotonic,
) -> SessionResult:
    """Pull loop for one attempt; returns once the session is completed or abandoned."""
    LOGGER.info("Session start: source=%s chars=%d", state.source_label, len(state.reference_text))
    while not state.finished:
        render_session(stdscr, state, cursor, clock())
        ch = _next_key(stdscr)
        if ch is None or _is_resize(ch):
            continue
        event = key_event(ch)
        if KEYLOG_ENABLED:
            LOGGER.debug("[key] raw=%r event=%s", ch, event)
        if event is None:
            continue
        apply_key(state, event, clock=clock, policy=settings.newline_policy)
    result = finish(state, clock())
    LOGGER.info(
        "Session %s: wpm=%.1f accuracy=%.1f errors=%d elapsed=%.1fs",
        result.phase, result.wpm, result.accuracy, result.error_count, result.elapsed,
    )
    return result


def post_test_choice(ch) -> Optional[str]:
    if _is_escape(ch):
        return QUIT
    if isinstance(ch, str):
        return {"r": RETRY, "n": NEW_TEST, "q": QUIT}.get(ch.lower())
    return None


def show_results(stdscr, result: SessionResult) -> str:
    lines = screens.results_lines(result)
    while True:
        stdscr.erase()
        h, _ = stdscr.getmaxyx()
        _draw_block(stdscr, lines, h // 2 - 8, CP["title"])
        stdscr.refresh()
        choice = post_test_choice(_next_key(stdscr))
        if choice is not None:
            return choice


def main(stdscr, settings: Optional[Settings] = None) -> None:
    settings = settings or load_settings()
    try:
        curses.curs_set(0)
    except curses.error:
        pass
    stdscr.keypad(True)
    try:
        curses.set_escdelay(25)
    except (AttributeError, curses.error):
        pass
    init_colors(settings.styles)
    cursor = CursorController()

    texts_dir = find_texts_dir(settings.texts_dir)
    if texts_dir is None:
        show_error(stdscr, AppError(TEXTS_DIR_MISSING, "Startup", settings.texts_dir or "texts"))
        return
    provider = TextProvider(texts_dir)

    while True:
        if not show_welcome(stdscr):
            return
        try:
            text, label = provider.choose()
            state = new_session(text, label)
        except AppError as err:
            if not show_error(stdscr, err):
                return
            continue
        while True:
            result = run_session(stdscr, state, settings, cursor)
            if result.phase != COMPLETED:
                break
            choice = show_results(stdscr, result)
            if choice == QUIT:
                return
            if choice == NEW_TEST:
                break
            state = reset_for_retry(state)


def run(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    if not apply_cli_args(argv):
        return 0
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        pass
    settings = load_settings()
    setup_logging(settings)
    try:
        curses.wrapper(main, settings)
    except curses.error as e:
        # Usually not a TTY or a broken TERM
        sys.stderr.write(f"[keysmash] TUI initialisation failed: {e}\n")
        sys.stderr.write("[keysmash] Check TERM and that stdin/stdout are not redirected.\n")
        sys.stderr.write(f"[keysmash] isatty(stdin)={sys.stdin.isatty()} isatty(stdout)={sys.stdout.isatty()}\n")
        return 2
    except KeyboardInterrupt:
        LOGGER.info("KeyboardInterrupt; exiting")
    return 0


__all__ = [
    "apply_cli_args",
    "setup_logging",
    "key_event",
    "post_test_choice",
    "init_colors",
    "render_session",
    "run_session",
    "main",
    "run",
]


if __name__ == "__main__":
    raise SystemExit(run())
