from __future__ import annotations

"""
Screen geometry for a typing session, recomputed from scratch every frame.

Given the viewport size and the current session, produce:
- wrapped reference and input lines at the current content width;
- the visible window of each (reference follows typing progress,
  input follows the cursor);
- the cursor position, both within the wrapped input and on screen;
- the correctness class of every wrapped input cell;
- the row of every screen element the painter draws.

Below the minimum viewport the result is `degraded` and carries only the
status fields, so the driver can fall back to a status-only screen.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from . import metrics
from .text_wrap import wrap, wrap_spans
from .ui_utils import display_width


log = logging.getLogger("keysmash.layout")


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int


@dataclass(frozen=True)
class Tier:
    min_height: int
    top_margin: int
    stats_rows: int
    ref_header: int
    input_header: int
    bottom_margin: int


# Tallest first; the first tier whose min_height fits is used.
DEFAULT_TIERS: Tuple[Tier, ...] = (
    Tier(24, top_margin=4, stats_rows=3, ref_header=2, input_header=2, bottom_margin=3),
    Tier(18, top_margin=2, stats_rows=2, ref_header=1, input_header=1, bottom_margin=2),
    Tier(0, top_margin=1, stats_rows=1, ref_header=1, input_header=1, bottom_margin=2),
)


@dataclass(frozen=True)
class LayoutConfig:
    min_width: int = 40
    min_height: int = 15
    max_padding: int = 4
    min_content_width: int = 20
    min_content_rows: int = 4
    min_section_rows: int = 2
    # Reference region gets 1/ref_share of the content rows
    ref_share: int = 3
    # Viewports at least this tall show the full header (title + source)
    full_header_height: int = 18
    tiers: Tuple[Tier, ...] = DEFAULT_TIERS


DEFAULT_CONFIG = LayoutConfig()


@dataclass(frozen=True)
class Window:
    """Half-open slice [start, end) of a line list with `total` lines."""

    start: int
    end: int
    total: int

    def __len__(self) -> int:
        return max(0, self.end - self.start)

    @property
    def more_above(self) -> bool:
        return self.start > 0

    @property
    def more_below(self) -> bool:
        return self.end < self.total


EMPTY_WINDOW = Window(0, 0, 0)


@dataclass(frozen=True)
class LayoutResult:
    width: int
    height: int
    degraded: bool
    percent: int
    padding: int = 0
    content_width: int = 0
    full_header: bool = False
    title_row: int = 0
    source_row: Optional[int] = None
    stats_row: int = 0
    divider_row: int = 0
    ref_title_row: int = 0
    ref_text_row: int = 0
    ref_rows: int = 0
    separator_row: int = 0
    input_label_row: int = 0
    input_text_row: int = 0
    input_rows: int = 0
    progress_row: int = 0
    help_row: int = 0
    ref_lines: Tuple[str, ...] = ()
    input_lines: Tuple[str, ...] = ()
    input_marks: Tuple[Tuple[str, ...], ...] = ()
    typed_marks: Tuple[str, ...] = ()
    trailing_mark: Optional[str] = None
    ref_window: Window = EMPTY_WINDOW
    input_window: Window = EMPTY_WINDOW
    cursor_line: int = 0
    cursor_col: int = 0
    cursor_x: Optional[int] = None
    cursor_y: Optional[int] = None
    tier: Optional[Tier] = field(default=None, compare=False)

    def visible_ref_lines(self) -> Tuple[str, ...]:
        return self.ref_lines[self.ref_window.start:self.ref_window.end]

    def visible_input_lines(self) -> Tuple[str, ...]:
        return self.input_lines[self.input_window.start:self.input_window.end]

    def visible_input_marks(self) -> Tuple[Tuple[str, ...], ...]:
        return self.input_marks[self.input_window.start:self.input_window.end]


def horizontal_padding(width: int, config: LayoutConfig = DEFAULT_CONFIG) -> int:
    return max(0, min(config.max_padding, width // 10))


def content_width(width: int, config: LayoutConfig = DEFAULT_CONFIG) -> int:
    return max(config.min_content_width, width - 2 * horizontal_padding(width, config))


def pick_tier(height: int, config: LayoutConfig = DEFAULT_CONFIG) -> Tier:
    for tier in config.tiers:
        if height >= tier.min_height:
            return tier
    return config.tiers[-1]


def reference_window(total: int, rows: int, progress: float) -> Window:
    """Window of at most `rows` lines centered on `progress * total`.

    Clamped so it never runs past either end; near the end it is pinned to
    the last `rows` lines.
    """
    if rows <= 0 or total <= 0:
        return Window(0, 0, max(0, total))
    if total <= rows:
        return Window(0, total, total)
    mid = int(max(0.0, progress) * total)
    start = max(0, mid - rows // 2)
    end = min(total, start + rows)
    if end >= total:
        start = max(0, total - rows)
        end = total
    return Window(start, end, total)


def follow_window(total: int, rows: int, cursor_line: int) -> Window:
    """Tail-follow window: pin the last visible row to the cursor when needed."""
    if rows <= 0 or total <= 0:
        return Window(0, 0, max(0, total))
    start = 0
    if cursor_line >= rows:
        start = max(0, cursor_line - (rows - 1))
    end = min(total, start + rows)
    return Window(start, end, total)


def cursor_position(input_lines: Tuple[str, ...]) -> Tuple[int, int]:
    """(line, column) just after the last typed glyph; (0, 0) with no input."""
    if not input_lines:
        return 0, 0
    last = len(input_lines) - 1
    return last, display_width(input_lines[last])


def _worst(classes: Tuple[str, ...], indices: range) -> str:
    return metrics.INCORRECT if any(classes[i] == metrics.INCORRECT for i in indices) else metrics.CORRECT


def _input_marks(
    classes: Tuple[str, ...], typed: str, width: int
) -> Tuple[Tuple[Tuple[str, ...], ...], Optional[str]]:
    """Per-cell marks for the wrapped input, plus the mark of a collapsed tail.

    A cell also stands for the whitespace the wrapper folded into it, so a
    joiner space is incorrect when any character of its run was mistyped.
    Typed characters after the last emitted cell (trailing spaces or
    newlines) have no cell; their combined mark is returned separately.
    """
    marks = []
    last = -1
    for span in wrap_spans(typed, width):
        line = []
        for j, idx in enumerate(span):
            stop = span[j + 1] if j + 1 < len(span) else idx + 1
            line.append(_worst(classes, range(idx, stop)))
        if span:
            last = span[-1]
        marks.append(tuple(line))
    tail = range(last + 1, len(typed))
    return tuple(marks), (_worst(classes, tail) if len(tail) else None)


def compute_layout(state, viewport: Viewport, config: LayoutConfig = DEFAULT_CONFIG) -> LayoutResult:
    width, height = int(viewport.width), int(viewport.height)
    reference = state.reference_text
    typed = state.user_input
    percent = metrics.completion_percent(len(typed), len(reference))
    classes = tuple(metrics.classify(reference, typed))

    if width < config.min_width or height < config.min_height:
        log.debug("layout degraded: viewport %dx%d below %dx%d", width, height, config.min_width, config.min_height)
        return LayoutResult(width=width, height=height, degraded=True, percent=percent, typed_marks=classes)

    padding = horizontal_padding(width, config)
    wrap_w = content_width(width, config)
    tier = pick_tier(height, config)
    full_header = height >= config.full_header_height

    content_start = tier.top_margin + tier.stats_rows + 1
    content_end = height - tier.bottom_margin
    content_rows = content_end - content_start
    if content_rows < config.min_content_rows:
        log.debug("layout degraded: %d content rows at %dx%d", content_rows, width, height)
        return LayoutResult(width=width, height=height, degraded=True, percent=percent, typed_marks=classes)

    ref_rows = max(config.min_section_rows, content_rows // config.ref_share)
    input_rows = max(
        config.min_section_rows,
        content_rows - ref_rows - tier.ref_header - tier.input_header - 1,
    )

    ref_title_row = content_start
    ref_text_row = ref_title_row + tier.ref_header
    separator_row = ref_text_row + ref_rows
    input_label_row = separator_row + 1
    input_text_row = input_label_row + tier.input_header

    ref_lines = tuple(wrap(reference, wrap_w))
    input_lines = tuple(wrap(typed, wrap_w))
    marks, trailing = _input_marks(classes, typed, wrap_w)

    progress = len(typed) / len(reference) if reference else 0.0
    ref_win = reference_window(len(ref_lines), ref_rows, progress)

    cursor_line, cursor_col = cursor_position(input_lines)
    input_win = follow_window(len(input_lines), input_rows, cursor_line)

    cursor_x: Optional[int] = padding + cursor_col
    cursor_y: Optional[int] = input_text_row + (cursor_line - input_win.start)
    if cursor_x >= width or cursor_y >= height - 1:
        cursor_x = cursor_y = None

    return LayoutResult(
        width=width,
        height=height,
        degraded=False,
        percent=percent,
        padding=padding,
        content_width=wrap_w,
        full_header=full_header,
        title_row=1 if full_header else 0,
        source_row=3 if full_header else None,
        stats_row=tier.top_margin,
        divider_row=content_start - 1,
        ref_title_row=ref_title_row,
        ref_text_row=ref_text_row,
        ref_rows=ref_rows,
        separator_row=separator_row,
        input_label_row=input_label_row,
        input_text_row=input_text_row,
        input_rows=input_rows,
        progress_row=height - 2,
        help_row=height - 1,
        ref_lines=ref_lines,
        input_lines=input_lines,
        input_marks=marks,
        typed_marks=classes,
        trailing_mark=trailing,
        ref_window=ref_win,
        input_window=input_win,
        cursor_line=cursor_line,
        cursor_col=cursor_col,
        cursor_x=cursor_x,
        cursor_y=cursor_y,
        tier=tier,
    )


__all__ = [
    "Viewport",
    "Tier",
    "LayoutConfig",
    "DEFAULT_CONFIG",
    "Window",
    "LayoutResult",
    "horizontal_padding",
    "content_width",
    "pick_tier",
    "reference_window",
    "follow_window",
    "cursor_position",
    "compute_layout",
]
