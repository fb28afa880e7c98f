from __future__ import annotations

"""
Per-attempt typing session state and the keystroke rules applied to it.

Phases: not_started -> in_progress -> {completed, abandoned}.

- The first appended character (or newline) starts the clock.
- Every append that does not match the reference at its position, and every
  append past the end of the reference, adds one error. Backspace never
  removes errors: the count is a ledger of mistaken keystrokes.
- Completion is checked after each append and requires exact equality.
- Once completed or abandoned, further events are ignored.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from . import metrics
from .error_codes import EMPTY_REFERENCE, AppError


NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
ABANDONED = "abandoned"

KEY_CHAR = "char"
KEY_BACKSPACE = "backspace"
KEY_NEWLINE = "newline"
KEY_CANCEL = "cancel"

# Newline scoring variants.
# score:  Enter always appends "\n" and is scored like any other character.
# strict: Enter appends only where the reference has "\n"; otherwise it is dropped.
NEWLINE_SCORE = "score"
NEWLINE_STRICT = "strict"
NEWLINE_POLICIES = (NEWLINE_SCORE, NEWLINE_STRICT)

Clock = Callable[[], float]

log = logging.getLogger("keysmash.session")


@dataclass(frozen=True)
class KeyEvent:
    kind: str  # 'char' | 'backspace' | 'newline' | 'cancel'
    char: str = ""


@dataclass
class SessionState:
    reference_text: str
    source_label: str = ""
    user_input: str = ""
    error_count: int = 0
    started: bool = False
    completed: bool = False
    abandoned: bool = False
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @property
    def phase(self) -> str:
        if self.completed:
            return COMPLETED
        if self.abandoned:
            return ABANDONED
        if self.started:
            return IN_PROGRESS
        return NOT_STARTED

    @property
    def finished(self) -> bool:
        return self.completed or self.abandoned


@dataclass(frozen=True)
class SessionResult:
    """Immutable snapshot handed to the driver when an attempt ends."""

    reference_text: str
    user_input: str
    source_label: str
    phase: str
    error_count: int
    elapsed: float
    wpm: float
    accuracy: float
    percent: int


def new_session(reference_text: str, source_label: str = "") -> SessionState:
    if not reference_text:
        raise AppError(EMPTY_REFERENCE, "Session.new", source_label or None)
    return SessionState(reference_text=reference_text, source_label=source_label)


def reset_for_retry(state: SessionState) -> SessionState:
    """Fresh attempt over the same text; input, errors and flags start over."""
    return new_session(state.reference_text, state.source_label)


def _ensure_started(state: SessionState, clock: Clock) -> None:
    if not state.started:
        state.started = True
        state.start_time = clock()
        log.debug("session started: source=%s", state.source_label)


def _append(state: SessionState, ch: str, clock: Clock) -> None:
    _ensure_started(state, clock)
    state.user_input += ch
    pos = len(state.user_input) - 1
    if pos >= len(state.reference_text) or state.reference_text[pos] != ch:
        state.error_count += 1
    if state.user_input == state.reference_text:
        state.completed = True
        state.end_time = clock()
        log.debug("session completed: errors=%d", state.error_count)


def append_char(state: SessionState, ch: str, *, clock: Clock = time.monotonic) -> None:
    if state.finished or not ch:
        return
    _append(state, ch, clock)


def append_newline(
    state: SessionState,
    *,
    clock: Clock = time.monotonic,
    policy: str = NEWLINE_SCORE,
) -> bool:
    """Append "\\n" according to `policy`; return True if it was appended."""
    if state.finished:
        return False
    if policy == NEWLINE_STRICT:
        pos = len(state.user_input)
        if pos >= len(state.reference_text) or state.reference_text[pos] != "\n":
            return False
    _append(state, "\n", clock)
    return True


def backspace(state: SessionState) -> None:
    if state.finished or not state.user_input:
        return
    state.user_input = state.user_input[:-1]


def cancel(state: SessionState) -> None:
    if state.finished:
        return
    state.abandoned = True
    log.debug("session abandoned: typed=%d errors=%d", len(state.user_input), state.error_count)


def apply_key(
    state: SessionState,
    event: KeyEvent,
    *,
    clock: Clock = time.monotonic,
    policy: str = NEWLINE_SCORE,
) -> str:
    """Apply one key event and return the resulting phase."""
    kind = event.kind
    if kind == KEY_CHAR:
        append_char(state, event.char, clock=clock)
    elif kind == KEY_NEWLINE:
        append_newline(state, clock=clock, policy=policy)
    elif kind == KEY_BACKSPACE:
        backspace(state)
    elif kind == KEY_CANCEL:
        cancel(state)
    return state.phase


def finish(state: SessionState, now: float) -> SessionResult:
    elapsed = metrics.elapsed_seconds(state, now)
    typed = len(state.user_input)
    return SessionResult(
        reference_text=state.reference_text,
        user_input=state.user_input,
        source_label=state.source_label,
        phase=state.phase,
        error_count=state.error_count,
        elapsed=elapsed,
        wpm=metrics.wpm(typed, elapsed),
        accuracy=metrics.accuracy(typed, state.error_count),
        percent=metrics.completion_percent(typed, len(state.reference_text)),
    )


__all__ = [
    "NOT_STARTED",
    "IN_PROGRESS",
    "COMPLETED",
    "ABANDONED",
    "KEY_CHAR",
    "KEY_BACKSPACE",
    "KEY_NEWLINE",
    "KEY_CANCEL",
    "NEWLINE_SCORE",
    "NEWLINE_STRICT",
    "NEWLINE_POLICIES",
    "KeyEvent",
    "SessionState",
    "SessionResult",
    "new_session",
    "reset_for_retry",
    "append_char",
    "append_newline",
    "backspace",
    "cancel",
    "apply_key",
    "finish",
]
