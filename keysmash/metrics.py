from __future__ import annotations

"""
Speed/accuracy/progress figures derived from a typing session.

All functions are total: degenerate denominators map to fixed defaults
instead of raising.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional


CORRECT = "correct"
INCORRECT = "incorrect"

CHARS_PER_WORD = 5
MIN_ELAPSED_FOR_WPM = 1.0  # seconds


def wpm(char_count: int, elapsed_seconds: float) -> float:
    """Words per minute with the 5-characters-per-word convention.

    Returns 0.0 for the first second of a session and for negative results.
    """
    if elapsed_seconds < MIN_ELAPSED_FOR_WPM:
        return 0.0
    value = (char_count / CHARS_PER_WORD) / (elapsed_seconds / 60.0)
    if value < 0:
        return 0.0
    return value


def accuracy(input_length: int, error_count: int) -> float:
    """Percentage of keystrokes that were not mistakes, clamped to [0, 100]."""
    if input_length <= 0:
        return 100.0
    value = 100.0 * (1.0 - error_count / input_length)
    return max(0.0, min(100.0, value))


def completion_percent(input_length: int, reference_length: int) -> int:
    if reference_length <= 0:
        return 0
    pct = math.floor(100 * max(0, input_length) / reference_length)
    return min(100, pct)


def elapsed_seconds(state: Any, now: float) -> float:
    """Seconds since the first keystroke; frozen at `end_time` once completed."""
    if not getattr(state, "started", False) or state.start_time is None:
        return 0.0
    end = state.end_time if (state.completed and state.end_time is not None) else now
    return max(0.0, end - state.start_time)


def classify(reference: str, typed: str) -> List[str]:
    """Correctness class for each typed character.

    Characters typed past the end of the reference are always incorrect.
    """
    out: List[str] = []
    ref_len = len(reference)
    for i, ch in enumerate(typed):
        out.append(CORRECT if i < ref_len and reference[i] == ch else INCORRECT)
    return out


@dataclass(frozen=True)
class LiveStats:
    elapsed: float
    wpm: float
    errors: int
    percent: int


def live_stats(state: Any, now: float, *, elapsed: Optional[float] = None) -> LiveStats:
    secs = elapsed_seconds(state, now) if elapsed is None else elapsed
    return LiveStats(
        elapsed=secs,
        wpm=wpm(len(state.user_input), secs),
        errors=state.error_count,
        percent=completion_percent(len(state.user_input), len(state.reference_text)),
    )


__all__ = [
    "CORRECT",
    "INCORRECT",
    "wpm",
    "accuracy",
    "completion_percent",
    "elapsed_seconds",
    "classify",
    "LiveStats",
    "live_stats",
]
