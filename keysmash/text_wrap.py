from __future__ import annotations

"""
Greedy word wrapping measured in terminal cells.

- Explicit newlines split paragraphs; an empty paragraph yields one empty line.
- Words are packed with single-space joiners while they fit `max_width`.
- A word wider than `max_width` is hard-split glyph by glyph; the tail chunk
  stays open so following words can continue on the same line.
- `wrap_spans` reports which source index each emitted cell came from, so the
  painter can color typed characters after wrapping collapsed whitespace.
"""

import re
from typing import List, Tuple

from .ui_utils import char_width, display_width


_WORD_RE = re.compile(r"\S+")

Cell = Tuple[str, int]  # (glyph, index into source text)


def _wrap_cells(text: str, max_width: int) -> List[List[Cell]]:
    if max_width <= 0:
        raise ValueError(f"max_width must be positive, got {max_width}")
    lines: List[List[Cell]] = []
    if not text:
        return lines
    offset = 0
    for paragraph in text.split("\n"):
        base = offset
        offset += len(paragraph) + 1
        words = list(_WORD_RE.finditer(paragraph))
        if not words:
            lines.append([])
            continue
        current: List[Cell] = []
        current_w = 0
        prev_end = base
        for m in words:
            word = m.group(0)
            start = base + m.start()
            word_w = display_width(word)
            if word_w > max_width:
                if current:
                    lines.append(current)
                chunk: List[Cell] = []
                chunk_w = 0
                for i, ch in enumerate(word):
                    cw = char_width(ch)
                    if chunk and chunk_w + cw > max_width:
                        lines.append(chunk)
                        chunk, chunk_w = [], 0
                    chunk.append((ch, start + i))
                    chunk_w += cw
                current, current_w = chunk, chunk_w
            elif current_w + (1 if current else 0) + word_w <= max_width:
                if current:
                    # Joiner space points at the whitespace that followed the previous word
                    current.append((" ", prev_end))
                    current_w += 1
                current.extend((ch, start + i) for i, ch in enumerate(word))
                current_w += word_w
            else:
                lines.append(current)
                current = [(ch, start + i) for i, ch in enumerate(word)]
                current_w = word_w
            prev_end = base + m.end()
        if current:
            lines.append(current)
    return lines


def wrap(text: str, max_width: int) -> List[str]:
    """Break `text` into display lines no wider than `max_width` cells.

    `wrap("", w)` is `[]`; `wrap("\\n", w)` is `["", ""]`.
    Raises ValueError when `max_width` is not positive.
    """
    return ["".join(ch for ch, _ in line) for line in _wrap_cells(text or "", max_width)]


def wrap_spans(text: str, max_width: int) -> List[List[int]]:
    """Same wrapping as `wrap`, returning source indices per emitted cell."""
    return [[idx for _, idx in line] for line in _wrap_cells(text or "", max_width)]


__all__ = [
    "wrap",
    "wrap_spans",
]
