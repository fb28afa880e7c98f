from __future__ import annotations

"""
Coded errors with human-readable messages.

Output format: "Error [<CODE>]: <Title>. Stage: <stage>. Details: <detail>"

Usage:
- raise AppError('E002', 'Corpus.list', '/srv/texts')
- msg = format_error('E005', 'Layout', '32x10')
"""

from dataclasses import dataclass
from typing import Optional


ERROR_TITLES: dict[str, str] = {
    'E001': 'Texts directory not found',
    'E002': 'No text files in texts directory',
    'E003': 'Text file could not be read',
    'E004': 'Reference text is empty',
    'E005': 'Window too small',
}

TEXTS_DIR_MISSING = 'E001'
NO_TEXT_FILES = 'E002'
TEXT_UNREADABLE = 'E003'
EMPTY_REFERENCE = 'E004'
VIEWPORT_TOO_SMALL = 'E005'


def format_error(code: str, stage: str, detail: Optional[str] = None) -> str:
    title = ERROR_TITLES.get(code, 'Unknown error')
    stage = (stage or '').strip() or '-'
    detail = (detail or '').strip()
    base = f"Error [{code}]: {title}. Stage: {stage}."
    if detail:
        return f"{base} Details: {detail}"
    return base


@dataclass
class AppError(Exception):
    code: str
    stage: str
    detail: Optional[str] = None

    def __str__(self) -> str:
        return format_error(self.code, self.stage, self.detail)


__all__ = [
    "ERROR_TITLES",
    "TEXTS_DIR_MISSING",
    "NO_TEXT_FILES",
    "TEXT_UNREADABLE",
    "EMPTY_REFERENCE",
    "VIEWPORT_TOO_SMALL",
    "format_error",
    "AppError",
]
