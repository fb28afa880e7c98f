from __future__ import annotations

"""
Text provider: picks a random `.txt` file from a texts directory.

The directory is passed in explicitly; `find_texts_dir` resolves it once at
startup from the configured value and a few conventional locations.
"""

import logging
import random
import sys
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .error_codes import (
    EMPTY_REFERENCE,
    NO_TEXT_FILES,
    TEXTS_DIR_MISSING,
    TEXT_UNREADABLE,
    AppError,
)


log = logging.getLogger("keysmash.corpus")

TEXT_SUFFIX = ".txt"

# Texts shipped inside the package
BUNDLED_TEXTS_DIR = Path(__file__).resolve().parent / "texts"


def _candidate_dirs(configured: Optional[Union[str, Path]], script: Optional[Path]) -> List[Path]:
    cands: List[Path] = []
    if configured:
        cands.append(Path(configured).expanduser())
    cands.append(Path("texts"))
    if script is not None:
        script_dir = script.resolve().parent
        cands.append(script_dir / "texts")
        # One level up (bin/ layouts)
        cands.append(script_dir.parent / "texts")
    cands.append(BUNDLED_TEXTS_DIR)
    return cands


def find_texts_dir(
    configured: Optional[Union[str, Path]] = None,
    *,
    script: Optional[Path] = None,
) -> Optional[Path]:
    """Return the first existing texts directory, or None.

    Order: configured path, ./texts, <script dir>/texts, <script dir>/../texts,
    then the texts bundled with the package.
    """
    if script is None and sys.argv and sys.argv[0]:
        script = Path(sys.argv[0])
    for cand in _candidate_dirs(configured, script):
        if cand.is_dir():
            log.debug("texts dir: %s", cand)
            return cand
    return None


class TextProvider:
    """Supplies (reference_text, source_name) pairs from a directory of .txt files."""

    def __init__(self, texts_dir: Optional[Union[str, Path]], rng: Optional[random.Random] = None):
        self.texts_dir = Path(texts_dir) if texts_dir else None
        self._rng = rng or random.Random()

    def list_files(self) -> List[Path]:
        if self.texts_dir is None or not self.texts_dir.is_dir():
            raise AppError(TEXTS_DIR_MISSING, "Corpus.list", str(self.texts_dir or ""))
        files = sorted(
            p for p in self.texts_dir.iterdir()
            if p.is_file() and p.suffix.lower() == TEXT_SUFFIX
        )
        if not files:
            raise AppError(NO_TEXT_FILES, "Corpus.list", str(self.texts_dir))
        return files

    def load(self, path: Path) -> Tuple[str, str]:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log.exception("Failed to read text file %s", path)
            raise AppError(TEXT_UNREADABLE, "Corpus.read", f"{path.name}: {exc}") from exc
        text = content.strip()
        if not text:
            raise AppError(EMPTY_REFERENCE, "Corpus.read", path.name)
        return text, path.name

    def choose(self) -> Tuple[str, str]:
        files = self.list_files()
        path = self._rng.choice(files)
        log.debug("picked %s out of %d files", path.name, len(files))
        return self.load(path)


__all__ = [
    "TEXT_SUFFIX",
    "BUNDLED_TEXTS_DIR",
    "find_texts_dir",
    "TextProvider",
]
