#!/usr/bin/env python3
"""Run keysmash from a source checkout without installing it."""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from keysmash.app import run  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(run())
