from __future__ import annotations

"""
Settings: JSON config file + environment overrides, resolved once at startup.

config.json keys:
- texts_dir:       directory with .txt texts (null: auto-detect)
- newline_policy:  'score' | 'strict'
- styles:          role -> {"fg": "green", "bg": null, "bold": true, "reverse": false}
                   roles: title, correct, incorrect, pending, default

Env overrides: KEYSMASH_TEXTS_DIR, KEYSMASH_NEWLINE_POLICY,
KEYSMASH_CONFIG_DIR, KEYSMASH_VAR_DIR.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .session import NEWLINE_POLICIES, NEWLINE_SCORE


log = logging.getLogger("keysmash.config")

CONFIG_FILE = "config.json"

STYLE_ROLES = ("title", "correct", "incorrect", "pending", "default")
COLOR_NAMES = ("black", "red", "green", "yellow", "blue", "magenta", "cyan", "white")


@dataclass(frozen=True)
class StyleSpec:
    fg: Optional[str] = None  # color name or None for terminal default
    bg: Optional[str] = None
    bold: bool = False
    reverse: bool = False


DEFAULT_STYLES: Dict[str, StyleSpec] = {
    "title": StyleSpec(fg="yellow", bold=True),
    "correct": StyleSpec(fg="green"),
    "incorrect": StyleSpec(fg="white", bg="red", bold=True),
    "pending": StyleSpec(),
    "default": StyleSpec(),
}


@dataclass(frozen=True)
class Settings:
    texts_dir: Optional[str] = None
    newline_policy: str = NEWLINE_SCORE
    styles: Dict[str, StyleSpec] = field(default_factory=lambda: dict(DEFAULT_STYLES))
    config_dir: Optional[Path] = None
    var_dir: Optional[Path] = None

    @property
    def log_dir(self) -> Optional[Path]:
        return self.var_dir / "log" if self.var_dir else None


def env_flag(name: str, default: bool = False, env: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if env is None else env
    raw = env.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


def _ensure_writable_dir(p: Path) -> bool:
    try:
        p.mkdir(parents=True, exist_ok=True)
        test = p / ".touch"
        test.write_text("ok", encoding="utf-8")
        test.unlink()
        return True
    except OSError:
        return False


def select_dir(env_var: str, fallbacks: List[Path], env: Optional[Mapping[str, str]] = None) -> Path:
    """First writable candidate: $env_var, then `fallbacks`; last fallback otherwise."""
    env = os.environ if env is None else env
    override = env.get(env_var)
    if override:
        cand = Path(override).expanduser()
        if _ensure_writable_dir(cand):
            return cand
    for cand in fallbacks:
        if _ensure_writable_dir(cand):
            return cand
    return fallbacks[-1]


def default_config_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    home = Path.home()
    return select_dir(
        "KEYSMASH_CONFIG_DIR",
        [home / ".config" / "keysmash", home / ".keysmash" / "config"],
        env,
    )


def default_var_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    home = Path.home()
    return select_dir(
        "KEYSMASH_VAR_DIR",
        [home / ".local" / "share" / "keysmash", home / ".keysmash" / "var"],
        env,
    )


def load_config_file(config_dir: Path) -> dict:
    cfg_path = config_dir / CONFIG_FILE
    if not cfg_path.exists():
        return {}
    try:
        with cfg_path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        log.exception("Failed to load config %s", cfg_path)
        return {}
    if not isinstance(data, dict):
        log.warning("Ignoring config %s: top level is not an object", cfg_path)
        return {}
    return data


def _parse_color(value: object) -> Optional[str]:
    if value is None:
        return None
    name = str(value).strip().lower()
    if name in COLOR_NAMES:
        return name
    log.warning("Unknown color %r; using terminal default", value)
    return None


def parse_styles(raw: object) -> Dict[str, StyleSpec]:
    styles = dict(DEFAULT_STYLES)
    if not isinstance(raw, dict):
        return styles
    for role, spec in raw.items():
        if role not in STYLE_ROLES:
            log.warning("Unknown style role %r", role)
            continue
        if not isinstance(spec, dict):
            continue
        styles[role] = StyleSpec(
            fg=_parse_color(spec.get("fg")),
            bg=_parse_color(spec.get("bg")),
            bold=bool(spec.get("bold", False)),
            reverse=bool(spec.get("reverse", False)),
        )
    return styles


def _newline_policy(value: object) -> str:
    policy = str(value or NEWLINE_SCORE).strip().lower()
    if policy not in NEWLINE_POLICIES:
        log.warning("Unknown newline policy %r; using %s", value, NEWLINE_SCORE)
        return NEWLINE_SCORE
    return policy


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    *,
    config_dir: Optional[Path] = None,
    var_dir: Optional[Path] = None,
) -> Settings:
    env = os.environ if env is None else env
    config_dir = config_dir or default_config_dir(env)
    var_dir = var_dir or default_var_dir(env)
    data = load_config_file(config_dir)

    texts_dir = env.get("KEYSMASH_TEXTS_DIR") or data.get("texts_dir") or None
    policy = _newline_policy(env.get("KEYSMASH_NEWLINE_POLICY") or data.get("newline_policy"))
    settings = Settings(
        texts_dir=str(texts_dir) if texts_dir else None,
        newline_policy=policy,
        styles=parse_styles(data.get("styles")),
        config_dir=config_dir,
        var_dir=var_dir,
    )
    log.debug("Loaded settings: texts_dir=%s newline_policy=%s", settings.texts_dir, settings.newline_policy)
    return settings


__all__ = [
    "CONFIG_FILE",
    "STYLE_ROLES",
    "COLOR_NAMES",
    "StyleSpec",
    "DEFAULT_STYLES",
    "Settings",
    "env_flag",
    "select_dir",
    "default_config_dir",
    "default_var_dir",
    "load_config_file",
    "parse_styles",
    "load_settings",
]
