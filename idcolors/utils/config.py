from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..backends.session import DEFAULT_PALETTE_SIZE


CONFIG_FILE = os.environ.get(
    "IDCOLORS_CONFIG",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "settings.json"),
)

DEFAULT_IDLE_DELAY = 0.5


@dataclass
class Settings:
    palette_size: int = DEFAULT_PALETTE_SIZE
    idle_delay: float = DEFAULT_IDLE_DELAY
    debug: bool = False
    profiles: List[Dict[str, Any]] = field(default_factory=list)


def load_config() -> Dict[str, Any]:
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(cfg: Dict[str, Any]) -> None:
    try:
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(cfg, f, indent=2)
    except OSError as exc:
        print(f"[IdColors] Could not save settings to {CONFIG_FILE}: {exc}")


def get_settings(cfg: Dict[str, Any] | None = None) -> Settings:
    """Typed view of the settings file; bad values fall back to defaults."""
    if cfg is None:
        cfg = load_config()
    s = Settings()
    try:
        s.palette_size = max(1, int(cfg.get("palette_size", DEFAULT_PALETTE_SIZE)))
    except (TypeError, ValueError):
        pass
    try:
        s.idle_delay = max(0.0, float(cfg.get("idle_delay", DEFAULT_IDLE_DELAY)))
    except (TypeError, ValueError):
        pass
    s.debug = bool(cfg.get("debug", False))
    profiles = cfg.get("profiles", [])
    if isinstance(profiles, list):
        s.profiles = [p for p in profiles if isinstance(p, dict)]
    return s
