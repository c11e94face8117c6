# src/deadlinez/utils/config.py
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .logging_setup import get_logger
from .paths import CONFIG_DIR, DB_PATH

SETTINGS_FILE = CONFIG_DIR / "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "database": {
        "path": str(DB_PATH),
    },
    "notifications": {
        "upcoming_limit": 5,
    },
    "logging": {
        "level": "INFO",
    },
}

_log = get_logger("config")


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or SETTINGS_FILE
    if path.exists():
        try:
            return _merge(_DEFAULTS, json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            _log.warning("Ignoring unreadable settings %s: %s", path, e)
            return copy.deepcopy(_DEFAULTS)
    return copy.deepcopy(_DEFAULTS)


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or SETTINGS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def database_path(settings: Optional[Dict[str, Any]] = None) -> Path:
    """DEADLINEZ_DB wins over settings.json."""
    env = os.environ.get("DEADLINEZ_DB")
    if env:
        return Path(env).expanduser()
    settings = settings if settings is not None else load_settings()
    return Path(settings["database"]["path"]).expanduser()
