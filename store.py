import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Tuple

from utils import clamp_int

logger = logging.getLogger(__name__)

APP_NAME = "MMV"
ENV_DATA_DIR = "MMV_DATA_DIR"
STATE_FILE = "mmv_state.json"

# Numeric settings: key -> (low, high). Values outside are clamped on load and apply.
SETTING_LIMITS: Dict[str, Tuple[int, int]] = {
    "search_debounce_ms": (0, 10000),
    "resize_debounce_ms": (0, 5000),
    "node_display_limit": (1, 5000),
    "force_display_limit": (1, 2000),
    "filter_max_depth": (0, 50),
    "font_size": (6, 72),
    "text_max_width": (40, 1000),
}
# Settings restricted to a fixed set of choices.
SETTING_CHOICES: Dict[str, Tuple[str, ...]] = {
    "mode": ("diagram", "list"),
    "diagram_layout": ("tree", "force"),
}


@dataclass
class StoredState:
    geometry: str = ""
    last_directory: str = ""
    view_settings: Dict[str, object] = field(default_factory=dict)


def app_data_dir(app_name: str = APP_NAME) -> str:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA")
    else:
        base = os.getenv("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    if not base:
        base = os.path.expanduser("~")
    return os.path.join(base, app_name)


def resolve_data_dir() -> str:
    override = os.getenv(ENV_DATA_DIR)
    if override:
        return override
    return app_data_dir()


def default_state_path(filename: str = STATE_FILE) -> str:
    return os.path.join(resolve_data_dir(), filename)


def normalize_setting(key: str, value: object, default: object) -> object:
    if key in SETTING_LIMITS:
        low, high = SETTING_LIMITS[key]
        return clamp_int(value, int(default), low, high)
    if key in SETTING_CHOICES:
        text = str(value).strip().lower()
        return text if text in SETTING_CHOICES[key] else default
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def normalize_settings(raw: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    settings = dict(defaults)
    for key, value in raw.items():
        if key not in defaults:
            continue
        settings[key] = normalize_setting(key, value, defaults[key])
    return settings


def load_state(path: str, default_view_settings: Dict[str, object]) -> StoredState:
    state = StoredState(view_settings=dict(default_view_settings))
    if not os.path.exists(path):
        return state
    try:
        with open(path, "r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable state file %s: %s", path, exc)
        return state
    if not isinstance(payload, dict):
        return state
    state.geometry = str(payload.get("geometry") or "")
    state.last_directory = str(payload.get("last_directory") or "")
    saved = payload.get("view_settings", {})
    if isinstance(saved, dict):
        state.view_settings = normalize_settings(saved, default_view_settings)
    return state


def save_state(path: str, state: StoredState) -> None:
    payload = {
        "geometry": state.geometry,
        "last_directory": state.last_directory,
        "view_settings": state.view_settings,
    }
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
    except OSError as exc:
        logger.warning("Could not save state to %s: %s", path, exc)
