"""Settings and resource path utilities (works in dev and PyInstaller onefile)."""
import os
import sys
import json
import logging
from typing import Dict, Any

LOGGER = logging.getLogger("CanvasMirror.Settings")


def get_default_settings() -> Dict[str, Any]:
    """Return default application settings."""
    return {
        "mirror": {
            "surface": "#board",
            "image_classes": "",
            "surface_classes": "",
            "surface_attributes": {},
            "file_type": "image/jpeg",
            "quality": 0.7,
            "interval_ms": None,
            "retry_delay_ms": 100,
            "retry_max_attempts": None,
            "retry_warn_after": 50,
            "default_style": True,
        },
        "demo": {
            "width": 480,
            "height": 320,
            "frame_ms": 33,
            "background": "#101820",
        },
        "log_level": "INFO",
    }


def merge_dict(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge overlay dict into base dict."""
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_dict(base[key], value)
        else:
            base[key] = value
    return base


def _app_base_dir() -> str:
    """Directory for external, writable files (next to the executable in frozen mode)."""
    if getattr(sys, 'frozen', False):  # PyInstaller
        return os.path.dirname(sys.executable)
    # Dev: project root (two levels up from this file)
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))


def _resolve(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(_app_base_dir(), path)


def load_settings(path: str) -> Dict[str, Any]:
    """
    Load settings from JSON file, merging with defaults.

    Args:
        path: Path to settings file, relative paths live next to the app

    Returns:
        Settings dictionary
    """
    defaults = get_default_settings()
    target_path = _resolve(path)

    if not os.path.exists(target_path):
        return defaults

    try:
        with open(target_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        LOGGER.warning("Could not read settings from %s: %s; using defaults", target_path, exc)
        return defaults

    if not isinstance(data, dict):
        LOGGER.warning("Settings file %s is not a JSON object; using defaults", target_path)
        return defaults
    return merge_dict(defaults, data)


def save_settings(path: str, settings: Dict[str, Any]) -> None:
    """
    Save settings to JSON file.

    Args:
        path: Path to settings file
        settings: Settings dictionary to save
    """
    target_path = _resolve(path)
    try:
        folder = os.path.dirname(target_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with open(target_path, 'w', encoding='utf-8') as f:
            json.dump(settings, f, ensure_ascii=False, indent=2)
    except OSError as exc:
        LOGGER.warning("Could not save settings to %s: %s", target_path, exc)
