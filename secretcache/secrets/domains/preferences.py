"""Persistent user preferences for secretcache.

Stored as JSON in the XDG config directory:
~/.config/secretcache/preferences.json

The only preference read by the library today is ``config_path``, which
points the config loader at a YAML file outside the default location.
"""
import json
from pathlib import Path
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

PREFERENCES_DIR = Path.home() / ".config" / "secretcache"
PREFERENCES_FILE = PREFERENCES_DIR / "preferences.json"

CONFIG_PATH_KEY = "config_path"


def _read() -> Dict[str, Any]:
    if not PREFERENCES_FILE.exists():
        return {}

    try:
        data = json.loads(PREFERENCES_FILE.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Ignoring unreadable preferences file {PREFERENCES_FILE}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Ignoring preferences file {PREFERENCES_FILE}: expected a JSON object")
        return {}
    return data


def _write(preferences: Dict[str, Any]) -> None:
    PREFERENCES_DIR.mkdir(parents=True, exist_ok=True)
    PREFERENCES_FILE.write_text(json.dumps(preferences, indent=2, sort_keys=True))


def get_preference(key: str) -> Optional[Any]:
    """Return the stored value for key, or None."""
    return _read().get(key)


def set_preference(key: str, value: Any) -> None:
    """Store value under key, creating the preferences file if needed."""
    preferences = _read()
    preferences[key] = value
    _write(preferences)
    logger.info(f"Preference '{key}' set to: {value}")


def clear_preference(key: str) -> bool:
    """
    Remove key from the preferences file.

    Returns:
        True if the key was present
    """
    preferences = _read()
    if key not in preferences:
        logger.debug(f"Preference '{key}' not set, nothing to clear")
        return False

    del preferences[key]
    _write(preferences)
    logger.info(f"Preference '{key}' cleared")
    return True
