"""User settings stored next to the manual location config."""

import json
import logging
import os

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".prayertime")
SETTINGS_FILE = os.path.join(CONFIG_DIR, "settings.json")

LANGUAGES = ("en", "ar")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_SETTINGS = {
    "method": 4,            # Aladhan: Umm al-Qura University, Makkah
    "language": "en",
    "notifications": True,
    "log_level": "INFO",
}


def _valid(key: str, value) -> bool:
    if key == "method":
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0
    if key == "language":
        return value in LANGUAGES
    if key == "notifications":
        return isinstance(value, bool)
    if key == "log_level":
        return value in LOG_LEVELS
    return False


def load_settings() -> dict:
    """
    Load settings, filling anything missing or invalid from DEFAULT_SETTINGS.

    A missing or unreadable file yields the defaults.
    """
    settings = dict(DEFAULT_SETTINGS)
    if not os.path.isfile(SETTINGS_FILE):
        return settings
    try:
        with open(SETTINGS_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", SETTINGS_FILE, exc)
        return settings
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", SETTINGS_FILE)
        return settings
    for key, value in data.items():
        if _valid(key, value):
            settings[key] = value
        else:
            logger.warning("Ignoring setting %s=%r", key, value)
    return settings


def save_settings(settings: dict) -> None:
    """Persist the known settings keys."""
    os.makedirs(os.path.dirname(SETTINGS_FILE), exist_ok=True)
    data = {k: settings[k] for k in DEFAULT_SETTINGS if k in settings}
    with open(SETTINGS_FILE, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def resolve_log_level(settings: dict, override: str | None = None) -> str:
    """
    Pick the log level from an override (e.g. PRAYERTIME_LOG_LEVEL) or settings.

    Unknown names are ignored with a warning.
    """
    if override:
        level = override.strip().upper()
        if level in LOG_LEVELS:
            return level
        logger.warning("Ignoring unknown log level %r", override)
    level = str(settings.get("log_level", "")).upper()
    return level if level in LOG_LEVELS else DEFAULT_SETTINGS["log_level"]
