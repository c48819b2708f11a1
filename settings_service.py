"""Centralized settings loader for the application.

Infrastructure-level module: must not import from services/, repositories/,
config.py, or logging_config.py to avoid circular imports.
"""

import tomllib
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SETTINGS_PATH = Path(__file__).resolve().parent / "settings.toml"

_cached_settings: dict | None = None


def _load_settings(settings_path: Path = SETTINGS_PATH) -> dict:
    """Load and cache settings from the TOML file."""
    global _cached_settings
    if _cached_settings is not None:
        return _cached_settings
    try:
        with open(settings_path, "rb") as f:
            _cached_settings = tomllib.load(f)
            return _cached_settings
    except Exception as e:
        logger.error("Failed to load settings from %s: %s", settings_path, e)
        raise


def reset_settings_cache() -> None:
    """Forget the cached settings so the next read hits the file again."""
    global _cached_settings
    _cached_settings = None


class SettingsService:
    """Read-only accessor for application settings.

    Settings are cached at module level after the first read.
    """

    def __init__(self, settings_path: str | Path = SETTINGS_PATH):
        self.settings = _load_settings(Path(settings_path))

    @property
    def settings_dict(self) -> dict:
        return self.settings

    @property
    def log_level(self) -> str:
        return self.settings["env"]["log_level"]

    @property
    def env(self) -> str:
        return self.settings["env"]["env"]

    @property
    def database_alias(self) -> str:
        return self.settings["env_db_aliases"][self.env]

    @property
    def db_paths(self) -> dict[str, str]:
        return dict(self.settings["db_paths"])

    @property
    def default_view_mode(self) -> str:
        return self.settings.get("preferences", {}).get("default_view_mode", "grid")

    @property
    def default_group_mode(self) -> bool:
        return bool(self.settings.get("preferences", {}).get("default_group_mode", False))

    @property
    def fallback_sort_fields(self) -> list[str]:
        return list(self.settings.get("preferences", {}).get("fallback_sort_fields", ["extPick"]))

    @property
    def default_type_keyword(self) -> str:
        return self.settings.get("preferences", {}).get("default_type_keyword", "issued")

    @property
    def placeholder_image(self) -> str:
        return self.settings.get("grouping", {}).get("placeholder_image", "/placeholder.svg")

    @property
    def fallback_category(self) -> str:
        return self.settings.get("grouping", {}).get("fallback_category", "Uncategorized")

    @property
    def unknown_sultan(self) -> str:
        return self.settings.get("grouping", {}).get("unknown_sultan", "Unknown")

    @property
    def default_sultan_order(self) -> list[str]:
        return list(self.settings.get("grouping", {}).get("default_sultan_order", []))

    @property
    def default_country_id(self) -> str:
        return self.settings.get("catalog", {}).get("default_country_id", "")

    @property
    def collation_locale(self) -> str:
        return self.settings.get("catalog", {}).get("collation_locale", "")
