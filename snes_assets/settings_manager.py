"""
Settings manager for the SNES asset toolkit
Handles saving and loading user preferences
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from .logging_config import get_logger

logger = get_logger("settings")


class SettingsManager:
    """Manages application settings with persistence"""

    def __init__(self, app_name="snes_assets", settings_dir: Optional[Path] = None):
        self.app_name = app_name
        self.settings_file = self._get_settings_path(settings_dir)
        self.settings = self._load_settings()

    def _get_settings_path(self, settings_dir: Optional[Path] = None) -> Path:
        """Get the appropriate settings directory for the platform"""
        if settings_dir is None:
            if os.name == "nt":  # Windows
                base = Path(os.environ.get("APPDATA", os.path.expanduser("~")))
                settings_dir = base / self.app_name
            else:  # Linux/Mac
                base = Path(os.path.expanduser("~"))
                settings_dir = base / f".{self.app_name}"

        settings_dir = Path(settings_dir)
        settings_dir.mkdir(parents=True, exist_ok=True)
        return settings_dir / "settings.json"

    def _load_settings(self) -> dict[str, Any]:
        """Load settings from file"""
        if self.settings_file.exists():
            try:
                with open(self.settings_file) as f:
                    return json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Settings file unreadable, using defaults: {e}")
                return self._get_default_settings()
        return self._get_default_settings()

    def _get_default_settings(self) -> dict[str, Any]:
        """Get default settings"""
        return {
            "importer": {
                "frame_width": 16,
                "frame_height": 16,
                "tile_depth": 4,
                "frame_duration": 4,
                "anim_name": "Imported",
            },
            "rom": {"scan_limit": 64},
            "recent_files": {"rom": [], "sheet": []},
            "preferences": {"max_recent_files": 10},
        }

    def save_settings(self):
        """Save current settings to file"""
        try:
            with open(self.settings_file, "w") as f:
                json.dump(self.settings, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings to {self.settings_file}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value"""
        keys = key.split(".")
        value = self.settings
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any):
        """Set a setting value"""
        keys = key.split(".")
        target = self.settings
        for k in keys[:-1]:
            if k not in target:
                target[k] = {}
            target = target[k]
        target[keys[-1]] = value
        self.save_settings()

    def add_recent_file(self, file_type: str, file_path: str):
        """Add a file to recent files list"""
        file_path = str(file_path)

        recent_files = self.settings.setdefault("recent_files", {})
        recent_list = recent_files.setdefault(file_type, [])

        if file_path in recent_list:
            recent_list.remove(file_path)
        recent_list.insert(0, file_path)

        max_recent = self.get("preferences.max_recent_files", 10)
        recent_files[file_type] = recent_list[:max_recent]

        self.save_settings()

    def get_recent_files(self, file_type: str) -> list:
        """Get recent files for a specific type"""
        return self.settings.get("recent_files", {}).get(file_type, [])

    def get_importer_defaults(self) -> dict[str, Any]:
        """Get last used sprite sheet import parameters"""
        defaults = self._get_default_settings()["importer"]
        return {key: self.get(f"importer.{key}", value) for key, value in defaults.items()}

    def update_importer_defaults(self, **params: Any):
        """Remember sprite sheet import parameters"""
        for key, value in params.items():
            self.settings.setdefault("importer", {})[key] = value
        self.save_settings()

    def reset_settings(self):
        """Reset all settings to defaults"""
        self.settings = self._get_default_settings()
        self.save_settings()


# Singleton instance
_settings_instance = None


def get_settings() -> SettingsManager:
    """Get the singleton settings instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = SettingsManager()
    return _settings_instance
