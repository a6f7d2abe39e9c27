"""Settings persistence for editor preferences.

Settings are stored in a JSON file in an OS-appropriate location and survive
application restarts. Each document path has its own settings; values that
are missing or invalid fall back to ``DEFAULT_SETTINGS``.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

from .constants import EditorConstants

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    'history_capacity': EditorConstants.HISTORY_CAPACITY,
    'autoformat': True,
    'smart_arrows': True,
    'autosave': True,
    'include_block_ids': True,
}

BOOLEAN_SETTINGS = ('autoformat', 'smart_arrows', 'autosave', 'include_block_ids')


class SettingsPersistence:
    """Manages persistent storage of per-document settings.

    Settings are stored in a JSON file in the user's config directory,
    indexed by the absolute path of the document being edited.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        self._config_dir = Path(config_dir or platformdirs.user_config_dir("blockmark"))
        self._settings_file = self._config_dir / "settings.json"
        self._settings_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @property
    def settings_file(self) -> Path:
        return self._settings_file

    def _ensure_config_dir(self) -> None:
        try:
            self._config_dir.mkdir(parents=True, exist_ok=True)
        except (OSError, PermissionError) as e:
            logger.warning(f"Could not create config directory {self._config_dir}: {e}")

    def _load_all_settings(self) -> Dict[str, Dict[str, Any]]:
        """Load all settings from disk.

        Returns an empty dict if the file doesn't exist or can't be read.
        """
        if self._settings_cache is not None:
            return self._settings_cache

        if not self._settings_file.exists():
            self._settings_cache = {}
            return self._settings_cache

        try:
            with open(self._settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load settings from {self._settings_file}: {e}")
            self._settings_cache = {}
            return self._settings_cache

        if not isinstance(data, dict):
            logger.warning("Settings file has invalid format (not a dict), ignoring")
            data = {}
        self._settings_cache = data
        return self._settings_cache

    def _save_all_settings(self, settings: Dict[str, Dict[str, Any]]) -> bool:
        """Save all settings to disk atomically (temp file + rename)."""
        self._ensure_config_dir()
        temp_file = self._settings_file.with_suffix(EditorConstants.ATOMIC_SAVE_SUFFIX)

        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(settings, f, indent=2)
            temp_file.replace(self._settings_file)
            self._settings_cache = settings
            return True
        except OSError as e:
            logger.warning(f"Could not save settings to {self._settings_file}: {e}")
            try:
                if temp_file.exists():
                    temp_file.unlink()
            except OSError:
                pass
            return False

    def _key(self, document_path: Optional[str]) -> Optional[str]:
        if document_path is None:
            return None
        try:
            return os.path.abspath(document_path)
        except (OSError, ValueError):
            logger.warning(f"Invalid document path: {document_path}")
            return None

    def load_settings(self, document_path: Optional[str]) -> Dict[str, Any]:
        """Load the stored settings for a document (empty dict if none)."""
        key = self._key(document_path)
        if key is None:
            return {}
        doc_settings = self._load_all_settings().get(key, {})
        if not isinstance(doc_settings, dict):
            logger.warning(f"Settings for {key} are not a dict, ignoring")
            return {}
        return doc_settings.copy()

    def save_settings(self, document_path: Optional[str], settings: Dict[str, Any]) -> bool:
        key = self._key(document_path)
        if key is None:
            return False
        all_settings = dict(self._load_all_settings())
        all_settings[key] = settings
        return self._save_all_settings(all_settings)

    def effective_settings(self, document_path: Optional[str]) -> Dict[str, Any]:
        """Defaults overlaid with the valid stored settings for a document."""
        settings = dict(DEFAULT_SETTINGS)
        for key, value in self.load_settings(document_path).items():
            if value is None:
                continue
            if self.validate_setting(key, value):
                settings[key] = value
            else:
                logger.warning(f"Ignoring invalid value {value!r} for setting {key}")
        return settings

    def validate_setting(self, key: str, value: Any) -> bool:
        if value is None:
            return True  # None means "not set"

        if key in BOOLEAN_SETTINGS:
            return isinstance(value, bool)

        if key == 'history_capacity':
            if not isinstance(value, int) or isinstance(value, bool):
                return False
            return 1 <= value <= EditorConstants.MAX_HISTORY_CAPACITY

        # Unknown settings are considered valid (forward compatibility)
        return True

    def clear_cache(self) -> None:
        self._settings_cache = None


# Global instance
_persistence: Optional[SettingsPersistence] = None


def get_persistence() -> SettingsPersistence:
    """Get the global settings persistence instance."""
    global _persistence
    if _persistence is None:
        _persistence = SettingsPersistence()
    return _persistence
