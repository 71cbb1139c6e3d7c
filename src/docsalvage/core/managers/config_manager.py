# src/docsalvage/core/managers/config_manager.py
import copy
import json
import logging
from typing import Any, Dict, Iterable, Optional

from docsalvage.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


def _decode_value(raw: str) -> Any:
    """'2' -> 2, 'true' -> True, 'null' -> None; anything that is not JSON stays a string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class ConfigManager:
    """
    A singleton holding the engine settings: the bundled settings.json plus
    the `KEY=VALUE` overrides given on the command line.

    Keys are dotted paths, e.g. 'recovery.max_attempts' or 'parser.features'.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self._config: Dict[str, Any] = {}
        self.reset()
        logger.debug("ConfigManager initialized.")

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        value = self._config
        for key in key_path.split('.'):
            if not isinstance(value, dict):
                return default
            value = value.get(key)
        return value if value is not None else default

    def snapshot(self) -> Dict[str, Any]:
        """A copy of the effective settings, safe to serialize or inspect."""
        return copy.deepcopy(self._config)

    def override(self, key_path: str, raw_value: str) -> Any:
        """
        Overrides one setting in memory. The raw string is decoded as JSON where it
        can be, so numbers and booleans keep their type.

        Raises:
            ValueError: If an intermediate key holds a plain value instead of a section.
        """
        *sections, name = key_path.split('.')
        target = self._config
        for section in sections:
            target = target.setdefault(section, {})
            if not isinstance(target, dict):
                raise ValueError(f"Cannot override '{key_path}': '{section}' is not a section")

        value = _decode_value(raw_value)
        previous = target.get(name)
        if previous is not None and type(previous) is not type(value):
            logger.warning(
                "Override for '%s' changes its type from %s to %s.",
                key_path, type(previous).__name__, type(value).__name__
            )
        target[name] = value
        logger.info("Configuration override: %s = %r", key_path, value)
        return value

    def apply_overrides(self, assignments: Iterable[str]):
        """Applies 'KEY=VALUE' assignments in order; later ones win."""
        for assignment in assignments:
            key_path, sep, raw_value = assignment.partition('=')
            if not sep or not key_path.strip():
                raise ValueError(f"Expected KEY=VALUE, got '{assignment}'")
            self.override(key_path.strip(), raw_value)

    def reset(self):
        """Drops all overrides and reloads the settings.json file."""
        config_path = PathUtils.get_settings_file()
        try:
            if not config_path.exists():
                logger.warning("settings.json not found at %s. Using empty config.", config_path)
                self._config = {}
                return
            with open(config_path, "r", encoding="utf-8") as f:
                self._config = json.load(f)
            logger.debug("Configuration has been (re)loaded from %s.", config_path)
        except (OSError, ValueError) as e:
            logger.error("Failed to load settings.json: %s", e, exc_info=True)
            self._config = {}


# The global singleton instance used throughout the package.
config_manager = ConfigManager()
