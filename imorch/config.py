"""Configuration loader and validator for imorch.

Provides ``load_config(path)`` which reads a JSON config (with
comment and trailing-comma tolerant sanitizer) and merges user
overrides from ``~/.config/imorch/config.json``.

Also provides ``validate_config(conf)`` which normalizes and
validates config keys, raising ``ValueError`` on invalid values, and
``PlatformCommands`` which maps intents to the active platform's
command strings.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import sys
from dataclasses import dataclass

from imorch.core.states import Intent
from imorch.persistence import save_json

logger = logging.getLogger(__name__)

PLATFORMS = ('macos', 'windows', 'linux')
COMMAND_KEYS = ('insert_enter', 'insert_leave', 'math_enter', 'math_leave')
PLATFORM_KEYS = ('path_prefix',) + COMMAND_KEYS

DEFAULT_CONFIG_PATH = '~/.config/imorch/config.json'

# Single source of truth for default configuration
DEFAULT_CONFIG: dict = {
    'macos': {
        'path_prefix': '/opt/homebrew/bin',
        'insert_enter': 'macism im.rime.inputmethod.Squirrel.Hans',
        'insert_leave': 'macism com.apple.keylayout.ABC',
        'math_enter': 'macism com.apple.keylayout.ABC',
        'math_leave': 'macism im.rime.inputmethod.Squirrel.Hans',
    },
    'windows': {
        'path_prefix': '%USERPROFILE%\\AppData\\Local\\bin',
        'insert_enter': 'im-select.exe 2052',
        'insert_leave': 'im-select.exe 1033',
        'math_enter': 'im-select.exe 1033',
        'math_leave': 'im-select.exe 2052',
    },
    'linux': {
        'path_prefix': '/usr/bin',
        'insert_enter': 'ibus engine cn.some-ime',
        'insert_leave': 'ibus engine xkb:us::eng',
        'math_enter': 'ibus engine xkb:us::eng',
        'math_leave': 'ibus engine cn.some-ime',
    },
    'status_bar': False,
    'async_exec': True,
    'debug': False,
    'dedup_window': 0.3,
}


def default_config() -> dict:
    """Deep copy of DEFAULT_CONFIG (platform sections are nested dicts)."""
    return copy.deepcopy(DEFAULT_CONFIG)


def detect_platform(platform: str | None = None) -> str:
    """Map ``sys.platform`` to one of PLATFORMS."""
    platform = platform or sys.platform
    if platform == 'darwin':
        return 'macos'
    if platform.startswith('win') or platform == 'cygwin':
        return 'windows'
    return 'linux'


@dataclass(frozen=True)
class PlatformCommands:
    """Command strings for one platform; blank means no-op."""

    path_prefix: str = ''
    insert_enter: str = ''
    insert_leave: str = ''
    math_enter: str = ''
    math_leave: str = ''

    @classmethod
    def from_config(cls, conf: dict, platform: str) -> "PlatformCommands":
        section = conf.get(platform) or {}
        return cls(**{k: section.get(k, '') for k in PLATFORM_KEYS})

    def for_intent(self, intent: Intent) -> str:
        return {
            Intent.INSERT_ENTER: self.insert_enter,
            Intent.INSERT_LEAVE: self.insert_leave,
            Intent.MATH_ENTER: self.math_enter,
            Intent.MATH_LEAVE: self.math_leave,
        }[intent]


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _sanitize_json_text(s: str) -> str:
    """Remove ``#``/``//`` comments and trailing commas from JSON-like text."""
    import re

    # Hash-style line comments
    s = re.sub(r"^[ \t]*#.*$", "", s, flags=re.MULTILINE)
    # C++-style line comments (whole line or after a value, not inside URLs)
    s = re.sub(r"(^|[ \t,{\[])//.*$", r"\1", s, flags=re.MULTILINE)
    # Trailing commas before } or ]
    s = re.sub(r",[ \t\r\n]+(\}|\])", r"\1", s)
    return s


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------

def _validate_platform(name: str, section, defaults: dict) -> dict:
    if not isinstance(section, dict):
        raise ValueError(f"Invalid '{name}': must be an object")
    out = dict(defaults)
    for key, value in section.items():
        if key not in PLATFORM_KEYS:
            raise ValueError(f"Invalid '{name}.{key}': unknown key")
        if not isinstance(value, str):
            raise ValueError(f"Invalid '{name}.{key}': must be a string")
        out[key] = value
    return out


def validate_config(conf: dict | None) -> dict:
    """Validate and normalize configuration dictionary.

    Platform sections are merged key-by-key with defaults, so a file may
    override a single command. Blank commands are valid (no-op).
    Returns a normalized dict with all expected keys.
    Raises ``ValueError`` on invalid values.
    """
    if conf is None:
        conf = {}

    defaults = default_config()
    out = default_config()

    for platform in PLATFORMS:
        if platform in conf:
            out[platform] = _validate_platform(platform, conf[platform], defaults[platform])

    for flag in ('status_bar', 'async_exec', 'debug'):
        value = conf.get(flag, defaults[flag])
        if not isinstance(value, bool):
            raise ValueError(f"Invalid '{flag}': must be boolean")
        out[flag] = value

    # dedup_window: float in [0.3, 10.0]
    dw = conf.get('dedup_window', defaults['dedup_window'])
    if isinstance(dw, bool):
        raise ValueError(f"Invalid 'dedup_window': {dw}")
    try:
        dw_val = float(dw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid 'dedup_window': {dw}")
    if not (0.3 <= dw_val <= 10.0):
        raise ValueError(f"Invalid 'dedup_window': {dw} (must be between 0.3 and 10.0)")
    out['dedup_window'] = dw_val

    return out


def _read_and_merge(path: str, target_config: dict, debug: bool = False) -> bool:
    """Read a JSON file, validate, and merge into *target_config*.

    Returns True on success, False on any error.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = f.read()
    except OSError as exc:
        logger.warning("Cannot read config %s: %s", path, exc)
        return False

    try:
        cfg = json.loads(raw)
    except json.JSONDecodeError:
        try:
            cfg = json.loads(_sanitize_json_text(raw))
        except json.JSONDecodeError as exc:
            logger.warning("JSON parse error in %s: %s", path, exc)
            return False

    if not isinstance(cfg, dict):
        logger.warning("Invalid config %s: top level must be an object", path)
        return False

    try:
        validated = validate_config(cfg)
    except ValueError as verr:
        logger.warning("Invalid config %s: %s", path, verr)
        return False

    # Only override keys explicitly present in source
    for k in cfg:
        if k in validated:
            target_config[k] = validated[k]
    if debug:
        logger.debug("Config merged from %s: %s", path, sorted(cfg))
    return True


# ------------------------------------------------------------------
# Top-level loader
# ------------------------------------------------------------------

def load_config(config_path: str | None = None, debug: bool = False) -> dict:
    """Load and merge configuration.

    If *config_path* is given, uses only that file (returns defaults if
    the file does not exist).  Otherwise falls back to
    ``~/.config/imorch/config.json``.

    Returns the effective configuration dict (always has all default keys).
    """
    config = default_config()
    path = config_path if config_path is not None else os.path.expanduser(DEFAULT_CONFIG_PATH)
    if os.path.exists(path):
        _read_and_merge(path, config, debug=debug)
    return config


# ------------------------------------------------------------------
# ConfigManager
# ------------------------------------------------------------------

class ConfigManager:
    """Centralized configuration management with load/save/validate."""

    def __init__(self, config_path: str | None = None, debug: bool = False):
        self._config_path = config_path or os.path.expanduser(DEFAULT_CONFIG_PATH)
        self._debug = debug
        self._config: dict = default_config()
        # Runtime values (CLI flags) re-applied over every (re)load
        self._overrides: dict = {}
        self._load_config()

    # -- internal -------------------------------------------------------

    def _load_config(self) -> None:
        """Reset to defaults, then overlay from file (if exists)."""
        self._config = default_config()
        if self._config_path and os.path.exists(self._config_path):
            _read_and_merge(self._config_path, self._config, debug=self._debug)
        self._config.update(self._overrides)

    # -- public ---------------------------------------------------------

    def reload(self) -> bool:
        """Reload configuration from file. Returns True on success."""
        try:
            self._load_config()
            return True
        except Exception:
            logger.exception("Config reload failed")
            return False

    def save(self, target_path: str | None = None) -> bool:
        """Atomically save configuration to file. Returns True on success."""
        save_path = target_path or self._config_path
        try:
            save_json(save_path, self.get_all())
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Cannot save config to %s: %s", save_path, exc)
            return False

    def get(self, key: str, default=None):
        """Get a single configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value) -> None:
        """Set a single configuration value."""
        self._config[key] = value

    def update(self, updates: dict) -> None:
        """Update multiple configuration values."""
        self._config.update(updates)

    def get_all(self) -> dict:
        """Return all configuration (excluding internal keys)."""
        return {k: copy.deepcopy(v) for k, v in self._config.items() if not k.startswith('_')}

    def override(self, key: str, value) -> None:
        """Set a value that takes precedence over the file across reloads."""
        self._overrides[key] = value
        self._config[key] = value

    @property
    def overrides(self) -> dict:
        return dict(self._overrides)

    def reset_to_defaults(self) -> None:
        """Reset configuration to DEFAULT_CONFIG; overrides still apply."""
        self._config = default_config()
        self._config.update(self._overrides)

    def validate(self) -> bool:
        """Validate current configuration. Returns True if valid."""
        try:
            validate_config(self.get_all())
            return True
        except ValueError:
            return False

    def platform_commands(self, platform: str | None = None) -> PlatformCommands:
        """Commands for *platform* (default: the running platform)."""
        return PlatformCommands.from_config(self._config, platform or detect_platform())

    @property
    def config_path(self) -> str:
        """Current config file path."""
        return self._config_path
