"""
Configuration and preference storage for flexitree.

Everything lives in one directory:
  ~/.flexitree/  (default)
    ├── config.json   editor defaults (format, reading direction, enhanced mode)
    └── prefs.json    per-view preferences (pan, zoom, the locked element)

The directory can be configured via:
  - Environment variable: FLEXITREE_CONFIG_DIR
  - XDG_DATA_HOME (uses $XDG_DATA_HOME/flexitree)
  - Default: ~/.flexitree/ (falls back to /tmp/flexitree-{username})
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .indices import IndexFormat

logger = logging.getLogger(__name__)

READING_DIRECTIONS = ("ltr", "rtl")


def get_flexitree_config_dir(create: bool = True) -> Path:
    """
    Get the flexitree configuration directory.

    Checks in order:
    1. FLEXITREE_CONFIG_DIR environment variable (highest priority)
    2. XDG_DATA_HOME environment variable (if set)
    3. ~/.flexitree/ (falls back to /tmp/flexitree-{username} if home is not writable)

    Args:
        create: If True, create the directory if it doesn't exist.

    Returns:
        Path to the flexitree config directory
    """
    if "FLEXITREE_CONFIG_DIR" in os.environ:
        base = Path(os.environ["FLEXITREE_CONFIG_DIR"])
    elif "XDG_DATA_HOME" in os.environ:
        base = Path(os.environ["XDG_DATA_HOME"]) / "flexitree"
    else:
        base = None
        try:
            candidate = Path.home() / ".flexitree"
            if not create or candidate.exists() or os.access(candidate.parent, os.W_OK):
                base = candidate
        except (RuntimeError, KeyError):
            # Path.home() fails for system users without a home directory
            base = None
        if base is None:
            try:
                import getpass

                base = Path(f"/tmp/flexitree-{getpass.getuser()}")
            except Exception:
                base = Path("/tmp/flexitree")

    if create:
        try:
            base.mkdir(parents=True, exist_ok=True)
        except (OSError, PermissionError):
            # Return the path anyway; writers report the failure
            pass
    return base


def get_config_file(create_dir: bool = True) -> Path:
    """Get the path to the flexitree configuration file."""
    return get_flexitree_config_dir(create=create_dir) / "config.json"


def get_prefs_file(create_dir: bool = True) -> Path:
    """Get the path to the view preferences file."""
    return get_flexitree_config_dir(create=create_dir) / "prefs.json"


def _read_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def _write_json(path: Path, data: dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def read_config() -> dict:
    """
    Read the flexitree configuration file.

    Returns:
        Dictionary with configuration values (empty dict if file doesn't exist)
    """
    return _read_json(get_config_file(create_dir=False))


def write_config(config: dict) -> None:
    """
    Write configuration to the flexitree config file, keeping other settings.

    Args:
        config: Dictionary with configuration values
    """
    config_file = get_config_file()
    existing_config = read_config()
    existing_config.update(config)
    _write_json(config_file, existing_config)


def get_default_format() -> str:
    """Default index format (``CoNLL-U`` unless configured)."""
    value = read_config().get("default_format")
    if not value:
        return IndexFormat.CONLLU.value
    return IndexFormat.coerce(value).value


def set_default_format(fmt: str) -> None:
    write_config({"default_format": IndexFormat.coerce(fmt).value})


def get_reading_direction() -> str:
    value = read_config().get("reading_direction", "ltr")
    return value if value in READING_DIRECTIONS else "ltr"


def set_reading_direction(direction: str) -> None:
    """
    Set the default reading direction.

    Args:
        direction: ``ltr`` or ``rtl``
    """
    direction = (direction or "").strip().lower()
    if direction not in READING_DIRECTIONS:
        raise ValueError(f"Unknown reading direction '{direction}' (expected ltr or rtl)")
    write_config({"reading_direction": direction})


def get_default_enhanced() -> bool:
    return bool(read_config().get("enhanced", False))


def set_default_enhanced(enabled: bool) -> None:
    write_config({"enhanced": bool(enabled)})


class JsonPrefsStore:
    """
    Preferences kept as one JSON object per key in ``prefs.json``.

    ``get_prefs`` returns None for a missing key; ``set_prefs`` with None
    removes the key.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else get_prefs_file()

    def _read(self) -> Dict[str, Any]:
        return _read_json(self.path)

    def get_prefs(self, key: str) -> Optional[dict]:
        value = self._read().get(key)
        return dict(value) if isinstance(value, dict) else None

    def set_prefs(self, key: str, value: Optional[dict]) -> None:
        data = self._read()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = dict(value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        _write_json(self.path, data)
