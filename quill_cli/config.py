"""
Configuration management for the quill CLI.

Settings live in ``$QUILL_HOME/config.yaml`` (default ``~/.quill``).  A
missing file means defaults; a partial file is deep-merged over the defaults
so new keys appear without users editing their config.
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from engine.models import QueryOptions
from workspace.env_loader import load_dotenv_with_fallback
from workspace.text_io import open_text, read_text_with_fallback

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "search": {
        "case_sensitive": False,
        "whole_word": False,
        "use_regex": False,
        "include": "",
        "exclude": "",
        "context_chars": 24,
    },
    "files": {
        "extensions": [".md", ".markdown", ".txt"],
    },
    "logging": {
        "level": "WARNING",
    },
}

HOME_SUBDIRS = ("logs",)


def get_quill_home() -> Path:
    """Return the quill home directory (``QUILL_HOME`` overrides ``~/.quill``)."""
    return Path(os.getenv("QUILL_HOME", Path.home() / ".quill"))


def get_config_path() -> Path:
    return get_quill_home() / "config.yaml"


def ensure_quill_home() -> Path:
    home = get_quill_home()
    for sub in HOME_SUBDIRS:
        (home / sub).mkdir(parents=True, exist_ok=True)
    return home


def load_env() -> bool:
    """Load ``$QUILL_HOME/.env`` into the process environment, if present."""
    return load_dotenv_with_fallback(get_quill_home() / ".env", logger=logger)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config() -> Dict[str, Any]:
    """Load config.yaml merged over DEFAULT_CONFIG."""
    path = get_config_path()
    if not path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)
    try:
        text, _ = read_text_with_fallback(path)
        user_config = yaml.safe_load(text) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read %s, using defaults: %s", path, e)
        return copy.deepcopy(DEFAULT_CONFIG)
    if not isinstance(user_config, dict):
        logger.warning("Ignoring %s: top level is not a mapping", path)
        return copy.deepcopy(DEFAULT_CONFIG)
    return _deep_merge(DEFAULT_CONFIG, user_config)


def save_config(config: Dict[str, Any]) -> Path:
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open_text(path, "w") as f:
        yaml.safe_dump(config, f, sort_keys=False, allow_unicode=True)
    return path


def get_log_level(config: Optional[Dict[str, Any]] = None) -> str:
    """``QUILL_LOG_LEVEL`` wins over the ``logging.level`` config key."""
    config = config or load_config()
    level = os.getenv("QUILL_LOG_LEVEL") or config.get("logging", {}).get("level", "WARNING")
    return str(level).upper()


def query_options_from_config(config: Dict[str, Any], **overrides: Optional[bool]) -> QueryOptions:
    """Build QueryOptions from the ``search`` section, applying non-None overrides."""
    search = config.get("search", {})
    values = {
        "case_sensitive": search.get("case_sensitive", False),
        "whole_word": search.get("whole_word", False),
        "use_regex": search.get("use_regex", False),
    }
    for key, value in overrides.items():
        if value is not None:
            values[key] = value
    return QueryOptions.from_dict(values)
