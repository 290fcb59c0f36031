# FILE: i18n_migrate/utils/logging.py
"""
Unified logging helpers for the i18n migration tool.

- One package logger ("i18n_migrate") writing to stderr.
- Honors log level from configuration or the I18N_MIGRATE_LOG_LEVEL environment variable.
- Small helpers to compact JSON for report lines and to point warnings at source locations.
"""

import json
import logging
import os
from contextlib import contextmanager
from typing import Any, Optional

LOG_LEVEL_ENV = "I18N_MIGRATE_LOG_LEVEL"


# ---------------------------
# Level helpers
# ---------------------------

def _level_from_string(level_str: Optional[str], default: int = logging.INFO) -> int:
    """Map string level to logging constant; defaults to INFO on unknown."""
    if not level_str:
        return default
    level = getattr(logging, str(level_str).upper(), None)
    return level if isinstance(level, int) else default


def _level_from_env(default: int = logging.INFO) -> int:
    """Read desired log level from the environment."""
    return _level_from_string(os.environ.get(LOG_LEVEL_ENV), default=default)


# ---------------------------
# Public logger factory
# ---------------------------

def get_migrate_logger(
    name: str = "i18n_migrate",
    *,
    default_level: int = logging.INFO,
) -> logging.Logger:
    """
    Create or return the package logger.

    A single stderr handler is attached on first use; callers may configure
    logging further (e.g. the CLI raises the level with --verbose).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(h)
        logger.propagate = False
    logger.setLevel(_level_from_env(default=default_level))
    return logger


def set_level(level: Any) -> None:
    """Apply a configured level (name or int) to the package logger."""
    if os.environ.get(LOG_LEVEL_ENV):
        return  # environment wins over configuration
    if isinstance(level, int):
        migrate_logger.setLevel(level)
    else:
        migrate_logger.setLevel(_level_from_string(level))


# Singleton logger used across the package
migrate_logger = get_migrate_logger()


# ---------------------------
# Format utilities
# ---------------------------

def compact_json(obj: Any, limit: int = 1200) -> str:
    """Compact JSON string for logging; truncate if too long."""
    try:
        s = json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        s = str(obj)
    return s if len(s) <= limit else s[:limit] + "…(truncated)"


def shorten(snippet: str, limit: int = 80) -> str:
    """Single-line preview of a source snippet."""
    one_line = " ".join(snippet.split())
    return one_line if len(one_line) <= limit else one_line[:limit] + "…"


def describe_location(location: Any, snippet: Optional[str] = None) -> str:
    """`file:line:col` plus a short snippet preview, for warnings."""
    if snippet:
        return f"{location} `{shorten(snippet)}`"
    return str(location)


# ---------------------------
# Temporary level override
# ---------------------------

@contextmanager
def temporarily(level: int):
    """
    Temporarily raise/lower the package logger level.

    Example:
        with temporarily(logging.DEBUG):
            # noisy section
            ...
    """
    logger = migrate_logger
    old = logger.level
    try:
        logger.setLevel(level)
        yield logger
    finally:
        logger.setLevel(old)
