"""Migrate hard-coded Chinese UI text in JS/JSX/TS sources to keyed translation calls."""

__version__ = "0.3.0"

from .config import MigrateConfig, load_config
from .core.store import ResourceStore
from .migrator import Migrator

__all__ = ["MigrateConfig", "Migrator", "ResourceStore", "load_config", "__version__"]
