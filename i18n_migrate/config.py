# -*- coding: utf-8 -*-
"""Run configuration.

Defaults live on :class:`MigrateConfig`; an optional JSON file (``--config``)
is laid over them and CLI flags are laid over that. Strategies are Python
objects and can only be replaced programmatically.
"""
from __future__ import annotations

import dataclasses
import json
import pathlib
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import ConfigError
from .strategy import (
	CommentStrategy,
	KeyStrategy,
	TemplateCommentStrategy,
	VariableStrategy,
	looks_like_date_format,
)

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")

DEFAULT_LOCALE_PATHS: Tuple[str, ...] = (
	"locales/zh/default.json",
	"locales/en/default.json",
)

DEFAULT_IGNORES: Tuple[str, ...] = (
	"**/node_modules/**",
	"**/dist/**",
	"**/.git/**",
	"**/build/**",
	"**/coverage/**",
)


@dataclasses.dataclass
class MigrateConfig:
	call_name: str = "i18n.t"  # translation function emitted into code
	interpolation_prefix: str = "{"
	interpolation_suffix: str = "}"
	rewrite: bool = True  # False: write into output_dir instead of in place
	output_dir: str = "i18n-output"
	resource_dir: str = "locales"
	source_map_name: str = "source.json"
	locale_paths: Tuple[str, ...] = DEFAULT_LOCALE_PATHS
	fuse_jsx: bool = False
	comment: bool = False
	extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
	ignore: Tuple[str, ...] = DEFAULT_IGNORES
	max_file_size: Optional[int] = 2 * 1024 * 1024
	backup: bool = True
	log_level: str = "INFO"

	key_strategy_factory: Callable[[int], KeyStrategy] = KeyStrategy
	variable_strategy_factory: Callable[[], VariableStrategy] = VariableStrategy
	comment_strategy: Optional[CommentStrategy] = None
	date_format_predicate: Callable[[Optional[str]], bool] = looks_like_date_format

	def __post_init__(self) -> None:
		if self.comment_strategy is None:
			self.comment_strategy = TemplateCommentStrategy() if self.comment else CommentStrategy()

	@property
	def source_map_path(self) -> pathlib.Path:
		return pathlib.Path(self.resource_dir) / self.source_map_name

	def placeholder(self, name: str) -> str:
		return f"{self.interpolation_prefix}{name}{self.interpolation_suffix}"


# Keys a JSON config file may set, with the types they accept.
_FILE_KEYS: Dict[str, Tuple[type, ...]] = {
	"call_name": (str,),
	"interpolation_prefix": (str,),
	"interpolation_suffix": (str,),
	"rewrite": (bool,),
	"output_dir": (str,),
	"resource_dir": (str,),
	"source_map_name": (str,),
	"locale_paths": (list,),
	"fuse_jsx": (bool,),
	"comment": (bool,),
	"extensions": (list,),
	"ignore": (list,),
	"max_file_size": (int, type(None)),
	"backup": (bool,),
	"log_level": (str,),
}

_TUPLE_KEYS = {"locale_paths", "extensions", "ignore"}


def config_from_mapping(data: Dict[str, Any], base: Optional[MigrateConfig] = None) -> MigrateConfig:
	"""Overlay ``data`` on ``base`` (or the defaults), validating keys and types."""
	if not isinstance(data, dict):
		raise ConfigError("configuration must be a JSON object")
	overrides: Dict[str, Any] = {}
	for key, value in data.items():
		if key not in _FILE_KEYS:
			raise ConfigError(f"unknown configuration key: {key}")
		allowed = _FILE_KEYS[key]
		# bool is an int subclass; keep max_file_size strictly numeric
		if isinstance(value, bool) and bool not in allowed:
			raise ConfigError(f"{key}: expected {allowed[0].__name__}, got bool")
		if not isinstance(value, allowed):
			raise ConfigError(f"{key}: expected {allowed[0].__name__}, got {type(value).__name__}")
		if key in _TUPLE_KEYS:
			if not all(isinstance(v, str) for v in value):
				raise ConfigError(f"{key}: expected a list of strings")
			value = tuple(value)
		overrides[key] = value
	if "interpolation_prefix" in overrides and not overrides["interpolation_prefix"]:
		raise ConfigError("interpolation_prefix must not be empty")

	base = base or MigrateConfig()
	if "comment" in overrides and overrides["comment"] != base.comment:
		# re-derive the default comment strategy from the new flag
		overrides["comment_strategy"] = None
	return dataclasses.replace(base, **overrides)


def load_config(path: Optional[pathlib.Path], base: Optional[MigrateConfig] = None) -> MigrateConfig:
	"""Load a JSON config file over the defaults; ``None`` returns the defaults."""
	if path is None:
		return base or MigrateConfig()
	try:
		raw = pathlib.Path(path).read_text(encoding="utf-8")
	except OSError as e:
		raise ConfigError(f"cannot read config {path}: {e}") from e
	try:
		data = json.loads(raw or "{}")
	except json.JSONDecodeError as e:
		raise ConfigError(f"invalid JSON in config {path}: {e}") from e
	return config_from_mapping(data, base)
