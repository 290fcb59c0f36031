# -*- coding: utf-8 -*-
"""Key & resource store.

Persisted source map::

    {"data": {"k1": {"template": "你好{val0}", "sourceMeta": {"file": ..., "line": 3, "column": 8}}},
     "meta": {"nextKeyNum": 2}}

``nextKeyNum`` only grows, across runs too, so a key once shipped keeps
meaning the same string. A store that cannot vouch for its numbering is
rejected instead of renumbered.
"""
from __future__ import annotations

import dataclasses
import json
import pathlib
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..errors import CorruptPersistedStore
from ..strategy import KeyStrategy
from ..utils.files import atomic_write
from ..utils.logging import migrate_logger as LOG
from .document import SourceMeta


@dataclasses.dataclass
class TranslationEntry:
	key: str
	template: str
	source_meta: Optional[SourceMeta] = None

	def to_dict(self) -> Dict[str, Any]:
		out: Dict[str, Any] = {"template": self.template}
		if self.source_meta is not None:
			out["sourceMeta"] = self.source_meta.to_dict()
		return out

	@classmethod
	def from_dict(cls, key: str, payload: Any, path: Any = None) -> "TranslationEntry":
		if not isinstance(payload, dict) or not isinstance(payload.get("template"), str):
			raise CorruptPersistedStore(f"entry {key!r} has no template", path)
		meta = payload.get("sourceMeta")
		source_meta = None
		if isinstance(meta, dict):
			try:
				source_meta = SourceMeta(str(meta["file"]), int(meta["line"]), int(meta["column"]))
			except (KeyError, TypeError, ValueError) as e:
				raise CorruptPersistedStore(f"entry {key!r} has malformed sourceMeta: {e}", path) from e
		return cls(key, payload["template"], source_meta)


@dataclasses.dataclass
class MergeReport:
	added: List[str] = dataclasses.field(default_factory=list)
	removed: List[str] = dataclasses.field(default_factory=list)

	@property
	def count(self) -> int:
		return len(self.added) + len(self.removed)

	def to_dict(self) -> Dict[str, Any]:
		return {"added": list(self.added), "removed": list(self.removed)}


def merge_mappings(old: Dict[str, Any], new: Mapping[str, Any], prune: bool = False) -> MergeReport:
	"""Merge ``new`` into ``old`` in place.

	Keys in both keep the old value. New keys are appended. With ``prune``,
	keys missing from ``new`` are dropped.
	"""
	report = MergeReport()
	if prune:
		for key in list(old):
			if key not in new:
				LOG.info("Removed: %s", key)
				report.removed.append(key)
				del old[key]
	for key, value in new.items():
		if key not in old:
			LOG.info("Added: %s", key)
			report.added.append(key)
			old[key] = value
	return report


def _reject_duplicates(path: Any) -> Callable[[List[Tuple[str, Any]]], Dict[str, Any]]:
	def hook(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
		out: Dict[str, Any] = {}
		for key, value in pairs:
			if key in out:
				raise CorruptPersistedStore(f"duplicate key {key!r}", path)
			out[key] = value
		return out

	return hook


def read_json_strict(path: pathlib.Path) -> Any:
	"""Parse JSON, refusing duplicate object keys."""
	try:
		raw = path.read_text(encoding="utf-8")
	except OSError as e:
		raise CorruptPersistedStore(f"cannot read: {e}", path) from e
	try:
		return json.loads(raw, object_pairs_hook=_reject_duplicates(path))
	except json.JSONDecodeError as e:
		raise CorruptPersistedStore(f"invalid JSON: {e}", path) from e


def write_json(path: pathlib.Path, payload: Any) -> None:
	atomic_write(path, json.dumps(payload, indent=2, ensure_ascii=False) + "\n")


class ResourceStore:
	def __init__(
		self,
		entries: Optional[Mapping[str, TranslationEntry]] = None,
		next_key_num: int = 1,
		key_strategy_factory: Callable[[int], KeyStrategy] = KeyStrategy,
		path: Optional[pathlib.Path] = None,
	) -> None:
		self.data: Dict[str, TranslationEntry] = dict(entries or {})
		self.key_strategy = key_strategy_factory(next_key_num)
		self.path = path

	# ── persistence ──────────────────────────────────────────────────────────
	@classmethod
	def from_dict(
		cls,
		payload: Any,
		key_strategy_factory: Callable[[int], KeyStrategy] = KeyStrategy,
		path: Optional[pathlib.Path] = None,
	) -> "ResourceStore":
		if not isinstance(payload, dict):
			raise CorruptPersistedStore("source map must be a JSON object", path)
		meta = payload.get("meta")
		next_key_num = meta.get("nextKeyNum") if isinstance(meta, dict) else None
		if isinstance(next_key_num, bool) or not isinstance(next_key_num, int) or next_key_num < 1:
			raise CorruptPersistedStore("meta.nextKeyNum missing or invalid", path)
		data = payload.get("data", {})
		if not isinstance(data, dict):
			raise CorruptPersistedStore("data must be a JSON object", path)
		entries = {key: TranslationEntry.from_dict(key, value, path) for key, value in data.items()}
		store = cls(entries, next_key_num, key_strategy_factory, path)
		store.check_numbering()
		return store

	@classmethod
	def load(
		cls,
		path: pathlib.Path,
		key_strategy_factory: Callable[[int], KeyStrategy] = KeyStrategy,
	) -> "ResourceStore":
		"""Load the source map; a missing file is a first run."""
		path = pathlib.Path(path)
		if not path.exists():
			LOG.debug("No source map at %s, starting from key 1", path)
			return cls(key_strategy_factory=key_strategy_factory, path=path)
		return cls.from_dict(read_json_strict(path), key_strategy_factory, path)

	def check_numbering(self) -> None:
		for key in self.data:
			num = self.key_strategy.number_of(key)
			if num is not None and num >= self.next_key_num:
				raise CorruptPersistedStore(
					f"key {key!r} is not below meta.nextKeyNum={self.next_key_num}", self.path
				)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"data": {key: entry.to_dict() for key, entry in self.data.items()},
			"meta": {"nextKeyNum": self.next_key_num},
		}

	def save(self, path: Optional[pathlib.Path] = None) -> None:
		target = pathlib.Path(path or self.path)
		write_json(target, self.to_dict())
		LOG.debug("Wrote source map %s (%d keys)", target, len(self.data))

	# ── keys ─────────────────────────────────────────────────────────────────
	@property
	def next_key_num(self) -> int:
		return self.key_strategy.count

	def allocate_key(self, template: str) -> str:
		key = self.key_strategy.next_key(template)
		if key in self.data:
			# a stale counter; renumbering would break shipped translations
			raise CorruptPersistedStore(f"allocated key {key!r} already exists", self.path)
		return key

	def add(self, entry: TranslationEntry) -> None:
		if entry.key in self.data:
			raise CorruptPersistedStore(f"duplicate key {entry.key!r}", self.path)
		self.data[entry.key] = entry

	# ── sync ─────────────────────────────────────────────────────────────────
	def merge(self, new_entries: Mapping[str, TranslationEntry], prune: bool = False) -> MergeReport:
		"""Reconcile with the full set of entries seen by the current scan.

		Existing entries are never overwritten; stale ones are dropped only with ``prune``.
		"""
		return merge_mappings(self.data, new_entries, prune=prune)

	def project(self) -> Dict[str, str]:
		"""key -> original-language template, for locale files."""
		return {key: entry.template for key, entry in self.data.items()}


def sync_locale_file(path: pathlib.Path, projection: Mapping[str, str], clean: bool = False, dry: bool = False) -> MergeReport:
	"""Merge ``projection`` into a locale JSON file, keeping hand-edited values."""
	path = pathlib.Path(path)
	existing: Dict[str, Any] = {}
	if path.exists():
		existing = read_json_strict(path)
		if not isinstance(existing, dict):
			raise CorruptPersistedStore("locale file must be a JSON object", path)
	LOG.info("Syncing %s", path)
	report = merge_mappings(existing, projection, prune=clean)
	if report.count and not dry:
		write_json(path, existing)
	elif not path.exists() and not dry:
		write_json(path, existing)
	return report
