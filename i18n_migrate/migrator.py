# -*- coding: utf-8 -*-
"""Batch driver.

One :class:`ResourceStore` is created before the batch, shared by every
file, and flushed once afterwards. Files are processed one after another;
a file is written only after its whole traversal succeeded.
"""
from __future__ import annotations

import dataclasses
import pathlib
from typing import Dict, Iterable, List, Optional, Sequence

from .config import MigrateConfig
from .core.coordinator import RewriteCoordinator, collect_translation_keys
from .core.document import SourceDocument
from .core.store import MergeReport, ResourceStore, TranslationEntry, sync_locale_file
from .errors import SourceParseError, UnsupportedReplacementContext
from .utils.files import atomic_write, discover_files, unified_diff, write_backup
from .utils.logging import compact_json
from .utils.logging import migrate_logger as logger


@dataclasses.dataclass
class RunReport:
	scanned: int = 0
	changed: int = 0
	extracted: List[str] = dataclasses.field(default_factory=list)
	warnings: int = 0
	skipped_files: int = 0
	diffs: List[str] = dataclasses.field(default_factory=list)
	merge: Optional[MergeReport] = None
	locales: Dict[str, MergeReport] = dataclasses.field(default_factory=dict)

	def summary(self) -> Dict[str, object]:
		out: Dict[str, object] = {
			"scanned": self.scanned,
			"changed": self.changed,
			"extracted": len(self.extracted),
			"warnings": self.warnings,
			"skipped_files": self.skipped_files,
		}
		if self.merge is not None:
			out["merge"] = self.merge.to_dict()
		if self.locales:
			out["locales"] = {path: r.to_dict() for path, r in self.locales.items()}
		return out


def _display_path(scan_root: pathlib.Path, path: pathlib.Path) -> str:
	try:
		return path.relative_to(scan_root).as_posix()
	except ValueError:
		return path.as_posix()


class Migrator:
	def __init__(self, config: Optional[MigrateConfig] = None, store: Optional[ResourceStore] = None) -> None:
		self.config = config or MigrateConfig()
		if store is None:
			store = ResourceStore.load(self.config.source_map_path, self.config.key_strategy_factory)
		self.store = store

	# ── paths ────────────────────────────────────────────────────────────────
	def output_path(self, scan_root: pathlib.Path, path: pathlib.Path) -> pathlib.Path:
		if self.config.rewrite:
			return path
		return pathlib.Path(self.config.output_dir) / _display_path(scan_root, path)

	def _files(self, targets: Iterable[pathlib.Path]):
		return list(discover_files(targets, self.config.extensions, self.config.ignore))

	def _read(self, path: pathlib.Path) -> Optional[str]:
		# Safety checks: skip symlinks and very large files (configurable)
		try:
			if path.is_symlink():
				logger.warning("Skipping symlink: %s", path)
				return None
			max_size = self.config.max_file_size
			if max_size and path.stat().st_size > max_size:
				logger.warning("Skipping large file (> %d bytes): %s", max_size, path)
				return None
			return path.read_text(encoding="utf-8")
		except (UnicodeDecodeError, OSError) as e:
			logger.warning("Failed to read %s: %s", path, e)
			return None

	def _parse(self, scan_root: pathlib.Path, path: pathlib.Path, report: RunReport) -> Optional[SourceDocument]:
		text = self._read(path)
		if text is None:
			report.skipped_files += 1
			return None
		try:
			return SourceDocument.parse(text, path.suffix, _display_path(scan_root, path))
		except SourceParseError as e:
			logger.warning("Skipping %s: %s", path, e)
			report.skipped_files += 1
			return None

	# ── extract ──────────────────────────────────────────────────────────────
	def extract(self, targets: Sequence[pathlib.Path], dry: bool = False, emit_diff: bool = False) -> RunReport:
		"""Rewrite every target file, then flush the source map and locale files."""
		report = RunReport()
		try:
			for scan_root, path in self._files(targets):
				self.process_file(scan_root, path, report, dry=dry, emit_diff=emit_diff)
		except UnsupportedReplacementContext as e:
			logger.error("Aborting batch: %s", e)
			if not dry:
				# keys already written into earlier files stay reserved
				self.store.save()
			raise
		if not dry:
			self.store.save()
		projection = self.store.project()
		for locale_path in self.config.locale_paths:
			report.locales[locale_path] = sync_locale_file(pathlib.Path(locale_path), projection, clean=False, dry=dry)
		logger.info("Done. %s", compact_json(report.summary()))
		return report

	def process_file(
		self,
		scan_root: pathlib.Path,
		path: pathlib.Path,
		report: RunReport,
		dry: bool = False,
		emit_diff: bool = False,
	) -> bool:
		report.scanned += 1
		doc = self._parse(scan_root, path, report)
		if doc is None:
			return False

		result = RewriteCoordinator(doc, self.store, self.config).run()
		if result.warnings:
			logger.warning("%s: %d warning(s)", doc.display_path, len(result.warnings))
			for message in result.warnings:
				logger.warning("  %s", message)
			report.warnings += len(result.warnings)

		out_path = self.output_path(scan_root, path)
		original = doc.source.decode("utf-8")
		new_text = doc.render()
		if not doc.changed and out_path == path:
			return False

		if dry:
			if emit_diff and doc.changed:
				report.diffs.append(unified_diff(original, new_text, path))
		else:
			if self.config.backup and out_path == path and doc.changed:
				write_backup(path, original)
			atomic_write(out_path, new_text)

		for entry in result.entries:
			self.store.add(entry)
			report.extracted.append(entry.key)
		if doc.changed:
			report.changed += 1
			logger.info("%s: %d string(s) extracted", doc.display_path, len(result.entries))
		return doc.changed

	# ── sync ─────────────────────────────────────────────────────────────────
	def sync(
		self,
		targets: Sequence[pathlib.Path],
		clean: bool = False,
		locale_paths: Optional[Sequence[str]] = None,
		dry: bool = False,
	) -> RunReport:
		"""Reconcile the source map and locale files with keys used in code."""
		report = RunReport()
		referenced: Dict[str, TranslationEntry] = {}
		for scan_root, path in self._files(targets):
			report.scanned += 1
			doc = self._parse(scan_root, path, report)
			if doc is None:
				continue
			for entry in collect_translation_keys(doc, self.config.call_name):
				# unknown keys use the key itself as template
				referenced.setdefault(entry.key, self.store.data.get(entry.key, entry))

		report.merge = self.store.merge(referenced, prune=clean)
		self.store.check_numbering()
		if not dry:
			self.store.save()

		projection = self.store.project()
		for locale_path in locale_paths or self.config.locale_paths:
			logger.info("Start syncing %s", locale_path)
			report.locales[locale_path] = sync_locale_file(pathlib.Path(locale_path), projection, clean=clean, dry=dry)
		logger.info("Done. %s", compact_json(report.summary()))
		return report
