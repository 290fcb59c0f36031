#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
i18n-migrate: rewrite hard-coded Chinese UI text in JS/JSX/TS sources into translation calls.

Key points
- Finds the whole expression a string belongs to ("你好" + name, `共${n}条`, <p>你好{name}</p>)
  and replaces it with one call: i18n.t('k12', {val0: name}).
- Keeps a source map (locales/source.json) so keys stay stable across runs; re-running on
  already migrated code changes nothing.
- --sync reconciles the source map and locale JSON files with the keys the code still uses.

Usage Examples
--------------

1. Preview a migration (no writes):
   i18n-migrate --target src --dry-run --diff

2. Migrate in place, fusing "text {expr} text" JSX children into one key:
   i18n-migrate --target src --fuse-jsx

3. Write migrated copies elsewhere:
   i18n-migrate --target src --no-rewrite --output-dir build/i18n

4. After edits, add new keys to the locale files and drop unused ones:
   i18n-migrate --target src --sync --clean --locale-json locales/zh/default.json
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pathlib
import sys
from typing import Any, Dict, List, Optional

from ..config import MigrateConfig, load_config
from ..errors import ConfigError, CorruptPersistedStore, UnsupportedReplacementContext
from ..migrator import Migrator
from ..utils.logging import migrate_logger as logger
from ..utils.logging import set_level, temporarily


def config_from_args(args: argparse.Namespace) -> MigrateConfig:
	"""Config file first, then CLI flags that were actually given."""
	cfg = load_config(pathlib.Path(args.config) if args.config else None)
	overrides: Dict[str, Any] = {}
	if args.call:
		overrides["call_name"] = args.call
	if args.fuse_jsx:
		overrides["fuse_jsx"] = True
	if args.comment:
		overrides["comment"] = True
		overrides["comment_strategy"] = None
	if args.no_rewrite:
		overrides["rewrite"] = False
	if args.output_dir:
		overrides["output_dir"] = args.output_dir
	if args.resource_dir:
		overrides["resource_dir"] = args.resource_dir
	if args.no_backup:
		overrides["backup"] = False
	if args.ignore:
		overrides["ignore"] = tuple(cfg.ignore) + tuple(args.ignore)
	if args.locale_json:
		overrides["locale_paths"] = tuple(args.locale_json)
	if args.max_file_size is not None:
		overrides["max_file_size"] = args.max_file_size or None
	return dataclasses.replace(cfg, **overrides) if overrides else cfg


def run(args: argparse.Namespace) -> int:
	targets: List[pathlib.Path] = [pathlib.Path(t) for t in args.target]
	missing = [t for t in targets if not t.exists()]
	if missing:
		print(f"Target not found: {', '.join(str(m) for m in missing)}", file=sys.stderr)
		return 2

	try:
		cfg = config_from_args(args)
	except ConfigError as e:
		print(f"Invalid configuration: {e}", file=sys.stderr)
		return 2
	set_level(cfg.log_level)

	level = logging.DEBUG if args.verbose else logger.level
	with temporarily(level):
		try:
			migrator = Migrator(cfg)
			if args.sync:
				report = migrator.sync(targets, clean=args.clean, dry=args.dry_run)
			else:
				report = migrator.extract(targets, dry=args.dry_run, emit_diff=args.diff)
		except CorruptPersistedStore as e:
			logger.error("Corrupt resource file, nothing was renumbered: %s", e)
			return 3
		except UnsupportedReplacementContext as e:
			logger.error("Stopped: %s", e)
			return 4

	if args.diff and report.diffs:
		sys.stdout.write("\n".join(d for d in report.diffs if d))

	if args.sync and report.merge is not None:
		print(f"\nSource map: added {len(report.merge.added)}, removed {len(report.merge.removed)}")
		for path, r in report.locales.items():
			print(f"{path}: added {len(r.added)}, removed {len(r.removed)}")
	else:
		print(f"\nDone. Files changed: {report.changed}, keys extracted: {len(report.extracted)}")
	return 0


def build_arg_parser() -> argparse.ArgumentParser:
	ap = argparse.ArgumentParser(prog="i18n-migrate")
	ap.add_argument("--target", action="append", required=True, help="File or directory to scan (repeatable)")
	ap.add_argument("--config", help="JSON config file laid over the defaults")
	ap.add_argument("--call", help="Translation call to emit (default: i18n.t)")
	ap.add_argument("--fuse-jsx", action="store_true", help="Treat 'text {expr} text' JSX children as one string")
	ap.add_argument("--comment", action="store_true", help="Append /* template */ after each generated call")
	ap.add_argument("--no-rewrite", action="store_true", help="Write into --output-dir instead of in place")
	ap.add_argument("--output-dir", help="Output directory used with --no-rewrite")
	ap.add_argument("--resource-dir", help="Directory holding source.json (default: locales)")
	ap.add_argument("--dry-run", action="store_true", help="Report only; no writes")
	ap.add_argument("--diff", action="store_true", help="Print unified diff for changes (with --dry-run)")
	ap.add_argument("--no-backup", action="store_true", help="Do not write .bak backups")
	ap.add_argument("--ignore", action="append", default=[], help="Glob patterns to exclude (repeatable)")
	ap.add_argument("--max-file-size", type=int, default=None, help="Skip files larger than this many bytes (0 to disable)")
	ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

	# Resource sync
	ap.add_argument("--sync", action="store_true", help="Only sync source map and locale files with keys used in code")
	ap.add_argument("--clean", action="store_true", help="With --sync, remove keys no longer used in code")
	ap.add_argument("--locale-json", action="append", default=[], help="Locale JSON file to sync (repeatable)")
	return ap


def main(argv: Optional[List[str]] = None) -> None:
	args = build_arg_parser().parse_args(argv)
	sys.exit(run(args))


if __name__ == "__main__":
	main()
