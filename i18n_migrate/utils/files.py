# -*- coding: utf-8 -*-
"""Filesystem ops: discovery with ignore globs, atomic writes, backups, diffs."""
from __future__ import annotations

import difflib
import fnmatch
import hashlib
import os
import pathlib
import tempfile
from typing import Iterable, Iterator, List, Optional, Sequence

from .logging import migrate_logger as logger

NEWLINE = "\n"


def is_ignored(base: pathlib.Path, path: pathlib.Path, ignore_globs: Sequence[str]) -> bool:
	try:
		rel = str(path.relative_to(base)).replace("\\", "/")
	except ValueError:
		return True
	# "**/x/**" should also match a top-level "x/..."
	return any(fnmatch.fnmatch(rel, pat) or fnmatch.fnmatch("/" + rel, pat) for pat in ignore_globs)


def discover_files(
	targets: Iterable[pathlib.Path],
	include_exts: Sequence[str],
	ignore_globs: Sequence[str] = (),
) -> Iterator[tuple]:
	"""Yield ``(scan_root, path)`` for every matching file, sorted per target.

	A file target is yielded as-is with its parent as scan root.
	"""
	exts = {e.lower() for e in include_exts}
	for target in targets:
		target = pathlib.Path(target).resolve()
		if target.is_file():
			yield target.parent, target
			continue
		found: List[pathlib.Path] = sorted(
			p for p in target.rglob("*") if p.is_file() and p.suffix.lower() in exts
		)
		for p in found:
			if is_ignored(target, p, ignore_globs):
				continue
			yield target, p


def atomic_write(path: pathlib.Path, data: str) -> None:
	"""Atomically write ``data`` to ``path``.

	This function writes to a temporary file in the same directory, fsyncs,
	then replaces the target. If the target exists, its permissions are
	preserved when possible.
	"""
	tmp_dir = path.parent
	tmp_dir.mkdir(parents=True, exist_ok=True)
	orig_mode = None
	try:
		st = path.stat()
	except OSError:
		st = None
	if st is not None:
		orig_mode = st.st_mode & 0o777

	tmp_name = None
	try:
		with tempfile.NamedTemporaryFile("w", delete=False, dir=tmp_dir, encoding="utf-8", newline=NEWLINE) as tf:
			tmp_name = tf.name
			tf.write(data)
			tf.flush()
			os.fsync(tf.fileno())
		os.replace(tmp_name, str(path))
		tmp_name = None
		if orig_mode is not None:
			try:
				os.chmod(str(path), orig_mode)
			except OSError:
				logger.debug("Failed to chmod %s", path)
	finally:
		# Cleanup if temp file still exists
		if tmp_name is not None and os.path.exists(tmp_name):
			os.unlink(tmp_name)


def write_backup(path: pathlib.Path, text: str) -> Optional[pathlib.Path]:
	"""Write ``<name>.<sha1[:8]>.bak`` beside ``path``; returns the backup path."""
	backup_name = f"{path.name}.{hashlib.sha1(text.encode('utf-8')).hexdigest()[:8]}.bak"
	backup_path = path.with_name(backup_name)
	try:
		atomic_write(backup_path, text)
	except OSError as e:
		logger.warning("Could not write backup %s: %s", backup_path, e)
		return None
	return backup_path


def unified_diff(a: str, b: str, path: pathlib.Path) -> str:
	return "".join(
		difflib.unified_diff(
			a.splitlines(keepends=True),
			b.splitlines(keepends=True),
			fromfile=f"a/{path}",
			tofile=f"b/{path}",
		)
	)
