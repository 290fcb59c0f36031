# -*- coding: utf-8 -*-
"""Exception hierarchy for the migration engine.

Local conditions (UnresolvedExpression, NoRootFound, SourceParseError) are
logged and the affected root or file is skipped. UnsupportedReplacementContext
and CorruptPersistedStore abort the batch.
"""
from __future__ import annotations

from typing import Any, Optional

__all__ = [
	"MigrateError",
	"ConfigError",
	"SourceParseError",
	"UnresolvedExpression",
	"NoRootFound",
	"UnsupportedReplacementContext",
	"CorruptPersistedStore",
]


class MigrateError(Exception):
	"""Base exception for the i18n migration tool."""


class ConfigError(MigrateError):
	"""Raised when configuration is missing or invalid."""


class _LocatedError(MigrateError):
	"""Error that points at a node in a source file."""

	def __init__(self, message: str, location: Optional[Any] = None, snippet: Optional[str] = None) -> None:
		super().__init__(message)
		self.location = location
		self.snippet = snippet

	def __str__(self) -> str:
		msg = super().__str__()
		if self.location is not None:
			msg = f"{msg} at {self.location}"
		if self.snippet:
			msg = f"{msg}\n{self.snippet}"
		return msg


class SourceParseError(_LocatedError):
	"""Raised when a file does not parse cleanly; the file is left untouched."""


class UnresolvedExpression(_LocatedError):
	"""A node shape the classifier does not understand inside a translatable unit."""


class NoRootFound(_LocatedError):
	"""Upward walk reached the top of the tree without an absorbing ancestor."""


class UnsupportedReplacementContext(_LocatedError):
	"""The resolved root sits where a call expression cannot be spliced in."""


class CorruptPersistedStore(MigrateError):
	"""Source map or locale file is malformed; key numbering would be ambiguous."""

	def __init__(self, message: str, path: Optional[Any] = None) -> None:
		super().__init__(message)
		self.path = path

	def __str__(self) -> str:
		msg = super().__str__()
		return f"{msg} ({self.path})" if self.path is not None else msg
