# -*- coding: utf-8 -*-
"""Pluggable strategies: key allocation, placeholder naming, trailing comments,
target-script detection and the date-format exclusion heuristic."""
from __future__ import annotations

import re
from typing import Optional, Pattern

# Han ideographs (+ Extension A, compatibility block), CJK punctuation, full-width forms
HAN_RE = re.compile(r"[\u3001-\u303F\u3400-\u4DBF\u4E00-\u9FFF\uF900-\uFAFF\uFF00-\uFFEF]")


def has_target_script(text: Optional[str], pattern: Pattern = HAN_RE) -> bool:
	return bool(text) and bool(pattern.search(text))


# ── Keys ──────────────────────────────────────────────────────────────────────

class KeyStrategy:
	"""Monotonic counter keys: ``k1``, ``k2``, ...

	Keys never depend on the template, so identical text at two call sites
	gets two keys. ``count`` is the next number to hand out and is what the
	source map persists as ``meta.nextKeyNum``.
	"""

	def __init__(self, start: int = 1, prefix: str = "k") -> None:
		if start < 1:
			raise ValueError(f"key counter must start at 1 or above, got {start}")
		self.count = start
		self.prefix = prefix

	def next_key(self, template: str) -> str:
		key = f"{self.prefix}{self.count}"
		self.count += 1
		return key

	def number_of(self, key: str) -> Optional[int]:
		"""Counter value encoded in ``key``, or None for keys this strategy did not make."""
		if not key.startswith(self.prefix):
			return None
		tail = key[len(self.prefix):]
		return int(tail) if tail.isdigit() else None


# ── Placeholders ─────────────────────────────────────────────────────────────

class VariableStrategy:
	"""Fresh placeholder names (``val0``, ``val1``, ...) for one root expression."""

	def __init__(self, prefix: str = "val") -> None:
		self.prefix = prefix
		self._next = 0

	def fresh(self) -> str:
		name = f"{self.prefix}{self._next}"
		self._next += 1
		return name


# ── Comments ─────────────────────────────────────────────────────────────────

class CommentStrategy:
	"""No trailing comment after generated calls."""

	def comment_for(self, template: str, source: str) -> Optional[str]:
		return None

	def render(self, template: str, source: str) -> str:
		text = self.comment_for(template, source)
		if not text:
			return ""
		# a literal */ would end the comment early
		return " /* " + text.replace("*/", "*\\/") + " */"


class TemplateCommentStrategy(CommentStrategy):
	"""Append the untranslated template, e.g. ``i18n.t('k3') /* 你好 */``."""

	def comment_for(self, template: str, source: str) -> Optional[str]:
		return template


# ── Date formats ─────────────────────────────────────────────────────────────

DATE_TOKEN_RE = re.compile(r"YYYY|YY|MM|M{3,4}|DD|Do|HH|hh|mm|ss|SSS|dddd|ddd")
DATE_FORMAT_RE = re.compile(r"^[YMDdoHhmsSAaQWwEeZz\s年月日号时分秒周:：\-/.,\[\]]+$")


def looks_like_date_format(value: Optional[str]) -> bool:
	"""Fixed-pattern check for strings such as ``YYYY年MM月DD日 HH:mm``."""
	if not value:
		return False
	value = value.strip()
	return bool(DATE_FORMAT_RE.match(value)) and bool(DATE_TOKEN_RE.search(value))
