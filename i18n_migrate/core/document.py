# -*- coding: utf-8 -*-
"""Parsed source file plus the byte-range edits committed against it.

tree-sitter trees are immutable, so replacing a node means recording an
edit over its byte span. ``source_of`` renders a node with the edits that
fall inside it, which is what later, larger roots embed as parameter source.
"""
from __future__ import annotations

import bisect
import dataclasses
import pathlib
from typing import Dict, Iterator, List, Optional, Tuple

from tree_sitter import Language, Node, Parser

from ..errors import SourceParseError

JS_SUFFIXES = (".js", ".jsx", ".mjs", ".cjs")


def _load_parsers() -> Dict[str, Parser]:
	"""Lazy-load JavaScript/TypeScript parsers."""
	import tree_sitter_javascript as ts_javascript
	import tree_sitter_typescript as ts_typescript

	js_lang = Language(ts_javascript.language())
	ts_lang = Language(ts_typescript.language_typescript())
	tsx_lang = Language(ts_typescript.language_tsx())

	parsers = {suffix: Parser(js_lang) for suffix in JS_SUFFIXES}
	parsers[".ts"] = Parser(ts_lang)
	parsers[".tsx"] = Parser(tsx_lang)
	return parsers


_PARSERS: Optional[Dict[str, Parser]] = None


def get_parser(suffix: str) -> Optional[Parser]:
	global _PARSERS
	if _PARSERS is None:
		_PARSERS = _load_parsers()
	return _PARSERS.get(suffix.lower())


@dataclasses.dataclass(frozen=True)
class SourceMeta:
	file: str
	line: int  # 1-based
	column: int  # 0-based, characters

	def __str__(self) -> str:
		return f"{self.file}:{self.line}:{self.column}"

	def to_dict(self) -> Dict[str, object]:
		return {"file": self.file, "line": self.line, "column": self.column}


def same_node(a: Optional[Node], b: Optional[Node]) -> bool:
	if a is None or b is None:
		return False
	return a.start_byte == b.start_byte and a.end_byte == b.end_byte and a.type == b.type


def named_children(node: Node) -> List[Node]:
	"""Named children without comments (comments are extras anywhere in the tree)."""
	return [c for c in node.named_children if c.type != "comment"]


def unwrap_parens(node: Node) -> Node:
	while node.type == "parenthesized_expression":
		inner = named_children(node)
		if len(inner) != 1:
			break
		node = inner[0]
	return node


class SourceDocument:
	def __init__(self, source: bytes, tree, display_path: str) -> None:
		self.source = source
		self.tree = tree
		self.display_path = display_path
		# sorted, non-overlapping (start, end, replacement bytes)
		self._edits: List[Tuple[int, int, bytes]] = []

	@classmethod
	def parse(cls, text: str, suffix: str = ".jsx", display_path: str = "<memory>") -> "SourceDocument":
		parser = get_parser(suffix)
		if parser is None:
			raise SourceParseError(f"unsupported file type: {suffix}", location=display_path)
		source = text.encode("utf-8")
		tree = parser.parse(source)
		doc = cls(source, tree, display_path)
		if tree.root_node.has_error:
			bad = doc.first_error()
			raise SourceParseError(
				"syntax error, file left untouched",
				location=doc.location(bad) if bad is not None else display_path,
				snippet=doc.text_of(bad) if bad is not None else None,
			)
		return doc

	@classmethod
	def from_path(cls, path: pathlib.Path, display_path: Optional[str] = None) -> "SourceDocument":
		text = path.read_text(encoding="utf-8")
		return cls.parse(text, path.suffix, display_path or str(path))

	@property
	def root(self) -> Node:
		return self.tree.root_node

	def first_error(self) -> Optional[Node]:
		for node in self.walk():
			if node.type == "ERROR" or node.is_missing:
				return node
		return None

	def walk(self) -> Iterator[Node]:
		"""Pre-order, document order."""
		stack = [self.root]
		while stack:
			node = stack.pop()
			yield node
			stack.extend(reversed(node.children))

	# ── text access ──────────────────────────────────────────────────────────
	def text_of(self, node: Node) -> str:
		"""Original text spanned by ``node``."""
		return self.source[node.start_byte:node.end_byte].decode("utf-8")

	def source_of(self, node: Node) -> str:
		"""Text spanned by ``node`` with enclosed committed edits applied."""
		return self._render(node.start_byte, node.end_byte).decode("utf-8")

	def source_between(self, start: int, end: int) -> str:
		return self._render(start, end).decode("utf-8")

	def location(self, node: Node) -> SourceMeta:
		"""1-based line, 0-based column in characters."""
		line_start = self.source.rfind(b"\n", 0, node.start_byte) + 1
		column = len(self.source[line_start:node.start_byte].decode("utf-8"))
		return SourceMeta(self.display_path, node.start_point[0] + 1, column)

	def _render(self, start: int, end: int) -> bytes:
		out: List[bytes] = []
		pos = start
		for e_start, e_end, replacement in self._edits:
			if e_start < start or e_end > end:
				continue
			out.append(self.source[pos:e_start])
			out.append(replacement)
			pos = e_end
		out.append(self.source[pos:end])
		return b"".join(out)

	# ── edits ────────────────────────────────────────────────────────────────
	def is_converted(self, node: Node) -> bool:
		"""True when ``node`` lies inside an already committed replacement."""
		return self._covering_edit(node.start_byte, node.end_byte) is not None

	def has_edits_within(self, node: Node) -> bool:
		return any(node.start_byte <= e[0] and e[1] <= node.end_byte for e in self._edits)

	def _covering_edit(self, start: int, end: int) -> Optional[Tuple[int, int, bytes]]:
		idx = bisect.bisect_right(self._edits, (start, float("inf"), b"")) - 1
		if idx >= 0:
			edit = self._edits[idx]
			if edit[0] <= start and end <= edit[1]:
				return edit
		return None

	def commit(self, start: int, end: int, replacement: str) -> None:
		"""Replace bytes ``start:end``; edits fully inside the range are subsumed.

		``replacement`` must already embed any enclosed edits (via source_of).
		"""
		kept: List[Tuple[int, int, bytes]] = []
		for edit in self._edits:
			if start <= edit[0] and edit[1] <= end:
				continue
			if edit[0] < end and start < edit[1]:
				raise ValueError(f"edit {start}:{end} partially overlaps {edit[0]}:{edit[1]}")
			kept.append(edit)
		kept.append((start, end, replacement.encode("utf-8")))
		kept.sort(key=lambda e: (e[0], e[1]))
		self._edits = kept

	@property
	def changed(self) -> bool:
		return bool(self._edits)

	def render(self) -> str:
		return self._render(0, len(self.source)).decode("utf-8")


class Cursor:
	"""Navigable handle over a node: parent, slot in the parent, source text."""

	__slots__ = ("node", "document")

	def __init__(self, node: Node, document: SourceDocument) -> None:
		self.node = node
		self.document = document

	def __repr__(self) -> str:
		return f"Cursor({self.node.type}@{self.location})"

	@property
	def type(self) -> str:
		return self.node.type

	@property
	def parent(self) -> Optional["Cursor"]:
		parent = self.node.parent
		return Cursor(parent, self.document) if parent is not None else None

	@property
	def slot(self) -> Optional[str]:
		"""Field name in the parent (``left``, ``key``), else ``children[i]``."""
		parent = self.node.parent
		if parent is None:
			return None
		for idx, child in enumerate(parent.children):
			if same_node(child, self.node):
				return parent.field_name_for_child(idx) or f"children[{idx}]"
		return None

	@property
	def source(self) -> str:
		return self.document.source_of(self.node)

	@property
	def location(self) -> SourceMeta:
		return self.document.location(self.node)
