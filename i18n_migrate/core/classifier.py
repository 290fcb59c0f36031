# -*- coding: utf-8 -*-
"""Node classifier.

Decides, for one node, whether it is static text, a variable reference or a
composed (``+`` / template string) expression, in that order, and produces a
placeholder template plus ordered parameters.

``classify`` returns ``None`` when the subtree has nothing to extract (an
empty ``{/* comment */}`` container) and raises :class:`UnresolvedExpression`
when the shape is not understood, so callers can tell the two apart.
"""
from __future__ import annotations

import dataclasses
import html
import re
from typing import Iterable, List, Optional, Tuple

from tree_sitter import Node

from ..errors import UnresolvedExpression
from ..strategy import VariableStrategy
from .document import SourceDocument, named_children, unwrap_parens

STATIC_KINDS = {"string", "jsx_text", "html_character_reference"}
VARIABLE_KINDS = {
	"identifier",
	"member_expression",
	"subscript_expression",
	"call_expression",
	"ternary_expression",
}
LOGICAL_OPERATORS = {"&&", "||", "??"}
# "+" is left to the dynamic case: it may be string concatenation.
ARITHMETIC_OPERATORS = {"-", "*", "/"}

Param = Tuple[str, str]


@dataclasses.dataclass(frozen=True)
class ClassificationResult:
	template: str
	params: Tuple[Param, ...] = ()

	def __add__(self, other: "ClassificationResult") -> "ClassificationResult":
		return ClassificationResult(self.template + other.template, self.params + other.params)


def merge_results(results: Iterable[Optional[ClassificationResult]]) -> Optional[ClassificationResult]:
	"""Concatenate in encounter order; ``None`` entries contribute nothing."""
	merged: Optional[ClassificationResult] = None
	for result in results:
		if result is None:
			continue
		merged = result if merged is None else merged + result
	return merged


# ── JS string decoding ───────────────────────────────────────────────────────
_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
_SIMPLE_ESCAPES = {
	"n": "\n",
	"t": "\t",
	"r": "\r",
	"b": "\b",
	"f": "\f",
	"v": "\v",
	"0": "\0",
}


def _unescape_match(m: re.Match) -> str:
	esc = m.group(1)
	if esc.startswith("u{"):
		return chr(int(esc[2:-1], 16))
	if esc[0] in "ux" and len(esc) > 1:
		return chr(int(esc[1:], 16))
	if esc in ("\n", "\r\n", "\r", "\u2028", "\u2029"):
		return ""  # line continuation
	return _SIMPLE_ESCAPES.get(esc, esc)


def unescape_js(raw: str) -> str:
	return _ESCAPE_RE.sub(_unescape_match, raw)


def string_value(document: SourceDocument, node: Node) -> str:
	"""Decoded value of a ``string`` node (quotes stripped)."""
	raw = document.text_of(node)
	if len(raw) >= 2 and raw[0] in "'\"" and raw[-1] == raw[0]:
		raw = raw[1:-1]
	if node.parent is not None and node.parent.type == "jsx_attribute":
		# JSX attribute strings take no backslash escapes, only HTML entities
		return html.unescape(raw)
	return unescape_js(raw)


def static_text(document: SourceDocument, node: Node) -> Optional[str]:
	"""Literal text of a static node, or None for any other kind."""
	if node.type == "string":
		return string_value(document, node)
	if node.type == "jsx_text":
		return html.unescape(document.text_of(node))
	if node.type == "html_character_reference":
		return html.unescape(document.text_of(node))
	return None


class NodeClassifier:
	def __init__(
		self,
		document: SourceDocument,
		variables: Optional[VariableStrategy] = None,
		prefix: str = "{",
		suffix: str = "}",
	) -> None:
		self.document = document
		self.variables = variables or VariableStrategy()
		self.prefix = prefix
		self.suffix = suffix

	def classify(self, node: Node) -> Optional[ClassificationResult]:
		node = unwrap_parens(node)
		result = self._static_case(node)
		if result is not None:
			return result
		handled, result = self._variable_case(node)
		if handled:
			return result
		result = self._dynamic_case(node)
		if result is not None:
			return result
		raise UnresolvedExpression(
			f"can not resolve expression of kind {node.type}",
			location=self.document.location(node),
			snippet=self.document.text_of(node),
		)

	def _placeholder(self, source: str) -> ClassificationResult:
		name = self.variables.fresh()
		return ClassificationResult(f"{self.prefix}{name}{self.suffix}", ((name, source),))

	# 1. static text
	def _static_case(self, node: Node) -> Optional[ClassificationResult]:
		text = static_text(self.document, node)
		if text is None:
			return None
		return ClassificationResult(text.strip())

	# 2. variables; returns (handled, result) since an empty container is handled but yields None
	def _variable_case(self, node: Node) -> Tuple[bool, Optional[ClassificationResult]]:
		kind = node.type
		if kind == "jsx_expression":
			inner = named_children(node)
			if not inner:
				return True, None
			return True, self.classify(inner[0])
		if kind == "identifier":
			return True, self._placeholder(self.document.text_of(node))
		if kind in VARIABLE_KINDS:
			return True, self._placeholder(self.document.source_of(node))
		if kind == "binary_expression":
			operator = node.child_by_field_name("operator")
			op = operator.type if operator is not None else None
			if op in LOGICAL_OPERATORS or op in ARITHMETIC_OPERATORS:
				return True, self._placeholder(self.document.source_of(node))
		return False, None

	# 3. composed expressions
	def _dynamic_case(self, node: Node) -> Optional[ClassificationResult]:
		if node.type == "binary_expression":
			operator = node.child_by_field_name("operator")
			if operator is None or operator.type != "+":
				return None
			left = self.classify(node.child_by_field_name("left"))
			right = self.classify(node.child_by_field_name("right"))
			return merge_results((left, right)) or ClassificationResult("")
		if node.type == "template_string":
			return self._template_string(node)
		return None

	def _template_string(self, node: Node) -> ClassificationResult:
		"""Static chunks stay as text; each ``${...}`` becomes a placeholder, left to right."""
		pieces: List[str] = []
		params: List[Param] = []
		# skip the backticks
		pos = node.start_byte + 1
		end = node.end_byte - 1
		for child in node.named_children:
			if child.type != "template_substitution":
				continue
			pieces.append(unescape_js(self.document.source[pos:child.start_byte].decode("utf-8")))
			inner = named_children(child)
			source = self.document.source_of(inner[0]) if inner else ""
			name = self.variables.fresh()
			pieces.append(f"{self.prefix}{name}{self.suffix}")
			params.append((name, source))
			pos = child.end_byte
		pieces.append(unescape_js(self.document.source[pos:end].decode("utf-8")))
		return ClassificationResult("".join(pieces), tuple(params))
