# -*- coding: utf-8 -*-
"""Rewrite coordinator.

Visits the text-bearing nodes of one file, resolves each to its root
expression, builds the template, allocates a key and splices in a call::

    "你好" + name          ->  i18n.t('k3', {val0: name})
    <p>你好</p>            ->  <p>{i18n.t('k4')}</p>
    <a title="提示">       ->  <a title={i18n.t('k5')}>
    {'名称': 1}            ->  {[i18n.t('k6')]: 1}

Roots already inside a committed edit or inside a translation call are
skipped, which is what makes a second run a no-op.
"""
from __future__ import annotations

import dataclasses
from typing import List, Optional, Sequence, Set

from tree_sitter import Node

from ..config import MigrateConfig
from ..errors import MigrateError, NoRootFound, UnresolvedExpression, UnsupportedReplacementContext
from ..strategy import has_target_script
from ..utils.logging import describe_location
from .classifier import NodeClassifier, static_text, string_value
from .document import Cursor, SourceDocument, named_children, same_node
from .resolver import find_root
from .store import ResourceStore, TranslationEntry
from .template import Root, TemplateBuilder, is_sibling_run, normalize_template

TEXT_LITERAL_KINDS = {"string", "template_string"}
MARKUP_TEXT_KINDS = {"jsx_text"}
ELEMENT_KINDS = {"jsx_element", "jsx_self_closing_element"}

# Positions where a root would be a statement or structural node, never an expression.
NON_EXPRESSION_KINDS = {
	"program",
	"statement_block",
	"class_body",
	"switch_body",
	"formal_parameters",
	"arguments",
	"jsx_opening_element",
	"jsx_closing_element",
	"jsx_attribute",
}


@dataclasses.dataclass
class FileResult:
	entries: List[TranslationEntry] = dataclasses.field(default_factory=list)
	warnings: List[str] = dataclasses.field(default_factory=list)
	skipped: int = 0


class RewriteCoordinator:
	def __init__(self, document: SourceDocument, store: ResourceStore, config: Optional[MigrateConfig] = None) -> None:
		self.document = document
		self.store = store
		self.config = config or MigrateConfig()
		self.result = FileResult()

	# ── driver ───────────────────────────────────────────────────────────────
	def run(self) -> FileResult:
		"""Scanning -> {Skipped | Extracted} per candidate -> Done."""
		for node in self.document.walk():
			if node.type in TEXT_LITERAL_KINDS:
				self.visit_text_literal(node)
			elif node.type in MARKUP_TEXT_KINDS:
				self.visit_markup_text(node)
		return self.result

	def warn(self, message: str, location=None, snippet: Optional[str] = None) -> None:
		self.result.warnings.append(f"{message}: {describe_location(location, snippet)}")

	# ── candidates ───────────────────────────────────────────────────────────
	def visit_text_literal(self, node: Node) -> None:
		doc = self.document
		if not has_target_script(doc.text_of(node)):
			return
		if doc.is_converted(node) or self.is_translated(node):
			return
		if self.should_exclude(node):
			self.result.skipped += 1
			return
		cursor = Cursor(node, doc)
		try:
			root = find_root(cursor)
		except NoRootFound as e:
			self.warn("No root found", e.location, e.snippet)
			return
		if root is None:
			raise MigrateError(f"detached node at {cursor.location}")
		self.extract(root)

	def visit_markup_text(self, node: Node) -> None:
		doc = self.document
		if not has_target_script(doc.text_of(node)):
			return
		if doc.is_converted(node) or self.is_translated(node):
			return
		cursor = Cursor(node, doc)
		if self.config.fuse_jsx:
			run = self.fusible_siblings(node)
			if run is not None:
				if self.extract(run):
					return
				self.warn("Fused JSX children not extracted, falling back to single text", cursor.location, doc.text_of(node))
		self.extract(cursor)

	def fusible_siblings(self, node: Node) -> Optional[List[Cursor]]:
		"""All children of the enclosing element when they read as one sentence.

		That is: no child elements, no child already rewritten, some
		target-script text and at least one ``{expression}``.
		"""
		element = node.parent
		if element is None or element.type != "jsx_element":
			return None
		children = [
			c for c in named_children(element)
			if c.type not in ("jsx_opening_element", "jsx_closing_element")
		]
		if any(
			c.type in ELEMENT_KINDS or self.document.is_converted(c) or self.document.has_edits_within(c)
			for c in children
		):
			return None
		has_text = any(c.type == "jsx_text" and has_target_script(self.document.text_of(c)) for c in children)
		has_expression = any(c.type == "jsx_expression" for c in children)
		if not (has_text and has_expression):
			return None
		return [Cursor(c, self.document) for c in children]

	# ── skip rules ───────────────────────────────────────────────────────────
	def is_translated(self, node: Node) -> bool:
		"""True when some enclosing call is already the translation call."""
		parent = node.parent
		while parent is not None:
			if parent.type == "call_expression":
				function = parent.child_by_field_name("function")
				if function is not None and self.document.text_of(function) == self.config.call_name:
					return True
			parent = parent.parent
		return False

	def should_exclude(self, node: Node) -> bool:
		"""Import paths, computed member keys, RegExp arguments, tagged templates."""
		parent = node.parent
		if parent is None:
			return False
		kind = parent.type
		if kind in ("import_statement", "import_require_clause"):
			return True
		if kind == "export_statement":
			# export ... from "<path>", not export default "<text>"
			return same_node(parent.child_by_field_name("source"), node)
		if kind == "subscript_expression" and same_node(parent.child_by_field_name("index"), node):
			return True
		if kind == "call_expression":
			# tagged template: tag`...`
			return node.type == "template_string"
		if kind == "arguments" and parent.parent is not None:
			owner = parent.parent
			callee = owner.child_by_field_name("constructor")
			if callee is None:
				callee = owner.child_by_field_name("function")
			if callee is not None:
				name = self.document.text_of(callee)
				if name == "RegExp":
					return True
				if owner.type == "call_expression" and name in ("require", "import"):
					return True
		return False

	# ── extraction ───────────────────────────────────────────────────────────
	def extract(self, root: Root) -> bool:
		"""Build, key and splice one root; False when nothing was extracted."""
		doc = self.document
		if not is_sibling_run(root):
			text = static_text(doc, root.node)
			if text is not None and not has_target_script(text):
				return False
			if doc.is_converted(root.node) or self.is_translated(root.node):
				return False
			if root.type == "string" and self.config.date_format_predicate(string_value(doc, root.node)):
				self.result.skipped += 1
				return False

		classifier = NodeClassifier(
			doc,
			self.config.variable_strategy_factory(),
			self.config.interpolation_prefix,
			self.config.interpolation_suffix,
		)
		try:
			built = TemplateBuilder(classifier).build(root)
		except UnresolvedExpression as e:
			self.warn(str(e).splitlines()[0], e.location, e.snippet)
			return False
		if built is None:
			return False
		template = normalize_template(built.template)
		if not has_target_script(template):
			return False

		first = root if not is_sibling_run(root) else root[0]
		original = self.root_source(root)
		key = self.store.allocate_key(template)
		call = self.render_call(key, built.params, template, original)
		start, end, replacement = self.replacement_for(root, call)
		doc.commit(start, end, replacement)
		self.result.entries.append(TranslationEntry(key, template, first.location))
		return True

	def root_source(self, root: Root) -> str:
		if is_sibling_run(root):
			return self.document.source_between(root[0].node.start_byte, root[-1].node.end_byte)
		return root.source

	def render_call(self, key: str, params: Sequence, template: str, original: str) -> str:
		call = f"{self.config.call_name}('{key}'"
		if params:
			call += ", {" + ", ".join(f"{name}: {source}" for name, source in params) + "}"
		call += ")"
		return call + self.config.comment_strategy.render(template, original)

	def replacement_for(self, root: Root, call: str):
		"""(start, end, text) for the splice, keeping the surrounding syntax valid."""
		if is_sibling_run(root):
			parent = root[0].node.parent
			if parent is None or parent.type != "jsx_element":
				raise UnsupportedReplacementContext(
					"sibling run outside a JSX element",
					location=root[0].location,
					snippet=self.root_source(root),
				)
			return root[0].node.start_byte, root[-1].node.end_byte, "{" + call + "}"

		node = root.node
		parent = node.parent
		if node.type == "jsx_text" or (parent is not None and parent.type == "jsx_attribute"):
			return node.start_byte, node.end_byte, "{" + call + "}"
		if parent is not None and self._is_property_key(parent, node):
			return node.start_byte, node.end_byte, "[" + call + "]"
		if (
			node.type in NON_EXPRESSION_KINDS
			or node.type.endswith("_statement")
			or node.type.endswith("_declaration")
			or parent is None
			or parent.type in ("jsx_opening_element", "jsx_self_closing_element")
		):
			raise UnsupportedReplacementContext(
				f"cannot replace a {node.type} with a call",
				location=root.location,
				snippet=self.document.text_of(node),
			)
		return node.start_byte, node.end_byte, call

	@staticmethod
	def _is_property_key(parent: Node, node: Node) -> bool:
		"""``{'名称': 1}`` and ``class A { '名称' = 1 }`` take a computed key."""
		if parent.type == "pair":
			return same_node(parent.child_by_field_name("key"), node)
		if parent.type == "field_definition":
			return same_node(parent.child_by_field_name("property"), node)
		if parent.type == "public_field_definition":
			return same_node(parent.child_by_field_name("name"), node)
		return False


def collect_translation_keys(document: SourceDocument, call_name: str) -> List[TranslationEntry]:
	"""Keys referenced as ``<call_name>('<key>', ...)``, in document order, first use wins."""
	seen: Set[str] = set()
	found: List[TranslationEntry] = []
	for node in document.walk():
		if node.type != "call_expression":
			continue
		function = node.child_by_field_name("function")
		if function is None or document.text_of(function) != call_name:
			continue
		arguments = node.child_by_field_name("arguments")
		args = named_children(arguments) if arguments is not None else []
		if not args or args[0].type != "string":
			continue
		key = string_value(document, args[0])
		if key in seen:
			continue
		seen.add(key)
		found.append(TranslationEntry(key, key, document.location(node)))
	return found
