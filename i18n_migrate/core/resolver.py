# -*- coding: utf-8 -*-
"""Root resolver.

Walks up from a text-bearing node and stops below the first ancestor whose
shape marks the edge of a translatable unit. Everything passed on the way
(``+`` links, parentheses, member access on the result...) is absorbed into
the unit.
"""
from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from ..errors import NoRootFound
from .document import Cursor, same_node, unwrap_parens

ABSORBING_PARENT_KINDS = {
	"pair",  # object property
	"computed_property_name",  # {[key]: value}
	"ternary_expression",
	"variable_declarator",
	"assignment_expression",
	"augmented_assignment_expression",
	"return_statement",
	"jsx_expression",
	"jsx_attribute",
	"array",
	"arguments",  # call argument
	"call_expression",
	"assignment_pattern",  # default parameter value
	"object_assignment_pattern",
	"field_definition",  # class property
	"public_field_definition",
	"switch_statement",
	"switch_case",
	"new_expression",  # new Error('...')
	"arrow_function",  # value => value + '元'
}

ROOT_BREAKING_OPERATORS = {"==", "!=", "===", "!==", "in"}
LOGICAL_OPERATORS = {"&&", "||", "??"}


def _binary_operator(node: Node) -> Optional[str]:
	operator = node.child_by_field_name("operator")
	return operator.type if operator is not None else None


def is_absorbing_parent(node: Node) -> bool:
	if node.type == "binary_expression":
		op = _binary_operator(node)
		# logical operands and comparisons end the unit
		return op in ROOT_BREAKING_OPERATORS or op in LOGICAL_OPERATORS
	return node.type in ABSORBING_PARENT_KINDS


def _is_export_value(parent: Node, child: Node) -> bool:
	"""``export default <value>``."""
	if parent.type != "export_statement":
		return False
	return same_node(parent.child_by_field_name("value"), child)


def find_root(cursor: Cursor) -> Optional[Cursor]:
	"""Outermost ancestor of ``cursor`` that must be replaced as one unit.

	Returns None only for a detached node; raises NoRootFound when the walk
	reaches the top of the file without meeting an absorbing parent.
	"""
	if cursor.node.parent is None:
		return None
	current = cursor.node
	parent = current.parent
	while parent is not None:
		if is_absorbing_parent(parent) or _is_export_value(parent, current):
			# keep the parentheses in the output, replace what they wrap
			return Cursor(unwrap_parens(current), cursor.document)
		current = parent
		parent = current.parent
	raise NoRootFound(
		"no enclosing expression boundary",
		location=cursor.location,
		snippet=cursor.document.text_of(cursor.node),
	)
