# -*- coding: utf-8 -*-
"""Template builder: one root (a cursor or a run of sibling cursors) -> one template."""
from __future__ import annotations

import re
from typing import Optional, Sequence, Union

from .classifier import ClassificationResult, NodeClassifier, merge_results
from .document import Cursor

Root = Union[Cursor, Sequence[Cursor]]

_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_COLON_RE = re.compile(r"[:：]$")


def normalize_template(template: str) -> str:
	"""Drop all whitespace, then one trailing ASCII or full-width colon.

	The normalized form is what gets stored, so it has to stay exactly this
	across runs for keys to line up.
	"""
	return _TRAILING_COLON_RE.sub("", _WHITESPACE_RE.sub("", template))


def is_sibling_run(root: Root) -> bool:
	return not isinstance(root, Cursor)


class TemplateBuilder:
	def __init__(self, classifier: NodeClassifier) -> None:
		self.classifier = classifier

	def build(self, root: Root) -> Optional[ClassificationResult]:
		"""Classify a single root, or every sibling of a run in order.

		Any UnresolvedExpression propagates: a run is extracted whole or not at all.
		"""
		if isinstance(root, Cursor):
			return self.classifier.classify(root.node)
		return merge_results([self.classifier.classify(c.node) for c in root])
