# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolution driver: resolve every reference in a source file.

Each reference is resolved on its own against a freshly derived scope, so the
results do not depend on visiting order; the list comes back in source order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from bindscope.parser import syntax as S
from bindscope.scope import Declaration, Scope, enclosing_scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
	reference: S.Reference
	scope: Scope
	declaration: Optional[Declaration]

	@property
	def resolved(self) -> bool:
		return self.declaration is not None

	def to_dict(self) -> dict[str, Any]:
		ref = self.reference
		return {
			"name": ref.name,
			"line": ref.loc.line,
			"column": ref.loc.column,
			"offset": ref.position,
			"scope": self.scope.kind,
			"declaration": _declaration_dict(self.declaration),
		}


def _declaration_dict(declaration: Optional[Declaration]) -> Optional[dict[str, Any]]:
	if declaration is None:
		return None
	loc = declaration.node.loc
	return {
		"kind": declaration.kind,
		"names": list(declaration.names),
		"line": loc.line,
		"column": loc.column,
		"offset": declaration.position,
		"text": S.node_text(declaration.node),
	}


def iter_references(root: S.Node):
	for node in S.walk(root):
		if isinstance(node, S.Reference):
			yield node


def resolve_all(source_file: S.SourceFile) -> List[Resolution]:
	resolutions: List[Resolution] = []
	for reference in iter_references(source_file):
		scope = enclosing_scope(reference)
		resolutions.append(Resolution(reference=reference, scope=scope, declaration=scope.resolve(reference)))
	logger.debug(
		"resolved %d of %d references",
		sum(1 for r in resolutions if r.resolved),
		len(resolutions),
	)
	return resolutions


def format_resolution(resolution: Resolution) -> str:
	ref = resolution.reference
	lines = [f"Variable: {ref.name} ({ref.loc.line}:{ref.loc.column})", "Refers to:"]
	declaration = resolution.declaration
	if declaration is None:
		lines.append("<unresolved>")
	else:
		loc = declaration.node.loc
		lines.append(f"{S.node_text(declaration.node)} ({declaration.kind}, {loc.line}:{loc.column})")
	lines.append("-" * 21)
	return "\n".join(lines)


__all__ = ["Resolution", "format_resolution", "iter_references", "resolve_all"]
