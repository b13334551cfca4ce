# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Declarations: the named bindings a reference can resolve to.

Three syntax forms declare names:
- a binding statement (`let x = 1, y = 2`), possibly binding several names,
- a function parameter (its internal name is what the body sees),
- a conditional-binding clause of an `if`/`while` (`if let x = y`).

Only identifier patterns bind. Wildcards and destructuring patterns produce
no names; a form that ends up with no names produces no Declaration at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from bindscope.parser import syntax as S


@dataclass(frozen=True)
class Declaration:
	# Borrowed from the tree; compared by identity.
	node: S.Node
	names: Tuple[str, ...]
	position: int

	def __post_init__(self) -> None:
		if not self.names:
			raise ValueError("declaration must bind at least one name")

	@classmethod
	def from_var_decl(cls, decl: S.VarDecl) -> Optional["Declaration"]:
		names = tuple(
			binding.pattern.name
			for binding in decl.bindings
			if isinstance(binding.pattern, S.IdentifierPattern)
		)
		if not names:
			return None
		return cls(node=decl, names=names, position=decl.position)

	@classmethod
	def from_parameter(cls, param: S.Param) -> Optional["Declaration"]:
		name = param.bound_name
		if name == "_":
			return None
		return cls(node=param, names=(name,), position=param.position)

	@classmethod
	def from_optional_binding(cls, condition: S.OptionalBindingCondition) -> Optional["Declaration"]:
		if not isinstance(condition.pattern, S.IdentifierPattern):
			return None
		return cls(node=condition, names=(condition.pattern.name,), position=condition.position)

	@property
	def kind(self) -> str:
		if isinstance(self.node, S.Param):
			return "parameter"
		if isinstance(self.node, S.OptionalBindingCondition):
			return "conditional-binding"
		return "binding"

	def refers_to(self, name: str) -> bool:
		"""True if a reference spelled `name` can bind to this declaration."""
		return name in self.names

	def is_shadowed_by(self, other: "Declaration") -> bool:
		"""
		True if `other` rebinds every name this declaration binds.

		This is a subset test, not an overlap test: `let x = 1, y = 2` is
		hidden by an inner declaration of `x, y` (or more), but stays visible
		when only `x` is rebound.
		"""
		return all(name in other.names for name in self.names)


__all__ = ["Declaration"]
