# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Scope kinds and scope discovery.

Scopes are derived from the syntax tree on demand and hold nothing but the
node that owns them; two scopes built for the same node compare equal.

Scope-bearing nodes:
- the `SourceFile` (GlobalScope),
- a function body (FunctionScope),
- an `if`/`while` body (ConditionalBindingScope),
- an `else` body (AlternativeScope).

Which block belongs to which kind is decided in one place, `_BLOCK_SCOPE_KINDS`.
A construct's header (conditions, parameter defaults) is not part of its body,
so references there resolve in the scope enclosing the construct.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from operator import attrgetter
from typing import ClassVar, Iterable, List, Optional, Tuple, Type

from bindscope.parser import syntax as S

from .declaration import Declaration

logger = logging.getLogger(__name__)

_by_position = attrgetter("position")


class ScopeError(ValueError):
	"""
	Scope discovery was started from a node that is not inside a source file.

	Raised for detached or hand-built trees. Unresolved names are not errors.
	"""


class Scope(ABC):
	kind: ClassVar[str]

	@property
	@abstractmethod
	def parent(self) -> Optional["Scope"]:
		...

	def introduced(self) -> List[Declaration]:
		"""Declarations contributed by the scope's own construct (parameters, bindings)."""
		return []

	@abstractmethod
	def visible_before(self, position: int) -> List[Declaration]:
		"""All declarations visible at `position`, sorted by position."""

	def resolve(self, reference: S.Reference) -> Optional[Declaration]:
		"""
		Declaration `reference` binds to, or None when it is unresolved.

		Returns the earliest matching visible declaration. Shadowing is
		handled by the removal step in BlockScope, not by this order.
		"""
		for declaration in self.visible_before(reference.position):
			if declaration.refers_to(reference.name):
				return declaration
		return None


def _declarations_in(statements: Iterable[S.Stmt]) -> List[Declaration]:
	declarations: List[Declaration] = []
	for stmt in statements:
		if isinstance(stmt, S.VarDecl):
			declaration = Declaration.from_var_decl(stmt)
			if declaration is not None:
				declarations.append(declaration)
	return declarations


def remove_shadowed(declarations: Iterable[Declaration], introduced: Iterable[Declaration]) -> List[Declaration]:
	"""Drop every declaration fully rebound by one of `introduced`."""
	introduced = list(introduced)
	return [d for d in declarations if not any(d.is_shadowed_by(p) for p in introduced)]


@dataclass(frozen=True)
class GlobalScope(Scope):
	kind: ClassVar[str] = "global"

	owner: S.SourceFile

	@property
	def parent(self) -> Optional[Scope]:
		return None

	def local_declarations(self) -> List[Declaration]:
		return _declarations_in(self.owner.statements)

	def visible_before(self, position: int) -> List[Declaration]:
		return sorted(
			(d for d in self.local_declarations() if d.position < position),
			key=_by_position,
		)


class BlockScope(Scope):
	"""
	Scope of a braced body attached to an owning construct.

	Visible at P: what the parent scope sees where the block opens, minus the
	declarations rebound by this scope's introduced ones, plus the introduced
	ones, plus this body's own declarations made before P.
	"""

	owner: S.Node

	@property
	@abstractmethod
	def block(self) -> S.CodeBlock:
		...

	@property
	def parent(self) -> Scope:
		return enclosing_scope(self.owner)

	def start_declarations(self) -> List[Declaration]:
		return self.parent.visible_before(self.block.position)

	def local_declarations(self) -> List[Declaration]:
		return _declarations_in(self.block.statements)

	def visible_before(self, position: int) -> List[Declaration]:
		introduced = self.introduced()
		start = remove_shadowed(self.start_declarations(), introduced)
		local = [d for d in self.local_declarations() if d.position < position]
		return sorted(start + introduced + local, key=_by_position)


@dataclass(frozen=True)
class FunctionScope(BlockScope):
	kind: ClassVar[str] = "function"

	owner: S.FuncDecl

	@property
	def block(self) -> S.CodeBlock:
		return self.owner.body

	def introduced(self) -> List[Declaration]:
		parameters = (Declaration.from_parameter(param) for param in self.owner.params)
		return [p for p in parameters if p is not None]


@dataclass(frozen=True)
class ConditionalBindingScope(BlockScope):
	"""Body of an `if` or `while`, entered only when every condition clause holds."""

	kind: ClassVar[str] = "conditional"

	owner: S.IfStmt | S.WhileStmt

	@property
	def block(self) -> S.CodeBlock:
		return self.owner.body

	def introduced(self) -> List[Declaration]:
		bindings: List[Declaration] = []
		for condition in self.owner.conditions:
			if isinstance(condition, S.OptionalBindingCondition):
				declaration = Declaration.from_optional_binding(condition)
				if declaration is not None:
					bindings.append(declaration)
		return bindings


@dataclass(frozen=True)
class AlternativeScope(BlockScope):
	"""`else` body: introduces nothing; the `if` bindings are not visible here."""

	kind: ClassVar[str] = "alternative"

	owner: S.IfStmt

	@property
	def block(self) -> S.CodeBlock:
		else_body = self.owner.else_body
		if not isinstance(else_body, S.CodeBlock):
			raise ScopeError("if statement has no else block")
		return else_body


# (owner type, body slot, scope kind). An `else if` chain is an IfStmt in the
# else slot, not a block, so it never matches the AlternativeScope row.
_BLOCK_SCOPE_KINDS: Tuple[Tuple[Type[S.Node], str, Type[BlockScope]], ...] = (
	(S.FuncDecl, "body", FunctionScope),
	(S.IfStmt, "body", ConditionalBindingScope),
	(S.WhileStmt, "body", ConditionalBindingScope),
	(S.IfStmt, "else_body", AlternativeScope),
)


def scope_for(node: S.Node) -> Optional[Scope]:
	"""Scope owned by `node`, or None when `node` is not scope-bearing."""
	if isinstance(node, S.SourceFile):
		return GlobalScope(node)
	if not isinstance(node, S.CodeBlock):
		return None
	owner = node.parent
	for owner_type, slot, scope_type in _BLOCK_SCOPE_KINDS:
		if isinstance(owner, owner_type) and getattr(owner, slot) is node:
			return scope_type(owner)
	return None


def enclosing_scope(node: S.Node) -> Scope:
	"""Nearest scope owned by a strict ancestor of `node`."""
	for ancestor in S.ancestors(node):
		scope = scope_for(ancestor)
		if scope is not None:
			return scope
	raise ScopeError(f"{type(node).__name__} at offset {node.position} is not inside a source file")


def resolve(reference: S.Reference) -> Optional[Declaration]:
	"""Declaration `reference` binds to, or None when it is unresolved."""
	scope = enclosing_scope(reference)
	declaration = scope.resolve(reference)
	logger.debug(
		"resolved %r at offset %d in %s scope -> %s",
		reference.name,
		reference.position,
		scope.kind,
		"unresolved" if declaration is None else f"{declaration.kind} at offset {declaration.position}",
	)
	return declaration


__all__ = [
	"AlternativeScope",
	"BlockScope",
	"ConditionalBindingScope",
	"FunctionScope",
	"GlobalScope",
	"Scope",
	"ScopeError",
	"enclosing_scope",
	"remove_shadowed",
	"resolve",
	"scope_for",
]
