# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Syntax tree produced by the bindscope parser.

Nodes are frozen dataclasses with identity equality: two nodes are the same
node only if they are the same object, which is what declarations and scopes
key on. The parser links every node to its parent after construction
(`link_parents`); `parent` is the only attribute ever written after a node is
built.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterator, Optional, Tuple


@dataclass(frozen=True)
class Located:
	"""Absolute source range of a node plus the line/column of its start."""

	offset: int
	end_offset: int
	line: int
	column: int


class Node:
	loc: Located
	# Set by link_parents; None only for the SourceFile root.
	parent: Optional["Node"] = None

	@property
	def position(self) -> int:
		return self.loc.offset


class Stmt(Node):
	pass


class Expr(Node):
	pass


class Pattern(Node):
	pass


class Condition(Node):
	pass


# ---- types -------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class TypeExpr(Node):
	loc: Located
	name: str
	args: Tuple["TypeExpr", ...] = ()
	optional_depth: int = 0


# ---- patterns ----------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class IdentifierPattern(Pattern):
	loc: Located
	name: str


@dataclass(frozen=True, eq=False)
class WildcardPattern(Pattern):
	loc: Located


@dataclass(frozen=True, eq=False)
class TuplePattern(Pattern):
	loc: Located
	elements: Tuple[Pattern, ...]


# ---- statements --------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class CodeBlock(Node):
	loc: Located
	statements: Tuple[Stmt, ...]


@dataclass(frozen=True, eq=False)
class PatternBinding(Node):
	loc: Located
	pattern: Pattern
	type_expr: Optional[TypeExpr] = None
	value: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class VarDecl(Stmt):
	loc: Located
	bindings: Tuple[PatternBinding, ...]
	mutable: bool = False


@dataclass(frozen=True, eq=False)
class Param(Node):
	"""
	Function parameter.

	`first_name` is the external label as written; `second_name` is the
	internal name when both slots are present (`to dest: Int`). With a single
	slot, the first name is also the bound name.
	"""

	loc: Located
	first_name: str
	type_expr: TypeExpr
	second_name: Optional[str] = None
	default: Optional[Expr] = None

	@property
	def bound_name(self) -> str:
		return self.second_name if self.second_name is not None else self.first_name

	@property
	def label(self) -> Optional[str]:
		return None if self.first_name == "_" else self.first_name


@dataclass(frozen=True, eq=False)
class FuncDecl(Stmt):
	loc: Located
	name: str
	params: Tuple[Param, ...]
	return_type: Optional[TypeExpr]
	body: CodeBlock


@dataclass(frozen=True, eq=False)
class OptionalBindingCondition(Condition):
	"""
	`let|var pattern [: T] [= value]` clause of an if/while condition list.

	`value` is None for the shorthand form (`if let x { ... }`).
	"""

	loc: Located
	pattern: Pattern
	type_expr: Optional[TypeExpr] = None
	value: Optional[Expr] = None
	mutable: bool = False


@dataclass(frozen=True, eq=False)
class ExprCondition(Condition):
	loc: Located
	expr: Expr


@dataclass(frozen=True, eq=False)
class IfStmt(Stmt):
	loc: Located
	conditions: Tuple[Condition, ...]
	body: CodeBlock
	# Either a plain block or a chained `else if`.
	else_body: Optional[CodeBlock | "IfStmt"] = None


@dataclass(frozen=True, eq=False)
class WhileStmt(Stmt):
	loc: Located
	conditions: Tuple[Condition, ...]
	body: CodeBlock


@dataclass(frozen=True, eq=False)
class ReturnStmt(Stmt):
	loc: Located
	value: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class AssignStmt(Stmt):
	loc: Located
	target: "Reference"
	value: Expr


@dataclass(frozen=True, eq=False)
class ExprStmt(Stmt):
	loc: Located
	value: Expr


@dataclass(frozen=True, eq=False)
class SourceFile(Node):
	"""Compilation unit. Keeps the source text so nodes can be sliced back out."""

	loc: Located
	statements: Tuple[Stmt, ...]
	text: str = ""


# ---- expressions -------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Reference(Expr):
	"""An identifier occurrence whose binding is determined by scope resolution."""

	loc: Located
	name: str


@dataclass(frozen=True, eq=False)
class Literal(Expr):
	loc: Located
	value: object


@dataclass(frozen=True, eq=False)
class Binary(Expr):
	loc: Located
	op: str
	left: Expr
	right: Expr


@dataclass(frozen=True, eq=False)
class Unary(Expr):
	loc: Located
	op: str
	operand: Expr


@dataclass(frozen=True, eq=False)
class Argument(Node):
	loc: Located
	value: Expr
	label: Optional[str] = None


@dataclass(frozen=True, eq=False)
class Call(Expr):
	loc: Located
	func: Expr
	args: Tuple[Argument, ...]


@dataclass(frozen=True, eq=False)
class Member(Expr):
	loc: Located
	value: Expr
	attr: str


@dataclass(frozen=True, eq=False)
class TupleExpr(Expr):
	loc: Located
	elements: Tuple[Expr, ...]


# ---- navigation --------------------------------------------------------------


def iter_children(node: Node) -> Iterator[Node]:
	"""Yield the direct children of `node` in source order."""
	for f in fields(node):
		if f.name == "loc":
			continue
		value = getattr(node, f.name)
		if isinstance(value, Node):
			yield value
		elif isinstance(value, tuple):
			for item in value:
				if isinstance(item, Node):
					yield item


def walk(node: Node) -> Iterator[Node]:
	"""Preorder traversal of `node` and everything below it."""
	stack = [node]
	while stack:
		current = stack.pop()
		yield current
		stack.extend(reversed(list(iter_children(current))))


def ancestors(node: Node) -> Iterator[Node]:
	"""Yield the parents of `node`, nearest first."""
	current = node.parent
	while current is not None:
		yield current
		current = current.parent


def root_of(node: Node) -> Node:
	root = node
	for root in ancestors(node):
		pass
	return root


def node_text(node: Node) -> str:
	"""Source text covered by `node`; empty when the tree is not rooted in a SourceFile."""
	root = root_of(node)
	if not isinstance(root, SourceFile):
		return ""
	return root.text[node.loc.offset : node.loc.end_offset]


def link_parents(root: Node) -> None:
	"""Point every node below `root` at its parent. `root.parent` is left untouched."""
	for node in walk(root):
		for child in iter_children(node):
			# Frozen dataclasses: parent links are the one post-construction write.
			object.__setattr__(child, "parent", node)


__all__ = [
	"Argument",
	"AssignStmt",
	"Binary",
	"Call",
	"CodeBlock",
	"Condition",
	"Expr",
	"ExprCondition",
	"ExprStmt",
	"FuncDecl",
	"IdentifierPattern",
	"IfStmt",
	"Literal",
	"Located",
	"Member",
	"Node",
	"OptionalBindingCondition",
	"Param",
	"Pattern",
	"PatternBinding",
	"Reference",
	"ReturnStmt",
	"SourceFile",
	"Stmt",
	"TupleExpr",
	"TuplePattern",
	"TypeExpr",
	"Unary",
	"VarDecl",
	"WhileStmt",
	"WildcardPattern",
	"iter_children",
	"walk",
	"ancestors",
	"root_of",
	"node_text",
	"link_parents",
]
