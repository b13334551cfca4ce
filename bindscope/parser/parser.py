# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from .syntax import (
	Argument,
	AssignStmt,
	Binary,
	Call,
	CodeBlock,
	Condition,
	Expr,
	ExprCondition,
	ExprStmt,
	FuncDecl,
	IdentifierPattern,
	IfStmt,
	Literal,
	Located,
	Member,
	OptionalBindingCondition,
	Param,
	Pattern,
	PatternBinding,
	Reference,
	ReturnStmt,
	SourceFile,
	Stmt,
	TupleExpr,
	TuplePattern,
	TypeExpr,
	Unary,
	VarDecl,
	WhileStmt,
	WildcardPattern,
	link_parents,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()


class SourceError(ValueError):
	"""A construct the grammar accepts but the tree builder rejects, with its location."""

	def __init__(self, message: str, loc: Optional[Located] = None) -> None:
		super().__init__(message)
		self.loc = loc


class TerminatorInserter:
	"""
	Turn significant newlines into TERMINATOR tokens.

	A newline ends a statement only when the previous token can end one and we
	are not inside parentheses. `;` always terminates. A terminator directly
	followed by `else` is dropped so `}` and `else` may sit on separate lines.
	"""

	always_accept = ("NEWLINE", "SEMI")

	TERMINABLE = {
		"NAME",
		"INT",
		"STRING",
		"TRUE",
		"FALSE",
		"NIL",
		"RETURN",
		"QMARK",
		"RPAR",
		"RBRACE",
	}

	def __init__(self) -> None:
		self._reset()

	def _reset(self) -> None:
		self.paren_depth = 0
		self.can_terminate = False
		self.pending: Optional[Token] = None

	def process(self, stream):
		self._reset()
		for token in stream:
			ttype = token.type
			if ttype == "NEWLINE":
				if self._should_emit_terminator():
					self.pending = Token.new_borrow_pos("TERMINATOR", token.value, token)
					self.can_terminate = False
				continue
			if ttype == "SEMI":
				if self.pending is not None:
					yield self.pending
					self.pending = None
				yield Token.new_borrow_pos("TERMINATOR", token.value, token)
				self.can_terminate = False
				continue
			if self.pending is not None:
				if ttype != "ELSE":
					yield self.pending
				self.pending = None
			yield token
			self._update_depth(ttype)
			self.can_terminate = ttype in self.TERMINABLE
		if self.pending is not None:
			yield self.pending
			self.pending = None

	def _update_depth(self, ttype: str) -> None:
		if ttype == "LPAR":
			self.paren_depth += 1
		elif ttype == "RPAR" and self.paren_depth:
			self.paren_depth -= 1

	def _should_emit_terminator(self) -> bool:
		return self.paren_depth == 0 and self.can_terminate


_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
	postlex=TerminatorInserter(),
)


def parse_source(source: str) -> SourceFile:
	"""
	Parse `source` into a linked syntax tree.

	Raises lark's `UnexpectedInput` on syntax errors and `ValueError` for
	constructs the grammar accepts but the tree builder rejects.
	"""
	tree = _PARSER.parse(source)
	program = next(child for child in tree.children if isinstance(child, Tree))
	source_file = _build_source_file(program, source)
	link_parents(source_file)
	return source_file


def _build_source_file(tree: Tree, source: str) -> SourceFile:
	statements = _build_statements(tree)
	loc = Located(offset=0, end_offset=len(source), line=1, column=1)
	return SourceFile(loc=loc, statements=statements, text=source)


def _build_statements(tree: Tree) -> tuple[Stmt, ...]:
	statements: List[Stmt] = []
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		statements.append(_build_stmt(child))
	return tuple(statements)


def _build_block(tree: Tree) -> CodeBlock:
	return CodeBlock(loc=_loc(tree), statements=_build_statements(tree))


def _build_stmt(tree: Tree) -> Stmt:
	kind = _name(tree)
	if kind == "var_decl":
		return _build_var_decl(tree)
	if kind == "func_decl":
		return _build_func_decl(tree)
	if kind == "if_stmt":
		return _build_if_stmt(tree)
	if kind == "while_stmt":
		return _build_while_stmt(tree)
	if kind == "return_stmt":
		return _build_return_stmt(tree)
	if kind == "assign_stmt":
		return _build_assign_stmt(tree)
	if kind == "expr_stmt":
		return ExprStmt(loc=_loc(tree), value=_build_expr(_tree_children(tree)[0]))
	raise ValueError(f"Unsupported statement node: {kind}")


# ---- bindings ----------------------------------------------------------------


def _build_var_decl(tree: Tree) -> VarDecl:
	children = _tree_children(tree)
	mutable = _binder_is_mutable(children[0])
	bindings = tuple(_build_pattern_binding(child) for child in children[1:])
	return VarDecl(loc=_loc(tree), bindings=bindings, mutable=mutable)


def _build_pattern_binding(tree: Tree) -> PatternBinding:
	children = _tree_children(tree)
	pattern = _build_pattern(children[0])
	type_expr = _optional_type_annotation(children)
	value = _optional_initializer(children)
	return PatternBinding(loc=_loc(tree), pattern=pattern, type_expr=type_expr, value=value)


def _build_pattern(tree: Tree) -> Pattern:
	kind = _name(tree)
	if kind == "identifier_pattern":
		token = tree.children[0]
		if token.value == "_":
			return WildcardPattern(loc=_loc(tree))
		return IdentifierPattern(loc=_loc(tree), name=token.value)
	if kind == "tuple_pattern":
		elements = tuple(_build_pattern(child) for child in _tree_children(tree))
		return TuplePattern(loc=_loc(tree), elements=elements)
	raise ValueError(f"Unsupported pattern node: {kind}")


def _binder_is_mutable(node: Tree) -> bool:
	for child in node.children:
		if isinstance(child, Token) and child.type == "VAR":
			return True
	return False


def _optional_type_annotation(children: List[Tree]) -> Optional[TypeExpr]:
	node = next((child for child in children if _name(child) == "type_annotation"), None)
	if node is None:
		return None
	return _build_type_expr(_tree_children(node)[0])


def _optional_initializer(children: List[Tree]) -> Optional[Expr]:
	node = next((child for child in children if _name(child) == "initializer"), None)
	if node is None:
		return None
	return _build_expr(_tree_children(node)[0])


# ---- functions ---------------------------------------------------------------


def _build_func_decl(tree: Tree) -> FuncDecl:
	name_token = next(child for child in tree.children if isinstance(child, Token) and child.type == "NAME")
	params: tuple[Param, ...] = ()
	return_type: Optional[TypeExpr] = None
	body: Optional[CodeBlock] = None
	for child in _tree_children(tree):
		kind = _name(child)
		if kind == "params":
			params = tuple(_build_param(p) for p in _tree_children(child))
		elif kind == "return_sig":
			return_type = _build_type_expr(_tree_children(child)[0])
		elif kind == "block":
			body = _build_block(child)
	if body is None:
		raise ValueError("function declaration missing body")
	return FuncDecl(loc=_loc(tree), name=name_token.value, params=params, return_type=return_type, body=body)


def _build_param(tree: Tree) -> Param:
	names = [child.value for child in tree.children if isinstance(child, Token) and child.type == "NAME"]
	children = _tree_children(tree)
	type_expr = _optional_type_annotation(children)
	if type_expr is None:
		raise ValueError("parameter missing type annotation")
	default_node = next((child for child in children if _name(child) == "default_value"), None)
	default = _build_expr(_tree_children(default_node)[0]) if default_node is not None else None
	return Param(
		loc=_loc(tree),
		first_name=names[0],
		second_name=names[1] if len(names) > 1 else None,
		type_expr=type_expr,
		default=default,
	)


def _build_type_expr(tree: Tree) -> TypeExpr:
	kind = _name(tree)
	optional_depth = sum(1 for child in tree.children if isinstance(child, Token) and child.type == "QMARK")
	if kind == "named_type":
		return TypeExpr(loc=_loc(tree), name=tree.children[0].value, optional_depth=optional_depth)
	if kind == "tuple_type":
		args = tuple(_build_type_expr(child) for child in _tree_children(tree))
		return TypeExpr(loc=_loc(tree), name="<tuple>", args=args, optional_depth=optional_depth)
	raise ValueError(f"Unsupported type node: {kind}")


# ---- control flow ------------------------------------------------------------


def _build_conditions(tree: Tree) -> tuple[Condition, ...]:
	return tuple(_build_condition(child) for child in _tree_children(tree))


def _build_condition(tree: Tree) -> Condition:
	kind = _name(tree)
	if kind == "optional_binding":
		children = _tree_children(tree)
		return OptionalBindingCondition(
			loc=_loc(tree),
			pattern=_build_pattern(children[1]),
			type_expr=_optional_type_annotation(children),
			value=_optional_initializer(children),
			mutable=_binder_is_mutable(children[0]),
		)
	if kind == "expr_condition":
		return ExprCondition(loc=_loc(tree), expr=_build_expr(_tree_children(tree)[0]))
	raise ValueError(f"Unsupported condition node: {kind}")


def _build_if_stmt(tree: Tree) -> IfStmt:
	conditions: tuple[Condition, ...] = ()
	body: Optional[CodeBlock] = None
	else_body: Optional[CodeBlock | IfStmt] = None
	for child in _tree_children(tree):
		kind = _name(child)
		if kind == "conditions":
			conditions = _build_conditions(child)
		elif kind == "block" and body is None:
			body = _build_block(child)
		elif kind == "else_clause":
			target = _tree_children(child)[0]
			if _name(target) == "block":
				else_body = _build_block(target)
			else:
				else_body = _build_if_stmt(target)
	if body is None:
		raise ValueError("malformed if statement")
	return IfStmt(loc=_loc(tree), conditions=conditions, body=body, else_body=else_body)


def _build_while_stmt(tree: Tree) -> WhileStmt:
	children = _tree_children(tree)
	conditions_node = next((child for child in children if _name(child) == "conditions"), None)
	block_node = next((child for child in children if _name(child) == "block"), None)
	if conditions_node is None or block_node is None:
		raise ValueError("malformed while statement")
	return WhileStmt(loc=_loc(tree), conditions=_build_conditions(conditions_node), body=_build_block(block_node))


def _build_return_stmt(tree: Tree) -> ReturnStmt:
	children = _tree_children(tree)
	value = _build_expr(children[0]) if children else None
	return ReturnStmt(loc=_loc(tree), value=value)


def _build_assign_stmt(tree: Tree) -> AssignStmt:
	children = _tree_children(tree)
	target = _build_expr(children[0])
	if not isinstance(target, Reference):
		raise SourceError("assignment target must be a name", target.loc)
	return AssignStmt(loc=_loc(tree), target=target, value=_build_expr(children[1]))


# ---- expressions -------------------------------------------------------------


def _build_expr(node) -> Expr:
	if isinstance(node, Tree):
		name = _name(node)
	else:
		raise TypeError(f"Unexpected node type: {type(node)}")

	if name == "logic_or":
		return _fold_chain(node, "logic_or_tail")
	if name == "logic_and":
		return _fold_chain(node, "logic_and_tail")
	if name == "equality":
		return _fold_chain(node, "equality_tail")
	if name == "comparison":
		return _fold_chain(node, "comparison_tail")
	if name == "sum":
		return _fold_chain(node, "sum_tail")
	if name == "term":
		return _fold_chain(node, "term_tail")
	if name == "not_op":
		return Unary(loc=_loc(node), op="!", operand=_build_expr(_tree_children(node)[0]))
	if name == "neg":
		op_token = node.children[0]
		return Unary(loc=_loc(node), op=op_token.value, operand=_build_expr(_tree_children(node)[0]))
	if name == "call":
		return _build_call(node)
	if name == "member":
		attr_token = next(child for child in node.children if isinstance(child, Token) and child.type == "NAME")
		return Member(loc=_loc(node), value=_build_expr(_tree_children(node)[0]), attr=attr_token.value)
	if name == "var":
		token = node.children[0]
		return Reference(loc=_loc(node), name=token.value)
	if name == "int_lit":
		return Literal(loc=_loc(node), value=int(node.children[0].value))
	if name == "str_lit":
		return Literal(loc=_loc(node), value=_decode_string(node.children[0].value, _loc(node)))
	if name == "true_lit":
		return Literal(loc=_loc(node), value=True)
	if name == "false_lit":
		return Literal(loc=_loc(node), value=False)
	if name == "nil_lit":
		return Literal(loc=_loc(node), value=None)
	if name == "tuple_expr":
		elements = tuple(_build_expr(child) for child in _tree_children(node))
		return TupleExpr(loc=_loc(node), elements=elements)
	raise ValueError(f"Unsupported expression node: {name}")


_SIMPLE_ESCAPES = {
	"0": "\0",
	"\\": "\\",
	"t": "\t",
	"n": "\n",
	"r": "\r",
	'"': '"',
	"'": "'",
}

_UNICODE_ESCAPE = re.compile(r"u\{([0-9A-Fa-f]{1,8})\}")


def _decode_string(text: str, loc: Located) -> str:
	"""
	Decode a quoted STRING token.

	Escapes: `\\0 \\\\ \\t \\n \\r \\" \\'` and `\\u{1-8 hex digits}`.
	Interpolation (`\\(...)`) is not supported and is rejected like any other
	unknown escape.
	"""
	body = text[1:-1]
	out: List[str] = []
	i = 0
	while i < len(body):
		ch = body[i]
		if ch != "\\":
			out.append(ch)
			i += 1
			continue
		escape = body[i + 1]
		if escape in _SIMPLE_ESCAPES:
			out.append(_SIMPLE_ESCAPES[escape])
			i += 2
			continue
		if escape == "(":
			raise SourceError("string interpolation is not supported", loc)
		match = _UNICODE_ESCAPE.match(body, i + 1)
		if match is None:
			raise SourceError(f"invalid escape sequence '\\{escape}' in string literal", loc)
		code = int(match.group(1), 16)
		if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
			raise SourceError(f"invalid unicode scalar '\\{match.group(0)}' in string literal", loc)
		out.append(chr(code))
		i = match.end()
	return "".join(out)


def _fold_chain(tree: Tree, tail_name: str) -> Expr:
	child_nodes = _tree_children(tree)
	result = _build_expr(child_nodes[0])
	for child in child_nodes[1:]:
		if _name(child) != tail_name:
			continue
		result = _binary_tail(result, child)
	return result


def _binary_tail(left: Expr, tail: Tree) -> Expr:
	op_token = tail.children[0]
	right = _build_expr(tail.children[1])
	# The folded node spans from the chain start to the end of this operand.
	loc = Located(
		offset=left.loc.offset,
		end_offset=right.loc.end_offset,
		line=left.loc.line,
		column=left.loc.column,
	)
	return Binary(loc=loc, op=op_token.value, left=left, right=right)


def _build_call(tree: Tree) -> Call:
	children = _tree_children(tree)
	func = _build_expr(children[0])
	args: tuple[Argument, ...] = ()
	if len(children) > 1 and _name(children[1]) == "call_args":
		args = tuple(_build_argument(arg) for arg in _tree_children(children[1]))
	return Call(loc=_loc(tree), func=func, args=args)


def _build_argument(tree: Tree) -> Argument:
	if _name(tree) == "labeled_arg":
		label_token = tree.children[0]
		value = _build_expr(_tree_children(tree)[0])
		return Argument(loc=_loc(tree), value=value, label=label_token.value)
	value = _build_expr(tree)
	return Argument(loc=value.loc, value=value)


# ---- helpers -----------------------------------------------------------------


def _tree_children(tree: Tree) -> List[Tree]:
	return [child for child in tree.children if isinstance(child, Tree)]


def _loc(tree: Tree) -> Located:
	meta = tree.meta
	return Located(offset=meta.start_pos, end_offset=meta.end_pos, line=meta.line, column=meta.column)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["SourceError", "TerminatorInserter", "parse_source"]
