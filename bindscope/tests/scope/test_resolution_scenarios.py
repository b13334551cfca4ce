# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from bindscope.parser import parse_source
from bindscope.parser import syntax as S
from bindscope.scope import Declaration, enclosing_scope, resolve

_FUNCTION_WITH_OPTIONAL_BINDING = """
let c = 1
func f(a: Int, b: Int?) -> Int {
	if let b = b {
		return b + c
	}
	return a + b
}
"""


def _refs(tree: S.SourceFile, name: str) -> list[S.Reference]:
	return [node for node in S.walk(tree) if isinstance(node, S.Reference) and node.name == name]


def _target(ref: S.Reference) -> S.Node | None:
	declaration = resolve(ref)
	return None if declaration is None else declaration.node


def test_conditional_binding_shadows_parameter_inside_its_body() -> None:
	tree = parse_source(_FUNCTION_WITH_OPTIONAL_BINDING)
	top, fn = tree.statements
	if_stmt = fn.body.statements[0]
	body_b = _refs(tree, "b")[1]
	body_c = _refs(tree, "c")[0]
	assert _target(body_b) is if_stmt.conditions[0]
	assert _target(body_c) is top


def test_conditional_binding_does_not_leak_out_of_its_block() -> None:
	tree = parse_source(_FUNCTION_WITH_OPTIONAL_BINDING)
	fn = tree.statements[1]
	param_a, param_b = fn.params
	after_a = _refs(tree, "a")[-1]
	after_b = _refs(tree, "b")[-1]
	assert _target(after_a) is param_a
	assert _target(after_b) is param_b


def test_binding_initializer_resolves_outside_the_binding() -> None:
	tree = parse_source(_FUNCTION_WITH_OPTIONAL_BINDING)
	fn = tree.statements[1]
	initializer_b = _refs(tree, "b")[0]
	assert _target(initializer_b) is fn.params[1]


def test_undeclared_name_is_unresolved() -> None:
	tree = parse_source(
		"""
func g(x: Int) {
	return c + x
}
let c = 2
print(c)
"""
	)
	in_function, at_top = _refs(tree, "c")
	assert resolve(in_function) is None
	assert _target(at_top) is tree.statements[1]
	assert resolve(_refs(tree, "print")[0]) is None


def test_same_scope_redeclaration_resolves_to_the_earliest() -> None:
	tree = parse_source(
		"""
let x = 1
use(x)
let x = 2
use(x)
"""
	)
	first_decl = tree.statements[0]
	between, after = _refs(tree, "x")
	assert _target(between) is first_decl
	assert _target(after) is first_decl


def test_reference_before_any_declaration_is_unresolved() -> None:
	tree = parse_source("use(v)\nlet v = 1\n")
	assert resolve(_refs(tree, "v")[0]) is None


def test_local_after_block_start_is_invisible_to_earlier_nested_block() -> None:
	tree = parse_source(
		"""
func f() {
	if ok {
		late
	}
	let late = 1
	late
}
"""
	)
	fn = tree.statements[0]
	inside_if, after_decl = _refs(tree, "late")
	assert resolve(inside_if) is None
	assert _target(after_decl) is fn.body.statements[1]


def test_nested_function_sees_enclosing_locals_and_parameters() -> None:
	tree = parse_source(
		"""
let g = 1
func outer(p: Int) {
	let local = p
	func inner(q: Int) {
		return local + q + p + g
	}
}
"""
	)
	outer = tree.statements[1]
	local_decl, inner = outer.body.statements
	ret = inner.body.statements[0]
	targets = [_target(node) for node in S.walk(ret) if isinstance(node, S.Reference)]
	assert targets == [local_decl, inner.params[0], outer.params[0], tree.statements[0]]


def test_partial_rebind_keeps_outer_multi_name_declaration_visible() -> None:
	tree = parse_source(
		"""
let x = 1, y = 2
func f(x: Int) {
	x + y
}
"""
	)
	outer, fn = tree.statements
	scope = enclosing_scope(_refs(tree, "y")[0])
	visible = scope.visible_before(_refs(tree, "y")[0].position)
	assert [d.node for d in visible] == [outer, fn.params[0]]
	# Both declarations bind `x`; the earliest visible one wins.
	assert _target(_refs(tree, "x")[0]) is outer
	assert _target(_refs(tree, "y")[0]) is outer


def test_full_rebind_hides_outer_declaration() -> None:
	tree = parse_source(
		"""
let x = 1
func f(x: Int) {
	x
}
"""
	)
	fn = tree.statements[1]
	ref = _refs(tree, "x")[0]
	visible = enclosing_scope(ref).visible_before(ref.position)
	assert [d.node for d in visible] == [fn.params[0]]
	assert _target(ref) is fn.params[0]


def test_shorthand_binding_rebinds_the_same_name() -> None:
	tree = parse_source(
		"""
func f(v: Int?) {
	if let v {
		v
	}
}
"""
	)
	if_stmt = tree.statements[0].body.statements[0]
	assert _target(_refs(tree, "v")[0]) is if_stmt.conditions[0]


def test_else_body_sees_its_own_locals_but_not_the_if_bindings() -> None:
	tree = parse_source(
		"""
func f(a: Int?) {
	if let a = a {
		a
	} else {
		let fallback = 0
		a + fallback
	}
}
"""
	)
	fn = tree.statements[0]
	if_stmt = fn.body.statements[0]
	else_a = _refs(tree, "a")[-1]
	fallback = _refs(tree, "fallback")[0]
	assert _target(else_a) is fn.params[0]
	assert _target(fallback) is if_stmt.else_body.statements[0]


def test_while_binding_is_visible_only_in_the_loop_body() -> None:
	tree = parse_source(
		"""
func drain(queue: Int) {
	while let item = next(queue) {
		use(item)
	}
	use(item)
}
"""
	)
	loop = tree.statements[0].body.statements[0]
	inside, outside = _refs(tree, "item")
	assert _target(inside) is loop.conditions[0]
	assert resolve(outside) is None


def test_visibility_grows_monotonically_with_position() -> None:
	tree = parse_source(
		"""
let a = 1
func f(p: Int) {
	let b = p
	if let c = b {
		let d = c
		use(d)
		let e = d
	}
	let g = 1
}
let h = 2
"""
	)
	positions = sorted({node.position for node in S.walk(tree)} | {len(tree.text)})
	for node in S.walk(tree):
		if not isinstance(node, S.Reference):
			continue
		scope = enclosing_scope(node)
		previous: set[Declaration] = set()
		for position in positions:
			current = set(scope.visible_before(position))
			assert previous <= current
			previous = current


def test_visible_declarations_are_sorted_by_position() -> None:
	tree = parse_source(
		"""
let a = 1
func f(p: Int, q: Int) {
	let b = 2
	if let c = b {
		let d = c
		d
	}
}
"""
	)
	ref = _refs(tree, "d")[0]
	visible = enclosing_scope(ref).visible_before(ref.position)
	assert [d.names for d in visible] == [("a",), ("p",), ("q",), ("b",), ("c",), ("d",)]
	assert [d.position for d in visible] == sorted(d.position for d in visible)


def test_resolution_is_deterministic() -> None:
	tree = parse_source(_FUNCTION_WITH_OPTIONAL_BINDING)
	for ref in (node for node in S.walk(tree) if isinstance(node, S.Reference)):
		assert resolve(ref) == resolve(ref)


def test_body_local_with_a_parameter_name_resolves_to_the_parameter() -> None:
	tree = parse_source(
		"""
func f(x: Int) {
	let x = 2
	x
}
"""
	)
	fn = tree.statements[0]
	ref = _refs(tree, "x")[0]
	visible = enclosing_scope(ref).visible_before(ref.position)
	# Only introduced declarations filter the start set; body locals never do.
	assert [d.node for d in visible] == [fn.params[0], fn.body.statements[0]]
	assert _target(ref) is fn.params[0]


def test_body_local_with_an_outer_name_resolves_to_the_outer_binding() -> None:
	tree = parse_source(
		"""
let x = 1
func f() {
	let x = 2
	x
}
"""
	)
	top, fn = tree.statements
	ref = _refs(tree, "x")[0]
	visible = enclosing_scope(ref).visible_before(ref.position)
	assert [d.node for d in visible] == [top, fn.body.statements[0]]
	assert _target(ref) is top
