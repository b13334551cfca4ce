# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lexical name resolution over bindscope syntax trees.

Entry points for drivers:
- `enclosing_scope(node)`: nearest scope around a node,
- `resolve(reference)`: the Declaration a reference binds to, or None.
"""

from .declaration import Declaration
from .scopes import (
	AlternativeScope,
	BlockScope,
	ConditionalBindingScope,
	FunctionScope,
	GlobalScope,
	Scope,
	ScopeError,
	enclosing_scope,
	remove_shadowed,
	resolve,
	scope_for,
)

__all__ = [
	"AlternativeScope",
	"BlockScope",
	"ConditionalBindingScope",
	"Declaration",
	"FunctionScope",
	"GlobalScope",
	"Scope",
	"ScopeError",
	"enclosing_scope",
	"remove_shadowed",
	"resolve",
	"scope_for",
]
