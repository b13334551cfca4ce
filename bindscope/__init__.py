# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""bindscope: lexical name resolution for a small Swift-like language."""

from bindscope.parser import parse_source
from bindscope.resolver import Resolution, resolve_all
from bindscope.scope import Declaration, enclosing_scope, resolve

__all__ = ["Declaration", "Resolution", "enclosing_scope", "parse_source", "resolve", "resolve_all"]
