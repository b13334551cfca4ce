# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
bindscope parser: source text to a linked, immutable syntax tree.

`parse_source` raises on bad input; the `*_with_diagnostics` / `parse_source_file`
adapters are what drivers use, converting syntax errors into parser-phase
diagnostics instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from bindscope.core.diagnostics import Diagnostic
from bindscope.core.span import Span

from . import syntax
from .parser import parse_source


def _syntax_error_diagnostic(err: UnexpectedInput, source: str, file: Optional[str]) -> Diagnostic:
	notes: list[str] = []
	if isinstance(err, UnexpectedEOF):
		message = "unexpected end of input"
	elif isinstance(err, UnexpectedToken):
		if err.token.type == "$END":
			message = "unexpected end of input"
		elif err.token.type == "TERMINATOR":
			message = "unexpected end of statement"
		else:
			message = f"unexpected token {err.token.value!r}"
		if err.expected:
			notes.append("expected one of: " + ", ".join(sorted(err.expected)))
	elif isinstance(err, UnexpectedCharacters):
		message = f"unexpected character {err.char!r}"
	else:
		message = "syntax error"
	if getattr(err, "line", -1) not in (None, -1):
		context = err.get_context(source).rstrip()
		if context:
			notes.append(context)
	return Diagnostic(message=message, code="E-SYNTAX", phase="parser", span=Span.from_loc(err, file=file), notes=notes)


def parse_with_diagnostics(source: str, *, file: Optional[str] = None) -> Tuple[Optional[syntax.SourceFile], list[Diagnostic]]:
	"""
	Parse `source`, returning `(tree, diagnostics)`.

	On success the diagnostics list is empty. On failure the tree is None and
	exactly one parser-phase diagnostic describes the first error (no recovery).
	"""
	try:
		return parse_source(source), []
	except UnexpectedInput as err:
		return None, [_syntax_error_diagnostic(err, source, file)]
	except ValueError as err:
		# Tree-builder rejections (bad escapes, a non-name assignment target).
		span = Span.from_loc(getattr(err, "loc", None), file=file)
		return None, [Diagnostic(message=str(err), code="E-SYNTAX", phase="parser", span=span)]


def read_error_diagnostic(err: OSError | UnicodeDecodeError, file: str) -> Diagnostic:
	"""Driver-phase diagnostic for a source that could not be read as UTF-8 text."""
	if isinstance(err, UnicodeDecodeError):
		reason = f"not valid UTF-8 (byte offset {err.start})"
	else:
		reason = err.strerror or str(err)
	return Diagnostic(message=f"cannot read source: {reason}", phase="driver", span=Span(file=file))


def parse_source_file(path: Path) -> Tuple[Optional[syntax.SourceFile], list[Diagnostic]]:
	try:
		text = Path(path).read_text(encoding="utf-8")
	except (OSError, UnicodeDecodeError) as err:
		return None, [read_error_diagnostic(err, str(path))]
	return parse_with_diagnostics(text, file=str(path))


__all__ = ["parse_source", "parse_source_file", "parse_with_diagnostics", "read_error_diagnostic", "syntax"]
