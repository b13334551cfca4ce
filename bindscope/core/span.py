# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span attached to diagnostics.

A Span is built from whatever location object is at hand: a syntax node's
`Located`, a lark exception or token (both carry line/column), or nothing at
all. Missing fields stay None; `Span()` denotes an unknown location.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	offset: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a parser location object.

		`Located` exposes `offset`; lark tokens and `UnexpectedInput` errors
		expose `start_pos`/`pos_in_stream`. Lark reports unknown line/column
		as -1, which is normalized to None.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			return loc if file is None else cls(file=file, line=loc.line, column=loc.column, offset=loc.offset)
		offset = getattr(loc, "offset", None)
		if offset is None:
			offset = getattr(loc, "start_pos", None)
		if offset is None:
			offset = getattr(loc, "pos_in_stream", None)
		return cls(
			file=file,
			line=_known(getattr(loc, "line", None)),
			column=_known(getattr(loc, "column", None)),
			offset=_known(offset),
		)

	def format_prefix(self) -> str:
		"""`file:line:column` with unknown parts left out."""
		parts = [self.file or "<input>"]
		if self.line is not None:
			parts.append(str(self.line))
			if self.column is not None:
				parts.append(str(self.column))
		return ":".join(parts)


def _known(value: Any) -> Optional[int]:
	if not isinstance(value, int) or value < 0:
		return None
	return value


__all__ = ["Span"]
