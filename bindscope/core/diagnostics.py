# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diagnostic records produced by the front end and reported by the CLI.

Name resolution itself never produces diagnostics: an unresolved reference is
a normal result. Diagnostics cover inputs that could not be turned into a
syntax tree at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .span import Span


@dataclass
class Diagnostic:
	message: str
	code: str | None = None
	# Phase label: "parser" or "driver".
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Span() denotes unknown.
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def format_human(self) -> str:
		head = f"{self.span.format_prefix()}: {self.severity}: {self.message}"
		if self.code:
			head = f"{head} [{self.code}]"
		return "\n".join([head] + [f"  note: {note}" for note in self.notes])

	def to_dict(self) -> dict[str, Any]:
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


__all__ = ["Diagnostic"]
