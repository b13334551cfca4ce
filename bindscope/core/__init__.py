# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared value types for diagnostics and source locations."""

from .diagnostics import Diagnostic
from .span import Span

__all__ = ["Diagnostic", "Span"]
