# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO

from bindscope.core.diagnostics import Diagnostic
from bindscope.parser import parse_with_diagnostics, read_error_diagnostic
from bindscope.resolver import Resolution, format_resolution, resolve_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportOptions:
	json_output: bool = False
	hide_unresolved: bool = False


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(
		prog="bindscope",
		description="Resolve every identifier reference in a source file to its declaration",
	)
	p.add_argument("source", type=str, help="Source file to analyze ('-' reads stdin)")
	p.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
	p.add_argument(
		"--hide-unresolved",
		action="store_true",
		help="Leave references without a visible declaration out of the report",
	)
	p.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
	return p


def _read_source(source: str) -> tuple[Optional[str], List[Diagnostic]]:
	try:
		if source == "-":
			return sys.stdin.read(), []
		return Path(source).read_text(encoding="utf-8"), []
	except (OSError, UnicodeDecodeError) as err:
		return None, [read_error_diagnostic(err, "<stdin>" if source == "-" else source)]


def _emit(
	resolutions: List[Resolution],
	diagnostics: List[Diagnostic],
	exit_code: int,
	options: ReportOptions,
	out: TextIO,
	err: TextIO,
) -> None:
	shown = [r for r in resolutions if r.resolved or not options.hide_unresolved]
	if options.json_output:
		payload = {
			"exit_code": exit_code,
			"resolutions": [r.to_dict() for r in shown],
			"diagnostics": [d.to_dict() for d in diagnostics],
		}
		print(json.dumps(payload, indent=2), file=out)
		return
	for diag in diagnostics:
		print(diag.format_human(), file=err)
	for resolution in shown:
		print(format_resolution(resolution), file=out)


def run(
	text: str,
	*,
	file: Optional[str] = None,
	options: ReportOptions = ReportOptions(),
	out: Optional[TextIO] = None,
	err: Optional[TextIO] = None,
) -> int:
	"""Parse, resolve and report `text`. Returns the process exit code."""
	out = out if out is not None else sys.stdout
	err = err if err is not None else sys.stderr
	tree, diagnostics = parse_with_diagnostics(text, file=file)
	if tree is None:
		_emit([], diagnostics, 1, options, out, err)
		return 1
	resolutions = resolve_all(tree)
	_emit(resolutions, diagnostics, 0, options, out, err)
	return 0


def main(argv: list[str] | None = None) -> int:
	args = _build_parser().parse_args(argv)
	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
		stream=sys.stderr,
	)
	options = ReportOptions(json_output=args.json, hide_unresolved=args.hide_unresolved)
	file = "<stdin>" if args.source == "-" else args.source
	text, diagnostics = _read_source(args.source)
	if text is None:
		_emit([], diagnostics, 1, options, sys.stdout, sys.stderr)
		return 1
	logger.debug("analyzing %s (%d bytes)", file, len(text))
	return run(text, file=file, options=options)


if __name__ == "__main__":
	raise SystemExit(main())
