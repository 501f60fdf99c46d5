# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Header-comment extractor for single-file packages.

A single `.el` package describes itself in its leading comments:

	;;; foo.el --- Does foo things  -*- lexical-binding: t -*-
	;; Author: Jane Doe <jane@example.com>
	;; Version: 1.2.3
	;; Package-Requires: ((emacs "24.4") (cl-lib "0.5"))
	;;; Commentary:
	;; Long description...
	;;; Code:

This is a line scan, not a sexp parse; only the `Package-Requires` value is
parsed structurally (with the lark grammar in `requires.lark`).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, Optional

from lark import Lark, Token as LarkToken
from lark.exceptions import UnexpectedInput

from elpa.errors import ElpaIdentity, RequiredFieldMissing, StructuralMismatch
from elpa.model import Package, PackageDetails, PackageRef
from elpa.span import Span

logger = logging.getLogger(__name__)

_NAME_DESCRIPTION_RE = re.compile(r"^;;;\s*([\w-]+)\.el\s+---\s*(.*)$")
_PARAM_RE = re.compile(r"^;;\s+([\w-]+):\s*(.*?)\s*$")
_HEADING_RE = re.compile(r"^;;;\s*(.*?):\s*$")
_TEXT_LINE_RE = re.compile(r"^;;(?:\s(.*))?$")
_CONTINUATION_RE = re.compile(r"^;;\s+(\S.*)$")
_FILE_VARIABLES_RE = re.compile(r"\s*-\*-.*-\*-\s*$")
_ESCAPE_RE = re.compile(r"\\(.)")

_GRAMMAR_PATH = Path(__file__).with_name("requires.lark")
_REQUIRES_PARSER = Lark(
	_GRAMMAR_PATH.read_text(encoding="utf-8"),
	parser="lalr",
	start="start",
	maybe_placeholders=False,
)


def _decode_version(tok: LarkToken) -> str:
	return _ESCAPE_RE.sub(r"\1", str(tok)[1:-1])


def _split_comment(text: str) -> tuple[str, int]:
	"""
	Drop a trailing `; comment` and count the parens it leaves open.

	Semicolons and parens inside string literals do not count.
	"""
	depth = 0
	in_string = False
	escaped = False
	for i, ch in enumerate(text):
		if in_string:
			if escaped:
				escaped = False
			elif ch == "\\":
				escaped = True
			elif ch == '"':
				in_string = False
		elif ch == '"':
			in_string = True
		elif ch == ";":
			return text[:i], depth
		elif ch == "(":
			depth += 1
		elif ch == ")":
			depth -= 1
	return text, depth


def parse_package_requires(value: str, *, span: Span | None = None) -> tuple[PackageRef, ...]:
	"""
	Parse a `Package-Requires` header value into ordered PackageRefs.

	`nil` and an empty value mean no dependencies. Anything else must be a
	list of `(name "version")` pairs; a trailing `; comment` is ignored and
	the value may span several lines.
	"""
	text = "\n".join(_split_comment(line)[0] for line in value.split("\n")).strip()
	if not text or text == "nil":
		return ()
	try:
		tree = _REQUIRES_PARSER.parse(text)
	except UnexpectedInput as err:
		where = span or Span()
		line = getattr(err, "line", None)
		col = getattr(err, "column", None)
		if isinstance(line, int) and line > 1 and where.line is not None:
			err_span = Span(file=where.file, line=where.line + line - 1, column=col if isinstance(col, int) else None)
		else:
			shift = col - 1 if isinstance(col, int) and col > 0 else 0
			err_span = Span(
				file=where.file,
				line=where.line,
				column=(where.column + shift) if where.column is not None else None,
			)
		raise StructuralMismatch(
			message="malformed Package-Requires header",
			expected='list of (name "version") pairs',
			actual=text,
			span=err_span,
		) from err
	refs: list[PackageRef] = []
	for dep in tree.children:
		name_tok, version_tok = dep.children
		refs.append(PackageRef(name=str(name_tok), version=_decode_version(version_tok)))
	return tuple(refs)


def _clean_description(text: str) -> str:
	return _FILE_VARIABLES_RE.sub("", text).strip()


def _read_commentary(lines: Iterator[tuple[int, str]]) -> str:
	"""
	Collect `;; text` lines up to the next `;;; Heading:` line.

	Blank comment lines are kept between paragraphs; leading and trailing blank
	lines are dropped. Lines that are not comments are skipped.
	"""
	collected: list[str] = []
	for _lineno, raw in lines:
		line = raw.rstrip("\r\n")
		if _HEADING_RE.match(line):
			break
		m = _TEXT_LINE_RE.match(line)
		if m is None:
			continue
		collected.append((m.group(1) or "").strip())
	while collected and not collected[0]:
		collected.pop(0)
	while collected and not collected[-1]:
		collected.pop()
	if not collected:
		return ""
	return "\n".join(collected) + "\n"


def parse_package_file(reader: Iterable[str], *, file: Optional[str] = None) -> Package:
	"""
	Extract a descriptor from a single-file package's header comments.

	Raises RequiredFieldMissing when name, version or description cannot be
	found; the message carries whatever was parsed for diagnostics.
	"""
	numbered = enumerate(reader, start=1)
	name = ""
	description = ""
	author = ""
	version = ""
	readme = ""
	required: tuple[PackageRef, ...] = ()

	first = next(numbered, None)
	if first is not None:
		m = _NAME_DESCRIPTION_RE.match(first[1].rstrip("\r\n"))
		if m is not None:
			name = m.group(1)
			description = _clean_description(m.group(2))

	# Package-Requires lines still waiting for their closing parens.
	pending: list[str] = []
	pending_span: Span | None = None
	depth = 0

	for lineno, raw in numbered:
		line = raw.rstrip("\r\n")
		if pending:
			cont = _CONTINUATION_RE.match(line)
			if cont is not None and _PARAM_RE.match(line) is None and _HEADING_RE.match(line) is None:
				code, opened = _split_comment(cont.group(1))
				pending.append(code)
				depth += opened
				if depth <= 0:
					required = parse_package_requires("\n".join(pending), span=pending_span)
					pending = []
				continue
			required = parse_package_requires("\n".join(pending), span=pending_span)
			pending = []
		param = _PARAM_RE.match(line)
		if param is not None:
			key = param.group(1).lower()
			value = param.group(2)
			if key == "author":
				author = value
			elif key == "version":
				version = value
			elif key == "package-requires":
				span = Span(file=file, line=lineno, column=param.start(2) + 1)
				code, depth = _split_comment(value)
				if depth > 0:
					pending = [code]
					pending_span = span
				else:
					required = parse_package_requires(code, span=span)
			continue
		heading = _HEADING_RE.match(line)
		if heading is not None and heading.group(1).strip().lower() == "commentary":
			readme = _read_commentary(numbered)
	if pending:
		required = parse_package_requires("\n".join(pending), span=pending_span)

	if not name or not version or not description:
		raise RequiredFieldMissing(
			message="required attributes (name, version, or description) were missing",
			expected="non-empty name, version and description",
			actual=f"name={name!r} version={version!r} description={description!r} author={author!r}",
			identity=ElpaIdentity(name or None, version or None),
			path=file,
		)

	logger.debug("parsed header of %s %s (%d requirement(s))", name, version, len(required))
	return Package(
		name=name,
		description=description,
		latest_version=version,
		author=author,
		kind="single",
	).with_details(PackageDetails(readme=readme, required=required))


__all__ = ["parse_package_file", "parse_package_requires"]
