# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Archive index rendering (`archive-contents`) and readme text.

The listing is the format package.el downloads from an archive:

	(1
	(foo . [(1 2 3) ((bar (0 5))) "Does foo things" single]))

Versions are rendered as lists of their dot-separated components.
"""

from __future__ import annotations

import logging
from typing import Iterable

from elpa.errors import CodecError
from elpa.model import Package, PackageRef

logger = logging.getLogger(__name__)

ARCHIVE_FORMAT_VERSION = 1


def version_list(version: str) -> str:
	return "(" + " ".join(version.split(".")) + ")"


def _lisp_string(text: str) -> str:
	return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def required_list(pkg: Package) -> str:
	"""Render dependencies, or `nil` when there are none (or they cannot be decoded)."""
	try:
		required: tuple[PackageRef, ...] = pkg.decoded_details().required
	except CodecError as err:
		logger.warning("cannot decode details for %s: %s", pkg.name, err.message)
		return "nil"
	if not required:
		return "nil"
	return "(" + " ".join(f"({r.name} {version_list(r.version)})" for r in required) + ")"


def render_entry(pkg: Package) -> str:
	kind = pkg.kind or "single"
	return (
		f"({pkg.name} . [{version_list(pkg.latest_version)} {required_list(pkg)} "
		f"{_lisp_string(pkg.description)} {kind}])"
	)


def render_archive_contents(packages: Iterable[Package]) -> str:
	entries = "".join("\n" + render_entry(p) for p in sorted(packages, key=lambda p: p.name))
	return f"({ARCHIVE_FORMAT_VERSION} {entries})\n"


def readme_text(pkg: Package) -> str:
	"""
	Text served as `<name>-readme.txt`.

	Carriage returns are stripped (they show up as ^M in Emacs buffers). An
	empty readme falls back to the one-line description.
	"""
	try:
		readme = pkg.decoded_details().readme
	except CodecError as err:
		logger.warning("cannot decode details for %s: %s", pkg.name, err.message)
		readme = ""
	if not readme:
		return pkg.description
	return readme.replace("\r", "")


__all__ = ["ARCHIVE_FORMAT_VERSION", "readme_text", "render_archive_contents", "render_entry", "required_list", "version_list"]
