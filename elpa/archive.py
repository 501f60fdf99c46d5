# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Tar archive extractor for multi-file packages.

Layout rules:
- every entry lives under one top-level directory named `<name>-<version>`,
- `<name>-<version>/<name>-pkg.el` holds the `define-package` form; its
  declared name/version must equal the directory-derived ones,
- `<name>-<version>/README` (if present) becomes the readme.

A missing `-pkg.el` is tolerated: the descriptor is built from the directory
name alone. Directory-shape violations are fatal.
"""

from __future__ import annotations

import logging
import re
import tarfile
from pathlib import PurePosixPath
from typing import BinaryIO, Optional

from elpa.errors import ArchiveFormatError, DirectoryShapeError, ElpaIdentity
from elpa.model import Package, PackageDetails, PackageRef
from elpa.pkgdef import read_package_definition

logger = logging.getLogger(__name__)

_DIR_RE = re.compile(r"([\w-]+)-([\d.]+)")
README_NAME = "README"


def split_package_dir(dirname: str) -> tuple[str, str]:
	"""Split `<name>-<version>` into (name, version) or raise DirectoryShapeError."""
	m = _DIR_RE.fullmatch(dirname)
	if m is None:
		raise DirectoryShapeError(
			message="directory must be '<package-name>-<version>/'",
			expected="<name>-<version>",
			actual=dirname,
		)
	return m.group(1), m.group(2)


def _entry_parts(name: str) -> tuple[str, ...]:
	p = PurePosixPath(name.replace("\\", "/"))
	if p.is_absolute():
		raise DirectoryShapeError(message="tar entries must use relative paths", actual=name)
	parts = tuple(part for part in p.parts if part not in ("", "."))
	if any(part == ".." for part in parts):
		raise DirectoryShapeError(message="tar entries must not contain '..'", actual=name)
	return parts


def parse_package_tar(fileobj: BinaryIO, *, file: Optional[str] = None, chunk_size: int = 256) -> Package:
	"""
	Extract a descriptor from a package tarball read from `fileobj`.

	The archive is read as a stream (entries in archive order); the `-pkg.el`
	member is fed to the definition parser without buffering it first.
	"""
	top: str | None = None
	name = ""
	version = ""
	description = ""
	required: tuple[PackageRef, ...] = ()
	readme = ""

	try:
		tf = tarfile.open(fileobj=fileobj, mode="r|*")
	except tarfile.TarError as err:
		raise ArchiveFormatError(message=f"not a readable tar archive: {err}", path=file) from err

	with tf:
		try:
			for member in tf:
				parts = _entry_parts(member.name)
				if not parts:
					logger.debug("skipping archive root entry %r", member.name)
					continue
				if top is None:
					if len(parts) < 2 and not member.isdir():
						raise DirectoryShapeError(
							message="tar files must contain only files in a directory",
							actual=member.name,
							path=file,
						)
					top = parts[0]
					name, version = split_package_dir(top)
					logger.debug("archive directory %s -> %s %s", top, name, version)
				elif parts[0] != top or (len(parts) < 2 and not member.isdir()):
					raise DirectoryShapeError(
						message="tar files must only contain one top-level directory",
						expected=f"{top}/...",
						actual=member.name,
						identity=ElpaIdentity(name, version),
						path=file,
					)

				if len(parts) != 2 or not member.isfile():
					continue
				basename = parts[1]
				if basename == f"{name}-pkg.el":
					stream = tf.extractfile(member)
					if stream is None:
						continue
					definition = read_package_definition(
						stream,
						name=name,
						version=version,
						chunk_size=chunk_size,
						file=member.name,
					)
					description = definition.description
					required = definition.required
					logger.debug("read package definition from %s", member.name)
				elif basename == README_NAME:
					stream = tf.extractfile(member)
					if stream is None:
						continue
					readme = stream.read().decode("utf-8", errors="replace")
		except tarfile.TarError as err:
			raise ArchiveFormatError(message=f"corrupt tar archive: {err}", path=file) from err

	if top is None:
		raise DirectoryShapeError(message="tar archive contains no package directory", path=file)

	return Package(
		name=name,
		description=description,
		latest_version=version,
		kind="tar",
	).with_details(PackageDetails(readme=readme, required=required))


__all__ = ["README_NAME", "parse_package_tar", "split_package_dir"]
