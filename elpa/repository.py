# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Local directory package archive (v0).

Layout:

	<repo>/index.json                      descriptors keyed by package name
	<repo>/packages/<name>-<version>.el    single-file uploads
	<repo>/packages/<name>-<version>.tar   tarball uploads

`index.json` is canonical JSON written atomically. Each descriptor keeps its
details payload (base64 of the codec bytes) plus one content record per
uploaded version.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from elpa.archive import parse_package_tar
from elpa.codec import canonical_json_bytes
from elpa.errors import ElpaIdentity, RepositoryError
from elpa.headers import parse_package_file
from elpa.model import PACKAGE_KINDS, Package

logger = logging.getLogger(__name__)

INDEX_FORMAT = "elpa-index"
INDEX_VERSION = 0
_CONTENT_EXT = {"single": "el", "tar": "tar"}


@dataclass(frozen=True)
class ContentEntry:
	version: str
	path: str  # relative to the repository root
	sha256: str  # "sha256:<hex>" of the uploaded bytes
	uploaded_at: str  # ISO-8601 UTC


@dataclass(frozen=True)
class UploadOptions:
	package_path: Path
	repo_dir: Path = Path("elpa-repo")
	chunk_size: int = 256


@dataclass(frozen=True)
class UploadResult:
	package: Package
	content: ContentEntry

	def to_dict(self) -> dict[str, Any]:
		return {
			"package": self.package.to_dict(),
			"details": self.package.decoded_details().to_dict(),
			"content": {
				"version": self.content.version,
				"path": self.content.path,
				"sha256": self.content.sha256,
				"uploaded_at": self.content.uploaded_at,
			},
		}


def upload_kind(path: Path) -> str:
	"""Map an upload file name to a package kind ("single" or "tar")."""
	if path.suffix == ".el":
		return "single"
	if path.suffix == ".tar":
		return "tar"
	raise RepositoryError(
		message="unsupported upload type (expected a .el file or a .tar archive)",
		actual=path.name,
		path=str(path),
	)


def extract_package(path: Path, *, chunk_size: int = 256) -> Package:
	"""Run the extractor matching `path`'s type and return its descriptor."""
	kind = upload_kind(path)
	if kind == "single":
		with path.open("r", encoding="utf-8", errors="replace", newline="") as f:
			return parse_package_file(f, file=str(path))
	with path.open("rb") as f:
		return parse_package_tar(f, file=str(path), chunk_size=chunk_size)


def index_path(repo_dir: Path) -> Path:
	return repo_dir / "index.json"


def _empty_index() -> dict[str, Any]:
	return {"format": INDEX_FORMAT, "version": INDEX_VERSION, "packages": {}}


def load_index(path: Path) -> dict[str, Any]:
	"""Load `index.json`; a missing file is an empty index."""
	if not path.exists():
		return _empty_index()
	try:
		data = json.loads(path.read_text(encoding="utf-8"))
	except ValueError as err:
		raise RepositoryError(message=f"index is not valid JSON: {err}", path=str(path)) from err
	if not isinstance(data, dict):
		raise RepositoryError(message="index must be a JSON object", path=str(path))
	version = data.get("version")
	if data.get("format") != INDEX_FORMAT or type(version) is not int or version != INDEX_VERSION:
		raise RepositoryError(message="unsupported index format/version", path=str(path))
	if not isinstance(data.get("packages"), dict):
		raise RepositoryError(message="index packages must be an object", path=str(path))
	return data


def save_index(path: Path, obj: dict[str, Any]) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	tmp = path.with_name(path.name + f".tmp.{os.getpid()}")
	tmp.write_bytes(canonical_json_bytes(obj))
	os.replace(tmp, path)


def _package_from_raw(name: str, raw: Any, *, path: Path) -> Package:
	if not isinstance(raw, dict):
		raise RepositoryError(message=f"index entry for '{name}' must be an object", path=str(path))
	fields = {}
	for key in ("description", "latest_version", "author", "kind", "details"):
		value = raw.get(key)
		if not isinstance(value, str):
			raise RepositoryError(message=f"index entry for '{name}' is missing {key}", path=str(path))
		fields[key] = value
	if fields["kind"] not in PACKAGE_KINDS:
		raise RepositoryError(message=f"index entry for '{name}' has unknown kind {fields['kind']!r}", path=str(path))
	try:
		details = base64.b64decode(fields["details"].encode("ascii"), validate=True)
	except ValueError as err:
		raise RepositoryError(message=f"index entry for '{name}' has invalid details encoding", path=str(path)) from err
	return Package(
		name=name,
		description=fields["description"],
		latest_version=fields["latest_version"],
		author=fields["author"],
		details=details,
		kind=fields["kind"],
	)


def load_packages(repo_dir: Path) -> dict[str, Package]:
	path = index_path(repo_dir)
	data = load_index(path)
	return {name: _package_from_raw(name, raw, path=path) for name, raw in data["packages"].items()}


def get_package(repo_dir: Path, name: str) -> Package:
	pkgs = load_packages(repo_dir)
	pkg = pkgs.get(name)
	if pkg is None:
		raise RepositoryError(
			message=f"unknown package '{name}'",
			identity=ElpaIdentity(name, None),
			path=str(index_path(repo_dir)),
		)
	return pkg


def list_contents(repo_dir: Path, name: str) -> list[ContentEntry]:
	data = load_index(index_path(repo_dir))
	raw = data["packages"].get(name)
	if not isinstance(raw, dict):
		return []
	out: list[ContentEntry] = []
	contents = raw.get("contents")
	if not isinstance(contents, dict):
		return []
	for version, c in sorted(contents.items()):
		if not isinstance(c, dict):
			continue
		out.append(
			ContentEntry(
				version=version,
				path=str(c.get("path", "")),
				sha256=str(c.get("sha256", "")),
				uploaded_at=str(c.get("uploaded_at", "")),
			)
		)
	return out


def upload_package(opts: UploadOptions) -> UploadResult:
	"""
	Upload workflow: extract the descriptor, store the content under its
	(name, version) reference, then record the descriptor in the index.

	Nothing is written when extraction fails.
	"""
	pkg = extract_package(opts.package_path, chunk_size=opts.chunk_size)
	data = opts.package_path.read_bytes()

	rel = f"packages/{pkg.name}-{pkg.latest_version}.{_CONTENT_EXT[pkg.kind]}"
	dest = opts.repo_dir / rel
	dest.parent.mkdir(parents=True, exist_ok=True)
	tmp = dest.with_name(dest.name + f".tmp.{os.getpid()}")
	tmp.write_bytes(data)
	os.replace(tmp, dest)

	content = ContentEntry(
		version=pkg.latest_version,
		path=rel,
		sha256=f"sha256:{hashlib.sha256(data).hexdigest()}",
		uploaded_at=datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
	)

	path = index_path(opts.repo_dir)
	index = load_index(path)
	prev = index["packages"].get(pkg.name)
	prev_contents = prev.get("contents") if isinstance(prev, dict) else None
	contents = dict(prev_contents) if isinstance(prev_contents, dict) else {}
	contents[content.version] = {"path": content.path, "sha256": content.sha256, "uploaded_at": content.uploaded_at}
	index["packages"][pkg.name] = {
		"description": pkg.description,
		"latest_version": pkg.latest_version,
		"author": pkg.author,
		"kind": pkg.kind,
		"details": base64.b64encode(pkg.details).decode("ascii"),
		"contents": contents,
	}
	save_index(path, index)
	logger.info("uploaded %s %s (%s) to %s", pkg.name, pkg.latest_version, pkg.kind, opts.repo_dir)
	return UploadResult(package=pkg, content=content)


__all__ = [
	"ContentEntry",
	"UploadOptions",
	"UploadResult",
	"extract_package",
	"get_package",
	"list_contents",
	"load_index",
	"load_packages",
	"save_index",
	"upload_kind",
	"upload_package",
]
