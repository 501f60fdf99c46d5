# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from elpa.errors import ElpaError
from elpa.index import readme_text, render_archive_contents
from elpa.model import Package
from elpa.repository import (
	UploadOptions,
	extract_package,
	get_package,
	list_contents,
	load_packages,
	upload_package,
)


@dataclass(frozen=True)
class InspectOptions:
	package_path: Path
	chunk_size: int = 256
	json: bool = False


def _package_report(pkg: Package) -> dict[str, Any]:
	return {"package": pkg.to_dict(), "details": pkg.decoded_details().to_dict()}


def _print_package(pkg: Package) -> None:
	details = pkg.decoded_details()
	print(f"name: {pkg.name}")
	print(f"version: {pkg.latest_version}")
	print(f"description: {pkg.description}")
	print(f"author: {pkg.author}")
	print(f"kind: {pkg.kind}")
	print("required:")
	for r in details.required:
		print(f"  - {r.name} {r.version}")
	if details.readme:
		print("readme:")
		print(details.readme, end="" if details.readme.endswith("\n") else "\n")


def _emit_json(obj: Any) -> None:
	print(json.dumps(obj, sort_keys=True, separators=(",", ":")))


def _report_error(err: ElpaError, *, as_json: bool) -> int:
	if as_json:
		_emit_json({"ok": False, "error": err.to_dict()})
	else:
		print(err.format_human(), file=sys.stderr)
	return 2


def inspect_v0(opts: InspectOptions) -> int:
	try:
		pkg = extract_package(opts.package_path, chunk_size=opts.chunk_size)
	except ElpaError as err:
		return _report_error(err, as_json=opts.json)
	if opts.json:
		_emit_json({"ok": True, **_package_report(pkg)})
	else:
		_print_package(pkg)
	return 0


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="elpa", description="Emacs Lisp package archive tooling (metadata extraction, uploads)")
	p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
	sub = p.add_subparsers(dest="cmd", required=True)

	inspect = sub.add_parser("inspect", help="Extract package metadata from a .el file or .tar archive")
	inspect.add_argument("package", type=Path, help="Path to <name>.el or <name>-<version>.tar")
	inspect.add_argument("--chunk-size", type=int, default=256, help="Read size for package definition files (default: 256)")
	inspect.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

	upload = sub.add_parser("upload", help="Upload a package into a local archive directory")
	upload.add_argument("package", type=Path, help="Path to <name>.el or <name>-<version>.tar")
	upload.add_argument(
		"--repo",
		type=Path,
		default=Path("elpa-repo"),
		help="Archive directory (default: ./elpa-repo)",
	)
	upload.add_argument("--chunk-size", type=int, default=256, help="Read size for package definition files (default: 256)")
	upload.add_argument("--json", action="store_true", help="Emit machine-readable JSON")

	contents = sub.add_parser("archive-contents", help="Print the archive-contents listing")
	contents.add_argument("--repo", type=Path, default=Path("elpa-repo"), help="Archive directory (default: ./elpa-repo)")

	readme = sub.add_parser("readme", help="Print the readme text served for a package")
	readme.add_argument("name", type=str, help="Package name")
	readme.add_argument("--repo", type=Path, default=Path("elpa-repo"), help="Archive directory (default: ./elpa-repo)")

	ls = sub.add_parser("list", help="List packages and uploaded versions")
	ls.add_argument("--repo", type=Path, default=Path("elpa-repo"), help="Archive directory (default: ./elpa-repo)")
	ls.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
	return p


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
		stream=sys.stderr,
	)

	if args.cmd == "inspect":
		opts = InspectOptions(package_path=args.package, chunk_size=args.chunk_size, json=bool(args.json))
		try:
			return inspect_v0(opts)
		except Exception as err:
			p.error(str(err))
			return 2

	if args.cmd == "upload":
		opts = UploadOptions(package_path=args.package, repo_dir=args.repo, chunk_size=args.chunk_size)
		try:
			result = upload_package(opts)
		except ElpaError as err:
			return _report_error(err, as_json=bool(args.json))
		except Exception as err:
			p.error(str(err))
			return 2
		if args.json:
			_emit_json({"ok": True, **result.to_dict()})
		else:
			print(f"uploaded {result.package.name} {result.package.latest_version} -> {result.content.path}")
		return 0

	if args.cmd == "archive-contents":
		try:
			pkgs = load_packages(args.repo)
		except ElpaError as err:
			return _report_error(err, as_json=False)
		sys.stdout.write(render_archive_contents(pkgs.values()))
		return 0

	if args.cmd == "readme":
		try:
			pkg = get_package(args.repo, args.name)
		except ElpaError as err:
			return _report_error(err, as_json=False)
		sys.stdout.write(readme_text(pkg))
		return 0

	if args.cmd == "list":
		try:
			pkgs = load_packages(args.repo)
			rows = [
				{
					"name": name,
					"latest_version": pkg.latest_version,
					"kind": pkg.kind,
					"versions": [c.version for c in list_contents(args.repo, name)],
				}
				for name, pkg in sorted(pkgs.items())
			]
		except ElpaError as err:
			return _report_error(err, as_json=bool(args.json))
		if args.json:
			_emit_json({"ok": True, "packages": rows})
		else:
			for row in rows:
				print(f"{row['name']} {row['latest_version']} ({row['kind']}) versions: {', '.join(row['versions'])}")
		return 0

	raise AssertionError("unreachable")
