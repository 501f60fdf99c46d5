# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Shared fixtures for extractor tests: sample package sources and an in-memory
tar builder so archive tests do not need files on disk.
"""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from typing import Iterable

# Three spellings of the same definition; all must yield the same dependencies.
VALID_EQUIVALENT_PKG_FILES = [
	"""(define-package "sample-test" "0.1.2.3" "A sample package"
   '((req1 "1.0.0") (req2 "2.0.0") (req3 "3.0.0")))""",
	"""(define-package "sample-test" "0.1.2.3" "A sample package"
   (quote ((req1 "1.0.0") (req2 "2.0.0") (req3 "3.0.0"))))""",
	"""(DEFINE-PACKAGE "sample-test" "0.1.2.3" "A sample package"
   (QUOTE ((REQ1 "1.0.0") (REQ2 "2.0.0") (REQ3 "3.0.0"))))""",
]

SAMPLE_HEADER = """;;; sample-test.el --- A sample package
;;
;; Copyright (c) 2013 Andrew Hyatt
;;
;; Author: Andrew Hyatt <ahyatt@gmail.com>
;; Homepage: http://ignore.for.now
;; URL: http://also.ignored
;; Version: 0.1.2.3
;; Last-Updated: 19 Aug 2012
;; Keywords: fee, fi, fo, fum
;; Package-Requires: ((req1 "1.0.0") (req2 "2.0.0") (req3 "3.0.0"))
;;
;; Simplified BSD License
;;
;;; Commentary:
;;
;; This is the package commentary,
;; which spans multiple lines.
;;
;;; Code:
;;; Etc...
"""


def build_tar(entries: Iterable[tuple[str, str | bytes | None]]) -> bytes:
	"""
	Build an uncompressed tar archive in memory.

	Each entry is (name, contents); contents of None adds a directory entry.
	"""
	buf = io.BytesIO()
	with tarfile.open(fileobj=buf, mode="w") as tw:
		for name, contents in entries:
			info = tarfile.TarInfo(name=name)
			info.mtime = 0
			if contents is None:
				info.type = tarfile.DIRTYPE
				info.mode = 0o755
				tw.addfile(info)
				continue
			data = contents.encode("utf-8") if isinstance(contents, str) else contents
			info.size = len(data)
			info.mode = 0o644
			tw.addfile(info, io.BytesIO(data))
	return buf.getvalue()


def sample_tar(pkg_file: str, *, readme: str | None = "readme") -> bytes:
	entries: list[tuple[str, str | bytes | None]] = [
		("sample-test-0.1.2.3/sample-test-pkg.el", pkg_file),
		("sample-test-0.1.2.3/sample-test.el", "test contents"),
	]
	if readme is not None:
		entries.append(("sample-test-0.1.2.3/README", readme))
	return build_tar(entries)


def write_file(path: Path, data: str | bytes) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	if isinstance(data, bytes):
		path.write_bytes(data)
	else:
		path.write_text(data, encoding="utf-8")


__all__ = ["SAMPLE_HEADER", "VALID_EQUIVALENT_PKG_FILES", "build_tar", "sample_tar", "write_file"]
