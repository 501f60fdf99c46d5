# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from elpa.span import Span


@dataclass(frozen=True)
class ElpaIdentity:
	name: str | None = None
	version: str | None = None

	def to_dict(self) -> dict[str, Any]:
		return {"name": self.name, "version": self.version}


@dataclass(eq=False)
class ElpaError(Exception):
	"""
	A structured, serializable error for package extraction.

	Every failure is terminal for the attempt: callers receive either a fully
	populated descriptor or one of these.

	Not frozen: the interpreter and `contextlib` assign `__traceback__` and
	friends on raised instances. `eq=False` keeps identity hashing.
	"""

	message: str
	reason_code: str = "ELPA_ERROR"
	expected: str | None = None
	actual: str | None = None
	span: Span | None = None
	identity: ElpaIdentity | None = None
	path: str | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"expected": self.expected,
			"actual": self.actual,
			"span": self.span.to_dict() if self.span is not None else None,
			"identity": self.identity.to_dict() if self.identity is not None else None,
			"path": self.path,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.expected is not None or self.actual is not None:
			parts.append(f"expected={self.expected!r}")
			parts.append(f"actual={self.actual!r}")
		if self.span is not None and self.span.known:
			parts.append(f"at {self.span.describe()}")
		if self.identity is not None and self.identity.name:
			parts.append(f"identity=({self.identity.name}, {self.identity.version})")
		if self.path:
			parts.append(f"path={self.path}")
		return " ".join(parts)


@dataclass(eq=False)
class LexicalIncompleteInput(ElpaError):
	"""
	Input ended in the middle of a token.

	The tokenizer never raises this itself: the explicit end signal turns a
	truncated stream into EOF, which the parser then reports structurally.
	"""

	reason_code: str = "LEXICAL_INCOMPLETE_INPUT"


@dataclass(eq=False)
class StructuralMismatch(ElpaError):
	reason_code: str = "STRUCTURAL_MISMATCH"


@dataclass(eq=False)
class IdentityMismatch(ElpaError):
	reason_code: str = "IDENTITY_MISMATCH"


@dataclass(eq=False)
class DirectoryShapeError(ElpaError):
	reason_code: str = "DIRECTORY_SHAPE"


@dataclass(eq=False)
class RequiredFieldMissing(ElpaError):
	reason_code: str = "REQUIRED_FIELD_MISSING"


@dataclass(eq=False)
class CodecError(ElpaError):
	reason_code: str = "CODEC_ERROR"


@dataclass(eq=False)
class ArchiveFormatError(ElpaError):
	reason_code: str = "ARCHIVE_FORMAT"


@dataclass(eq=False)
class RepositoryError(ElpaError):
	reason_code: str = "REPOSITORY_ERROR"


__all__ = [
	"ArchiveFormatError",
	"CodecError",
	"DirectoryShapeError",
	"ElpaError",
	"ElpaIdentity",
	"IdentityMismatch",
	"LexicalIncompleteInput",
	"RepositoryError",
	"RequiredFieldMissing",
	"StructuralMismatch",
]
