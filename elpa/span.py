# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source positions used by tokens and error reports.

Lines and columns are 1-based; `offset` is the 0-based byte offset of the
first byte. A default `Span()` means the position is unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Best-effort file/line/column/offset of a token or error site."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	offset: Optional[int] = None

	@property
	def known(self) -> bool:
		return self.line is not None

	def describe(self) -> str:
		if not self.known:
			return "<unknown>"
		where = f"{self.line}:{self.column}"
		return f"{self.file}:{where}" if self.file else where

	def to_dict(self) -> dict[str, Any]:
		return {"file": self.file, "line": self.line, "column": self.column, "offset": self.offset}


__all__ = ["Span"]
