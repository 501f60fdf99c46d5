# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Simplified sexp tokenizer for package definition files.

This is not a Lisp reader. It knows just enough to turn a `-pkg.el` file into
a flat token sequence for `elpa.pkgdef`:

- `(` and `)` map directly,
- `'datum` is expanded to `(quote datum)`,
- a letter or `-` starts a symbol (case-folded to lowercase),
- `"` starts a string, `\\` takes the next byte verbatim,
- `;` starts a comment running to end of line,
- every other byte outside a token is ignored.

Input is fed incrementally, so nothing has to be buffered up front. `close()`
is the explicit end signal: it always yields exactly one EOF token, so a
consumer never waits on a token that will not arrive.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, Iterator, Optional

from elpa.span import Span

logger = logging.getLogger(__name__)

_OPEN = ord("(")
_CLOSE = ord(")")
_QUOTE = ord("'")
_DQUOTE = ord('"')
_BACKSLASH = ord("\\")
_SEMICOLON = ord(";")
_HYPHEN = ord("-")
_NEWLINE = ord("\n")
_WHITESPACE = frozenset(b" \t\r\n\f")
_DELIMITERS = frozenset((_OPEN, _CLOSE, _DQUOTE))


def _starts_symbol(b: int) -> bool:
	return (ord("a") <= b <= ord("z")) or (ord("A") <= b <= ord("Z")) or b == _HYPHEN


class TokenKind(enum.Enum):
	OPEN_PAREN = "open-paren"
	CLOSE_PAREN = "close-paren"
	SYMBOL = "symbol"
	STRING = "string"
	EOF = "eof"


@dataclass(frozen=True)
class Token:
	kind: TokenKind
	text: str = ""
	span: Span = field(default_factory=Span)

	def describe(self) -> str:
		"""Render the token the way error messages quote it."""
		if self.kind is TokenKind.OPEN_PAREN:
			return "'('"
		if self.kind is TokenKind.CLOSE_PAREN:
			return "')'"
		if self.kind is TokenKind.SYMBOL:
			return f"symbol '{self.text}'"
		if self.kind is TokenKind.STRING:
			return f'string "{self.text}"'
		return "end of input"


class _Mode(enum.Enum):
	IDLE = 0
	SYMBOL = 1
	STRING = 2
	STRING_ESCAPE = 3
	COMMENT = 4


class SexpTokenizer:
	"""
	Incremental byte-level tokenizer.

	`feed()` and `close()` return generators; each must be drained before the
	next call since tokenizer state advances as tokens are pulled.
	"""

	def __init__(self, *, file: Optional[str] = None) -> None:
		self._file = file
		self._mode = _Mode.IDLE
		self._buf = bytearray()
		self._start = Span()
		self._line = 1
		self._column = 1
		self._offset = 0
		self._depth = 0
		# Depths at which a synthetic `)` closes an expanded quote. Quotes nest
		# strictly inside one another, so the innermost pending close is on top.
		self._pending_closes: list[int] = []
		self._closed = False

	@property
	def depth(self) -> int:
		return self._depth

	def feed(self, data: bytes) -> Iterator[Token]:
		if self._closed:
			raise ValueError("tokenizer already closed")
		for b in data:
			here = Span(file=self._file, line=self._line, column=self._column, offset=self._offset)
			self._offset += 1
			if b == _NEWLINE:
				self._line += 1
				self._column = 1
			else:
				self._column += 1
			yield from self._consume(b, here)

	def close(self) -> Iterator[Token]:
		"""End-of-input signal: flush a trailing symbol, then emit one EOF."""
		if self._closed:
			return
		here = Span(file=self._file, line=self._line, column=self._column, offset=self._offset)
		if self._mode is _Mode.SYMBOL:
			yield from self._finish_atom(TokenKind.SYMBOL, here)
		elif self._mode in (_Mode.STRING, _Mode.STRING_ESCAPE):
			logger.debug("dropping unterminated string starting at %s", self._start.describe())
		self._mode = _Mode.IDLE
		self._buf.clear()
		self._closed = True
		yield Token(TokenKind.EOF, "", here)

	def _consume(self, b: int, here: Span) -> Iterator[Token]:
		mode = self._mode
		if mode is _Mode.STRING_ESCAPE:
			self._buf.append(b)
			self._mode = _Mode.STRING
			return
		if mode is _Mode.STRING:
			if b == _BACKSLASH:
				self._mode = _Mode.STRING_ESCAPE
			elif b == _DQUOTE:
				yield from self._finish_atom(TokenKind.STRING, here)
			else:
				self._buf.append(b)
			return
		if mode is _Mode.COMMENT:
			if b == _NEWLINE:
				self._mode = _Mode.IDLE
			return
		if mode is _Mode.SYMBOL:
			if b in _WHITESPACE:
				yield from self._finish_atom(TokenKind.SYMBOL, here)
				return
			if b not in _DELIMITERS:
				self._buf.append(b)
				return
			yield from self._finish_atom(TokenKind.SYMBOL, here)

		if b == _QUOTE:
			yield Token(TokenKind.OPEN_PAREN, "(", here)
			self._depth += 1
			yield Token(TokenKind.SYMBOL, "quote", here)
			self._pending_closes.append(self._depth)
		elif b == _OPEN:
			self._depth += 1
			yield Token(TokenKind.OPEN_PAREN, "(", here)
		elif b == _CLOSE:
			self._depth -= 1
			yield Token(TokenKind.CLOSE_PAREN, ")", here)
			yield from self._close_quotes(here)
		elif b == _DQUOTE:
			self._begin(_Mode.STRING, here)
		elif b == _SEMICOLON:
			self._mode = _Mode.COMMENT
		elif _starts_symbol(b):
			self._begin(_Mode.SYMBOL, here)
			self._buf.append(b)

	def _begin(self, mode: _Mode, here: Span) -> None:
		self._mode = mode
		self._buf.clear()
		self._start = here

	def _finish_atom(self, kind: TokenKind, here: Span) -> Iterator[Token]:
		text = bytes(self._buf).decode("utf-8", errors="replace")
		if kind is TokenKind.SYMBOL:
			text = text.lower()
		self._buf.clear()
		self._mode = _Mode.IDLE
		yield Token(kind, text, self._start)
		yield from self._close_quotes(here)

	def _close_quotes(self, here: Span) -> Iterator[Token]:
		# A datum just completed at the current depth; close every quote that
		# was waiting for exactly that datum.
		while self._pending_closes and self._pending_closes[-1] == self._depth:
			self._pending_closes.pop()
			self._depth -= 1
			yield Token(TokenKind.CLOSE_PAREN, ")", here)


def iter_chunks(stream: BinaryIO, size: int = 256) -> Iterator[bytes]:
	"""Read `stream` lazily in `size`-byte chunks until it is exhausted."""
	if size <= 0:
		raise ValueError("chunk size must be positive")
	while True:
		data = stream.read(size)
		if not data:
			return
		yield data


def tokenize(chunks: Iterable[bytes], *, file: Optional[str] = None) -> Iterator[Token]:
	"""
	Tokenize a byte source lazily.

	Chunks are pulled only as the consumer asks for tokens, so a consumer that
	stops early also stops reading the source. Errors raised by the source
	propagate to the consumer unchanged.
	"""
	tz = SexpTokenizer(file=file)
	for chunk in chunks:
		yield from tz.feed(chunk)
	yield from tz.close()


class TokenStream:
	"""
	Pull-based token cursor.

	`next_token()` returns tokens strictly in production order. Once EOF has
	been seen every further pull returns that same EOF token.
	"""

	def __init__(self, tokens: Iterable[Token]) -> None:
		self._tokens = iter(tokens)
		self._eof: Token | None = None

	def next_token(self) -> Token:
		if self._eof is not None:
			return self._eof
		tok = next(self._tokens, None)
		if tok is None:
			tok = Token(TokenKind.EOF)
		if tok.kind is TokenKind.EOF:
			self._eof = tok
		return tok

	def __iter__(self) -> Iterator[Token]:
		while True:
			tok = self.next_token()
			yield tok
			if tok.kind is TokenKind.EOF:
				return


__all__ = ["SexpTokenizer", "Token", "TokenKind", "TokenStream", "iter_chunks", "tokenize"]
