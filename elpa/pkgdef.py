# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
`define-package` parser/validator.

Accepted shape (symbols are already case-folded by the tokenizer):

	(define-package NAME VERSION [DESCRIPTION [DEPENDENCIES]])

	DEPENDENCIES := nil | (quote nil) | (quote ((SYMBOL STRING)...))

`'(...)` arrives here as `(quote (...))`, so both spellings are one grammar.
NAME and VERSION must equal what the caller expects (for archives: the values
derived from the top-level directory name). The parser stops at the first
violation and never reads past the closing paren of the form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Iterable, Optional

from elpa.errors import ElpaIdentity, IdentityMismatch, StructuralMismatch
from elpa.model import PackageRef
from elpa.sexp import Token, TokenKind, TokenStream, iter_chunks, tokenize

DEFINE_PACKAGE = "define-package"


@dataclass(frozen=True)
class PackageDefinition:
	name: str
	version: str
	description: str = ""
	required: tuple[PackageRef, ...] = ()


class _DefinitionParser:
	def __init__(self, stream: TokenStream, *, name: str, version: str, file: Optional[str]) -> None:
		self._stream = stream
		self._name = name
		self._version = version
		self._file = file

	def _mismatch(self, message: str, *, expected: str, tok: Token) -> StructuralMismatch:
		return StructuralMismatch(
			message=message,
			expected=expected,
			actual=tok.describe(),
			span=tok.span,
			identity=ElpaIdentity(self._name, self._version),
			path=self._file,
		)

	def _expect(self, kind: TokenKind, message: str, *, expected: str) -> Token:
		tok = self._stream.next_token()
		if tok.kind is not kind:
			raise self._mismatch(message, expected=expected, tok=tok)
		return tok

	def _expect_identity(self, what: str, want: str) -> None:
		tok = self._expect(
			TokenKind.STRING,
			f"expected package {what} in package definition",
			expected=f'string "{want}"',
		)
		if tok.text != want:
			raise IdentityMismatch(
				message=f"package {what} in package definition ({tok.text}) didn't match the expected {what} ({want})",
				expected=want,
				actual=tok.text,
				span=tok.span,
				identity=ElpaIdentity(self._name, self._version),
				path=self._file,
			)

	def parse(self) -> PackageDefinition:
		self._expect(TokenKind.OPEN_PAREN, "package definition must start with an open paren", expected="'('")
		head = self._expect(
			TokenKind.SYMBOL,
			f"package definition must start with '({DEFINE_PACKAGE}'",
			expected=f"symbol '{DEFINE_PACKAGE}'",
		)
		if head.text != DEFINE_PACKAGE:
			raise self._mismatch(
				f"package definition must start with '({DEFINE_PACKAGE}'",
				expected=f"symbol '{DEFINE_PACKAGE}'",
				tok=head,
			)
		self._expect_identity("name", self._name)
		self._expect_identity("version", self._version)

		tok = self._stream.next_token()
		if tok.kind is TokenKind.CLOSE_PAREN:
			return PackageDefinition(name=self._name, version=self._version)
		if tok.kind is not TokenKind.STRING:
			raise self._mismatch(
				"expected description as third element in package definition",
				expected="string or ')'",
				tok=tok,
			)
		description = tok.text

		tok = self._stream.next_token()
		if tok.kind is TokenKind.CLOSE_PAREN:
			return PackageDefinition(name=self._name, version=self._version, description=description)
		required = self._parse_dependencies(tok)
		self._expect(
			TokenKind.CLOSE_PAREN,
			"missing closing parenthesis for package definition",
			expected="')'",
		)
		return PackageDefinition(
			name=self._name,
			version=self._version,
			description=description,
			required=required,
		)

	def _parse_dependencies(self, tok: Token) -> tuple[PackageRef, ...]:
		if tok.kind is TokenKind.SYMBOL and tok.text == "nil":
			return ()
		if tok.kind is not TokenKind.OPEN_PAREN:
			raise self._mismatch(
				"unexpected token at the fourth element in package definition",
				expected="quoted list, 'nil' or ')'",
				tok=tok,
			)
		quote = self._expect(
			TokenKind.SYMBOL,
			"dependencies must be a quoted list",
			expected="symbol 'quote'",
		)
		if quote.text != "quote":
			raise self._mismatch("dependencies must be a quoted list", expected="symbol 'quote'", tok=quote)

		tok = self._stream.next_token()
		if tok.kind is TokenKind.SYMBOL and tok.text == "nil":
			required: tuple[PackageRef, ...] = ()
		elif tok.kind is TokenKind.OPEN_PAREN:
			required = self._parse_pairs()
		else:
			raise self._mismatch(
				"expected a list of lists at the fourth element in package definition",
				expected="'('",
				tok=tok,
			)
		self._expect(
			TokenKind.CLOSE_PAREN,
			"missing closing parenthesis for quoted dependencies",
			expected="')'",
		)
		return required

	def _parse_pairs(self) -> tuple[PackageRef, ...]:
		refs: list[PackageRef] = []
		while True:
			tok = self._stream.next_token()
			if tok.kind is TokenKind.CLOSE_PAREN:
				return tuple(refs)
			if tok.kind is not TokenKind.OPEN_PAREN:
				raise self._mismatch(
					"missing closing parenthesis for required versions",
					expected="'(' or ')'",
					tok=tok,
				)
			refs.append(self._parse_pair())

	def _parse_pair(self) -> PackageRef:
		name = self._expect(
			TokenKind.SYMBOL,
			"expected a symbol as the required package name",
			expected="symbol",
		)
		version = self._expect(
			TokenKind.STRING,
			"expected a string as the required package version",
			expected="string",
		)
		self._expect(
			TokenKind.CLOSE_PAREN,
			"required package should just be a 2-element list",
			expected="')'",
		)
		return PackageRef(name=name.text, version=version.text)


def parse_package_definition(
	tokens: Iterable[Token] | TokenStream,
	*,
	name: str,
	version: str,
	file: Optional[str] = None,
) -> PackageDefinition:
	"""
	Consume exactly one `define-package` form from `tokens`.

	Returns the validated definition or raises the first StructuralMismatch /
	IdentityMismatch encountered. Tokens after the closing paren are not read.
	"""
	stream = tokens if isinstance(tokens, TokenStream) else TokenStream(tokens)
	return _DefinitionParser(stream, name=name, version=version, file=file).parse()


def read_package_definition(
	stream: BinaryIO,
	*,
	name: str,
	version: str,
	chunk_size: int = 256,
	file: Optional[str] = None,
) -> PackageDefinition:
	"""
	Stream a `-pkg.el` file through the tokenizer into the parser.

	Bytes are read `chunk_size` at a time and only on demand, so a definition
	that fails early stops further reads from `stream`.
	"""
	tokens = tokenize(iter_chunks(stream, chunk_size), file=file)
	try:
		return parse_package_definition(tokens, name=name, version=version, file=file)
	finally:
		tokens.close()


__all__ = ["DEFINE_PACKAGE", "PackageDefinition", "parse_package_definition", "read_package_definition"]
