# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import io

import pytest

from elpa.errors import RequiredFieldMissing, StructuralMismatch
from elpa.headers import parse_package_file, parse_package_requires
from elpa.model import PackageRef
from elpa.test_support import SAMPLE_HEADER


def _parse(text: str):
	return parse_package_file(io.StringIO(text))


def test_complete_header() -> None:
	pkg = _parse(SAMPLE_HEADER)
	assert pkg.name == "sample-test"
	assert pkg.description == "A sample package"
	assert pkg.latest_version == "0.1.2.3"
	assert pkg.author == "Andrew Hyatt <ahyatt@gmail.com>"
	assert pkg.kind == "single"
	details = pkg.decoded_details()
	assert details.required == (
		PackageRef("req1", "1.0.0"),
		PackageRef("req2", "2.0.0"),
		PackageRef("req3", "3.0.0"),
	)
	assert details.readme == "This is the package commentary,\nwhich spans multiple lines.\n"


def test_empty_input_fails() -> None:
	with pytest.raises(RequiredFieldMissing):
		_parse("")


def test_missing_version_reports_parsed_values() -> None:
	with pytest.raises(RequiredFieldMissing) as excinfo:
		_parse(";;; foo.el --- Does foo\n;; Author: Someone\n")
	assert "version=''" in excinfo.value.actual
	assert "name='foo'" in excinfo.value.actual


def test_missing_description_fails() -> None:
	with pytest.raises(RequiredFieldMissing):
		_parse(";;; foo.el --- \n;; Version: 1.0\n")


def test_file_variables_cookie_is_removed_from_description() -> None:
	pkg = _parse(";;; foo.el --- Does foo things  -*- lexical-binding: t -*-\n;; Version: 1.0\n")
	assert pkg.description == "Does foo things"


def test_keys_are_case_insensitive() -> None:
	pkg = _parse(';;; foo.el --- Does foo\n;; VERSION: 2.0\n;; package-requires: ((a "1"))\n;; AUTHOR: X\n')
	assert pkg.latest_version == "2.0"
	assert pkg.author == "X"
	assert pkg.decoded_details().required == (PackageRef("a", "1"),)


def test_later_package_requires_replaces_earlier() -> None:
	pkg = _parse(
		';;; foo.el --- Does foo\n;; Version: 1.0\n;; Package-Requires: ((a "1"))\n;; Package-Requires: ((b "2") (c "3"))\n'
	)
	assert pkg.decoded_details().required == (PackageRef("b", "2"), PackageRef("c", "3"))


def test_commentary_keeps_inner_blank_lines() -> None:
	text = """;;; foo.el --- Does foo
;; Version: 1.0
;;; Commentary:
;;
;; First paragraph.
;;
;; Second paragraph,
;;   indented continuation.
;;

(defvar not-commentary nil)
;;; Code:
"""
	readme = _parse(text).decoded_details().readme
	assert readme == "First paragraph.\n\nSecond paragraph,\nindented continuation.\n"


def test_commentary_runs_to_end_of_input() -> None:
	readme = _parse(";;; foo.el --- Does foo\n;; Version: 1.0\n;;; Commentary:\n;; Only line.").decoded_details().readme
	assert readme == "Only line.\n"


def test_no_commentary_means_empty_readme() -> None:
	assert _parse(";;; foo.el --- Does foo\n;; Version: 1.0\n").decoded_details().readme == ""


def test_crlf_line_endings() -> None:
	pkg = _parse(";;; foo.el --- Does foo\r\n;; Version: 1.0\r\n;;; Commentary:\r\n;; Text.\r\n;;; Code:\r\n")
	assert pkg.latest_version == "1.0"
	assert pkg.decoded_details().readme == "Text.\n"


def test_parse_package_requires() -> None:
	assert parse_package_requires('((emacs "24.4") (cl-lib "0.5"))') == (
		PackageRef("emacs", "24.4"),
		PackageRef("cl-lib", "0.5"),
	)
	assert parse_package_requires("nil") == ()
	assert parse_package_requires("  ") == ()
	assert parse_package_requires("()") == ()


def test_malformed_package_requires_reports_line() -> None:
	with pytest.raises(StructuralMismatch) as excinfo:
		_parse(';;; foo.el --- Does foo\n;; Version: 1.0\n;; Package-Requires: ((req1 "1.0")\n')
	assert excinfo.value.span.line == 3
	assert "Package-Requires" in excinfo.value.message


def test_package_requires_continues_on_following_lines() -> None:
	pkg = _parse(
		""";;; foo.el --- Does foo
;; Version: 1.0
;; Package-Requires: ((emacs "25.1")
;;                    (dash "2.0"))
;; Keywords: lisp
;;; Commentary:
;; Text.
"""
	)
	assert pkg.decoded_details().required == (PackageRef("emacs", "25.1"), PackageRef("dash", "2.0"))
	assert pkg.decoded_details().readme == "Text.\n"


def test_package_requires_ignores_trailing_comment() -> None:
	pkg = _parse(';;; foo.el --- Does foo\n;; Version: 1.0\n;; Package-Requires: ((emacs "25.1")) ; needs seq\n')
	assert pkg.decoded_details().required == (PackageRef("emacs", "25.1"),)


def test_continuation_lines_may_carry_comments() -> None:
	pkg = _parse(
		';;; foo.el --- Does foo\n'
		';; Version: 1.0\n'
		';; Package-Requires: ((emacs "25.1") ; (fake "1")\n'
		';;   (s "1.12.0")) ; strings\n'
	)
	assert pkg.decoded_details().required == (PackageRef("emacs", "25.1"), PackageRef("s", "1.12.0"))


def test_semicolon_inside_version_string_is_kept() -> None:
	assert parse_package_requires('((odd "1;2")) ; note') == (PackageRef("odd", "1;2"),)


def test_unbalanced_requires_stops_at_next_header() -> None:
	with pytest.raises(StructuralMismatch) as excinfo:
		_parse(';;; foo.el --- Does foo\n;; Package-Requires: ((emacs "25.1")\n;; Version: 1.0\n')
	assert excinfo.value.span.line == 2


def test_malformed_continuation_reports_its_line() -> None:
	with pytest.raises(StructuralMismatch) as excinfo:
		_parse(
			";;; foo.el --- Does foo\n"
			";; Version: 1.0\n"
			';; Package-Requires: ((emacs "25.1")\n'
			";;                    (dash 2.0))\n"
		)
	assert excinfo.value.span.line == 4
