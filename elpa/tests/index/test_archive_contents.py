# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from elpa.index import readme_text, render_archive_contents, required_list, version_list
from elpa.model import Package, PackageDetails, PackageRef


def _pkg(name: str, version: str, description: str, details: PackageDetails, kind: str = "single") -> Package:
	return Package(name=name, latest_version=version, description=description, kind=kind).with_details(details)


def test_version_list() -> None:
	assert version_list("1.2.3") == "(1 2 3)"
	assert version_list("20130101") == "(20130101)"


def test_render_archive_contents() -> None:
	foo = _pkg(
		"foo",
		"1.2.3",
		"Does foo",
		PackageDetails(required=(PackageRef("bar", "0.5"), PackageRef("baz", "1"))),
	)
	bar = _pkg("bar", "0.5", 'Says "bar"', PackageDetails(), kind="tar")
	assert render_archive_contents([foo, bar]) == (
		"(1 \n"
		'(bar . [(0 5) nil "Says \\"bar\\"" tar])\n'
		'(foo . [(1 2 3) ((bar (0 5)) (baz (1))) "Does foo" single]))\n'
	)


def test_render_empty_archive() -> None:
	assert render_archive_contents([]) == "(1 )\n"


def test_undecodable_details_render_as_nil() -> None:
	pkg = Package(name="foo", latest_version="1.0", description="d", details=b"garbage")
	assert required_list(pkg) == "nil"


def test_readme_text_strips_carriage_returns() -> None:
	pkg = _pkg("foo", "1.0", "Does foo", PackageDetails(readme="line one\r\nline two\r\n"))
	assert readme_text(pkg) == "line one\nline two\n"


def test_readme_text_falls_back_to_description() -> None:
	assert readme_text(_pkg("foo", "1.0", "Does foo", PackageDetails())) == "Does foo"
