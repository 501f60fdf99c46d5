# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json

import pytest

from elpa.codec import canonical_json_bytes, decode_details, encode_details
from elpa.errors import CodecError
from elpa.model import PackageDetails, PackageRef


@pytest.mark.parametrize(
	"details",
	[
		PackageDetails(),
		PackageDetails(readme="readme"),
		PackageDetails(
			readme="Ünïcode — and \"quotes\"\r\n\ttabs\n",
			required=(PackageRef("zeta", "1.0"), PackageRef("alpha", "0.0.1"), PackageRef("zeta", "2")),
		),
		PackageDetails(readme="", required=(PackageRef("", ""),)),
	],
)
def test_round_trip(details: PackageDetails) -> None:
	assert decode_details(encode_details(details)) == details


def test_encoding_is_canonical() -> None:
	a = encode_details(PackageDetails(readme="r", required=(PackageRef("a", "1"),)))
	b = encode_details(PackageDetails(readme="r", required=(PackageRef("a", "1"),)))
	assert a == b
	assert a == b'{"format":"elpa-details","readme":"r","required":[{"name":"a","version":"1"}],"version":0}'


def test_canonical_json_bytes_keeps_utf8() -> None:
	assert canonical_json_bytes({"b": "é", "a": 1}) == '{"a":1,"b":"é"}'.encode("utf-8")


@pytest.mark.parametrize(
	"data",
	[
		b"",
		b"not json",
		b"\xff\xfe",
		b"[]",
		json.dumps({"format": "other", "version": 0, "readme": "", "required": []}).encode(),
		json.dumps({"format": "elpa-details", "version": 1, "readme": "", "required": []}).encode(),
		json.dumps({"format": "elpa-details", "version": False, "readme": "", "required": []}).encode(),
		json.dumps({"format": "elpa-details", "version": 0.0, "readme": "", "required": []}).encode(),
		json.dumps({"format": "elpa-details", "version": "0", "readme": "", "required": []}).encode(),
		json.dumps({"format": "elpa-details", "version": 0, "required": []}).encode(),
		json.dumps({"format": "elpa-details", "version": 0, "readme": "", "required": {}}).encode(),
		json.dumps({"format": "elpa-details", "version": 0, "readme": "", "required": [["a", "1"]]}).encode(),
		json.dumps({"format": "elpa-details", "version": 0, "readme": "", "required": [{"name": "a", "version": 1}]}).encode(),
		json.dumps({"format": "elpa-details", "version": 0, "readme": "", "required": [], "extra": 1}).encode(),
	],
)
def test_malformed_payloads_raise(data: bytes) -> None:
	with pytest.raises(CodecError):
		decode_details(data)


def test_non_bytes_payload_raises() -> None:
	with pytest.raises(CodecError, match="must be bytes"):
		decode_details("{}")  # type: ignore[arg-type]
