# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Details payload codec (v0).

`PackageDetails` travel inside a descriptor as an opaque blob. The blob is
canonical JSON so equal details always encode to equal bytes:

	{"format":"elpa-details","readme":"...","required":[{"name":..,"version":..}],"version":0}

Decoding is strict: anything that is not exactly this shape raises
CodecError. There is no partial decode.
"""

from __future__ import annotations

import json
from typing import Any

from elpa.errors import CodecError
from elpa.model import PackageDetails, PackageRef

DETAILS_FORMAT = "elpa-details"
DETAILS_VERSION = 0


def canonical_json_bytes(obj: Any) -> bytes:
	"""
	Render JSON deterministically.

	Rules:
	- UTF-8
	- no insignificant whitespace
	- stable key ordering
	"""
	return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def encode_details(details: PackageDetails) -> bytes:
	return canonical_json_bytes(
		{
			"format": DETAILS_FORMAT,
			"version": DETAILS_VERSION,
			"readme": details.readme,
			"required": [r.to_dict() for r in details.required],
		}
	)


def decode_details(data: bytes) -> PackageDetails:
	if not isinstance(data, (bytes, bytearray)):
		raise CodecError(message=f"details payload must be bytes, got {type(data).__name__}")
	try:
		obj = json.loads(data.decode("utf-8"))
	except (UnicodeDecodeError, ValueError) as err:
		raise CodecError(message=f"details payload is not valid UTF-8 JSON: {err}") from err
	if not isinstance(obj, dict):
		raise CodecError(message="details payload must be a JSON object")
	version = obj.get("version")
	if obj.get("format") != DETAILS_FORMAT or type(version) is not int or version != DETAILS_VERSION:
		raise CodecError(
			message="unsupported details format/version",
			expected=f"{DETAILS_FORMAT}/{DETAILS_VERSION}",
			actual=f"{obj.get('format')}/{version!r}",
		)
	unknown = sorted(set(obj.keys()) - {"format", "version", "readme", "required"})
	if unknown:
		raise CodecError(message=f"details payload has unknown fields: {', '.join(unknown)}")
	readme = obj.get("readme")
	if not isinstance(readme, str):
		raise CodecError(message="details readme must be a string")
	raw_required = obj.get("required")
	if not isinstance(raw_required, list):
		raise CodecError(message="details required must be a list")
	required: list[PackageRef] = []
	for i, raw in enumerate(raw_required):
		if not isinstance(raw, dict) or set(raw.keys()) != {"name", "version"}:
			raise CodecError(message=f"details required[{i}] must be an object with name and version")
		name = raw["name"]
		version = raw["version"]
		if not isinstance(name, str) or not isinstance(version, str):
			raise CodecError(message=f"details required[{i}] name and version must be strings")
		required.append(PackageRef(name=name, version=version))
	return PackageDetails(readme=readme, required=tuple(required))


__all__ = ["DETAILS_FORMAT", "DETAILS_VERSION", "canonical_json_bytes", "decode_details", "encode_details"]
