# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Package descriptor data model.

A `Package` is the canonical record stored per package name. Its `details`
field holds the encoded `PackageDetails` payload (see `elpa.codec`) so the
descriptor stays a flat record of strings plus one opaque blob.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

PACKAGE_KINDS = ("single", "tar")


@dataclass(frozen=True)
class PackageRef:
	"""A required package and its minimum version."""

	name: str
	version: str

	def to_dict(self) -> dict[str, str]:
		return {"name": self.name, "version": self.version}


@dataclass(frozen=True)
class PackageDetails:
	"""Secondary payload: readme text plus dependencies in declaration order."""

	readme: str = ""
	required: tuple[PackageRef, ...] = ()

	def to_dict(self) -> dict[str, Any]:
		return {"readme": self.readme, "required": [r.to_dict() for r in self.required]}


@dataclass(frozen=True)
class Package:
	name: str = ""
	description: str = ""
	latest_version: str = ""
	author: str = ""
	details: bytes = field(default=b"", repr=False)
	kind: str = "single"

	def with_details(self, details: PackageDetails) -> "Package":
		from elpa.codec import encode_details

		return replace(self, details=encode_details(details))

	def decoded_details(self) -> PackageDetails:
		from elpa.codec import decode_details

		return decode_details(self.details)

	def to_dict(self) -> dict[str, Any]:
		return {
			"name": self.name,
			"description": self.description,
			"latest_version": self.latest_version,
			"author": self.author,
			"kind": self.kind,
		}
