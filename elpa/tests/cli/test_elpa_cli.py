# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

from elpa.cli import main
from elpa.test_support import SAMPLE_HEADER, VALID_EQUIVALENT_PKG_FILES, sample_tar, write_file


def test_inspect_json(tmp_path: Path, capsys) -> None:
	src = tmp_path / "sample-test.el"
	write_file(src, SAMPLE_HEADER)
	assert main(["inspect", str(src), "--json"]) == 0
	out = json.loads(capsys.readouterr().out)
	assert out["ok"] is True
	assert out["package"]["name"] == "sample-test"
	assert out["package"]["kind"] == "single"
	assert [r["name"] for r in out["details"]["required"]] == ["req1", "req2", "req3"]


def test_inspect_tar_human(tmp_path: Path, capsys) -> None:
	src = tmp_path / "sample-test-0.1.2.3.tar"
	write_file(src, sample_tar(VALID_EQUIVALENT_PKG_FILES[0]))
	assert main(["inspect", str(src), "--chunk-size", "3"]) == 0
	out = capsys.readouterr().out
	assert "name: sample-test" in out
	assert "kind: tar" in out
	assert "  - req2 2.0.0" in out


def test_inspect_error_exit_code(tmp_path: Path, capsys) -> None:
	src = tmp_path / "broken.el"
	write_file(src, ";;; broken.el --- No version\n")
	assert main(["inspect", str(src)]) == 2
	err = capsys.readouterr().err
	assert "[REQUIRED_FIELD_MISSING]" in err


def test_inspect_error_json(tmp_path: Path, capsys) -> None:
	src = tmp_path / "sample-test-0.1.2.3.tar"
	write_file(src, sample_tar('(define-package "other" "0.1.2.3")'))
	assert main(["inspect", str(src), "--json"]) == 2
	out = json.loads(capsys.readouterr().out)
	assert out["ok"] is False
	assert out["error"]["reason_code"] == "IDENTITY_MISMATCH"
	assert out["error"]["path"] == "sample-test-0.1.2.3/sample-test-pkg.el"


def test_upload_then_serve(tmp_path: Path, capsys) -> None:
	repo = tmp_path / "repo"
	single = tmp_path / "sample-test.el"
	write_file(single, SAMPLE_HEADER)

	assert main(["upload", str(single), "--repo", str(repo)]) == 0
	assert "packages/sample-test-0.1.2.3.el" in capsys.readouterr().out

	assert main(["archive-contents", "--repo", str(repo)]) == 0
	listing = capsys.readouterr().out
	assert listing == (
		"(1 \n"
		'(sample-test . [(0 1 2 3) ((req1 (1 0 0)) (req2 (2 0 0)) (req3 (3 0 0))) "A sample package" single]))\n'
	)

	assert main(["readme", "sample-test", "--repo", str(repo)]) == 0
	assert capsys.readouterr().out == "This is the package commentary,\nwhich spans multiple lines.\n"

	assert main(["list", "--repo", str(repo), "--json"]) == 0
	rows = json.loads(capsys.readouterr().out)["packages"]
	assert rows == [{"name": "sample-test", "latest_version": "0.1.2.3", "kind": "single", "versions": ["0.1.2.3"]}]


def test_readme_unknown_package(tmp_path: Path, capsys) -> None:
	assert main(["readme", "nope", "--repo", str(tmp_path)]) == 2
	assert "[REPOSITORY_ERROR]" in capsys.readouterr().err


def test_module_entrypoint(tmp_path: Path) -> None:
	src = tmp_path / "sample-test.el"
	write_file(src, SAMPLE_HEADER)
	root = Path(__file__).resolve().parents[3]
	env = dict(os.environ)
	env["PYTHONPATH"] = str(root) + (os.pathsep + env["PYTHONPATH"] if env.get("PYTHONPATH") else "")
	proc = subprocess.run(
		[sys.executable, "-m", "elpa", "inspect", str(src), "--json"],
		capture_output=True,
		text=True,
		env=env,
		check=False,
	)
	assert proc.returncode == 0, proc.stderr
	assert json.loads(proc.stdout)["package"]["latest_version"] == "0.1.2.3"
