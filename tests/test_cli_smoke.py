from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from git import Repo

from cli import main

if TYPE_CHECKING:
    from pathlib import Path


def _write(root: Path, rel_path: str, content: str) -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _commit(repo: Repo, message: str) -> None:
    repo.git.add("-A")
    repo.git.commit("-m", message)


def _write_minimal_repo(root: Path) -> Repo:
    repo = Repo.init(root)
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
        writer.set_value("commit", "gpgsign", "false")
    _write(root, "libs/core/.impactmap.yml", "name: core\nproperties:\n  team: platform\n")
    _write(root, "libs/core/core.py", "VALUE = 1\n")
    _write(
        root,
        "apps/web/.impactmap.yml",
        "name: web\ndependencies:\n  - core\n",
    )
    _write(root, "apps/web/app.py", "print('web')\n")
    _commit(repo, "initial")
    repo.git.branch("-M", "main")
    return repo


def test_cli_describe_commit_text(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_minimal_repo(tmp_path)

    exit_code = main(["describe", "commit", "main", "--repo", str(tmp_path)])

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line.split("\t")[:2] for line in lines] == [
        ["web", "apps/web"],
        ["core", "libs/core"],
    ]


def test_cli_describe_diff_json(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo = _write_minimal_repo(tmp_path)
    repo.git.checkout("-b", "feature")
    _write(tmp_path, "libs/core/core.py", "VALUE = 2\n")
    _commit(repo, "bump core")

    exit_code = main(
        [
            "describe",
            "diff",
            "--to",
            "feature",
            "--from",
            "main",
            "--repo",
            str(tmp_path),
            "--format",
            "json",
        ]
    )

    assert exit_code == 0
    records = json.loads(capsys.readouterr().out)
    assert [record["name"] for record in records] == ["core", "web"]
    assert records[0]["required_by"] == ["web"]
    assert records[0]["properties"] == {"team": "platform"}
    assert records[1]["requires"] == ["core"]
    assert records[1]["schema_version"] == 1


def test_cli_describe_diff_defaults_to_config_reference(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    repo = _write_minimal_repo(tmp_path)
    repo.git.branch("trunk")
    repo.git.checkout("-b", "feature")
    _write(tmp_path, "apps/web/app.py", "print('web 2')\n")
    _write(tmp_path, "impactmap.toml", 'default_reference = "trunk"\noutput_format = "jsonl"\n')
    _commit(repo, "web only")

    exit_code = main(["describe", "diff", "--to", "feature", "--repo", str(tmp_path)])

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert [json.loads(line)["name"] for line in lines] == ["web"]


def test_cli_describe_changes_uses_working_tree(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_minimal_repo(tmp_path)
    _write(tmp_path, "apps/web/new_page.py", "PAGE = 1\n")

    exit_code = main(["describe", "changes", "--repo", str(tmp_path)])

    assert exit_code == 0
    assert capsys.readouterr().out.startswith("web\tapps/web\t")


def test_cli_reports_bad_reference(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_minimal_repo(tmp_path)

    exit_code = main(["describe", "commit", "nope", "--repo", str(tmp_path)])

    assert exit_code == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "error: discover applications at nope" in captured.err


def test_cli_reports_cycle(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = _write_minimal_repo(tmp_path)
    _write(
        tmp_path,
        "libs/core/.impactmap.yml",
        "name: core\ndependencies:\n  - web\n",
    )
    _commit(repo, "cycle")

    exit_code = main(["describe", "commit", "main", "--repo", str(tmp_path)])

    assert exit_code == 2
    assert "cyclic dependency" in capsys.readouterr().err


def test_cli_reports_invalid_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_minimal_repo(tmp_path)
    _write(tmp_path, "impactmap.toml", "bogus = 1\n")

    monkeypatch.chdir(tmp_path)
    exit_code = main(["describe", "local"])

    assert exit_code == 2
    assert "Invalid config" in capsys.readouterr().err


def test_cli_requires_subcommand() -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["describe"])

    assert exc_info.value.code == 2
