from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from dashbling import cli

ROOT_DIR = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _isolated_cli(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("FORCE_HTTPS", "PORT", "EVENT_STORAGE_PATH"):
        monkeypatch.delenv(name, raising=False)
    yield
    for handler in list(cli.logger.handlers):
        cli.logger.removeHandler(handler)
        handler.close()
    cli.logger.setLevel(logging.NOTSET)


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "dashbling.config.py"
    path.write_text(body, encoding="utf-8")
    return path


def test_validate_sample_project(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["validate", str(ROOT_DIR / "sample")])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Config valid:" in output
    assert "Total jobs: 2" in output
    assert "Port: 8080" in output
    assert "Force HTTPS: false" in output


def test_validate_reports_every_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_config(tmp_path, "config = {'jobs': 'nope', 'forceHttps': 'maybe'}\n")
    exit_code = cli.main(["validate", str(tmp_path)])
    output = capsys.readouterr().out
    assert exit_code == 1
    assert "(2 error(s))" in output
    assert output.count("Invalid 'jobs' configuration.") == 1
    assert output.count("Invalid 'forceHttps' configuration.") == 1


def test_validate_missing_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["validate", str(tmp_path)])
    output = capsys.readouterr().out
    assert exit_code == 1
    assert f"Unable to load configuration at path '{tmp_path.resolve() / 'dashbling.config.py'}'." in output


def test_validate_uses_environment(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _write_config(tmp_path, "jobs = []\n")
    monkeypatch.setenv("PORT", "7070")
    monkeypatch.setenv("FORCE_HTTPS", "True")
    assert cli.main(["validate", str(tmp_path)]) == 0
    output = capsys.readouterr().out
    assert "Port: 7070" in output
    assert "Force HTTPS: true" in output


def test_preview_lists_next_runs(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_config(
        tmp_path,
        "def sync():\n    pass\n\nconfig = {'jobs': [{'schedule': '0 6 * * *', 'fn': sync}]}\n",
    )
    exit_code = cli.main(["preview", str(tmp_path), "--count", "3"])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Job 1: 0 6 * * *" in output
    assert "Action: sync" in output
    assert "Next 3 run(s):" in output
    assert output.count("T06:00:00") == 3


def test_preview_without_jobs(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_config(tmp_path, "jobs = []\n")
    assert cli.main(["preview", str(tmp_path)]) == 0
    assert "No jobs configured." in capsys.readouterr().out


def test_preview_rejects_non_positive_count(tmp_path: Path) -> None:
    _write_config(tmp_path, "jobs = []\n")
    assert cli.main(["preview", str(tmp_path), "--count", "0"]) == 1


def test_log_file_option(tmp_path: Path) -> None:
    log_file = tmp_path / "dashbling.log"
    assert cli.main(["--log-file", str(log_file), "validate", str(tmp_path)]) == 1
    for handler in cli.logger.handlers:
        handler.flush()
    assert "Failed to load configuration" in log_file.read_text(encoding="utf-8")
