from __future__ import annotations

import json
from pathlib import Path

import pytest

from aduib_naming.cli import build_parser, main
from aduib_naming.config.loader import CONFIG_PATH_ENV


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_schemes_marks_default(capsys: pytest.CaptureFixture[str]):
    assert main(["schemes"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["disco", "dns", "passthrough (default)"]


def test_schemes_with_config_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    path = tmp_path / "naming.yaml"
    path.write_text("default_scheme: dns\ncatalog:\n  url: http://catalog.local:8500\n", encoding="utf-8")

    assert main(["--config", str(path), "schemes"]) == 0

    assert capsys.readouterr().out.splitlines() == ["catalog", "disco", "dns (default)", "passthrough"]


def test_resolve_prints_updates(capsys: pytest.CaptureFixture[str]):
    assert main(["resolve", "10.0.0.1:8080"]) == 0

    assert capsys.readouterr().out.split() == ["ADD", "10.0.0.1:8080"]


def test_resolve_json_output(capsys: pytest.CaptureFixture[str]):
    assert main(["-q", "resolve", "passthrough://payments.internal:443", "--format", "json"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload == [{"op": "ADD", "addr": "payments.internal:443", "metadata": {}}]


def test_resolve_unknown_scheme_fails(capsys: pytest.CaptureFixture[str]):
    assert main(["resolve", "foo://bar"]) == 1

    assert "foo" in capsys.readouterr().err


def test_resolve_stops_at_timeout(capsys: pytest.CaptureFixture[str]):
    assert main(["resolve", "10.0.0.1:8080", "--count", "0", "--timeout", "0.05"]) == 0

    assert capsys.readouterr().out.split() == ["ADD", "10.0.0.1:8080"]


def test_version_command(capsys: pytest.CaptureFixture[str]):
    assert main(["version"]) == 0

    assert capsys.readouterr().out.strip()
