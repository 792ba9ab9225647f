"""Tests for the resmap Click CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from resmap.cli import cli


def _make_snapshot_payload() -> dict[str, Any]:
    return {
        "servers": [{"id": 1, "name": "web-01"}, {"id": 2, "name": "db-01", "domains": [{"domain": {"id": 5}}]}],
        "services": [{"id": 100, "name": "nginx", "port": 80, "servers": [{"server": {"id": 1}}]}],
        "credentials": [],
        "domains": [{"id": 5, "name": "example.com"}],
    }


@pytest.fixture()
def snapshot_file(tmp_path: Path) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(_make_snapshot_payload()))
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("LAYOUT", "LOG_LEVEL"):
        monkeypatch.delenv(f"RESMAP_{key}", raising=False)


class TestBuildCommand:
    def test_prints_grouped_graph(self, snapshot_file: Path) -> None:
        result = CliRunner().invoke(cli, ["build", str(snapshot_file)])
        assert result.exit_code == 0, result.output
        document = json.loads(result.stdout)
        assert document["layout"] == "grouped"
        assert [n["id"] for n in document["nodes"] if n["kind"] == "server"] == ["server-1", "server-2"]
        assert document["stats"] == {"servers": 2, "services": 1, "credentials": 0, "domains": 1}

    def test_flat_layout_and_server_filter(self, snapshot_file: Path) -> None:
        result = CliRunner().invoke(cli, ["build", str(snapshot_file), "--layout", "flat", "--server-id", "1"])
        assert result.exit_code == 0, result.output
        document = json.loads(result.stdout)
        assert [n["id"] for n in document["nodes"]] == ["server-1", "service-100"]
        assert [e["id"] for e in document["edges"]] == ["edge-server-1-service-100"]

    def test_layout_from_environment(self, snapshot_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESMAP_LAYOUT", "flat")
        result = CliRunner().invoke(cli, ["build", str(snapshot_file)])
        assert json.loads(result.stdout)["layout"] == "flat"

    def test_reads_stdin(self) -> None:
        result = CliRunner().invoke(cli, ["build", "-"], input=json.dumps(_make_snapshot_payload()))
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["nodes"]

    def test_indent(self, snapshot_file: Path) -> None:
        result = CliRunner().invoke(cli, ["build", str(snapshot_file), "--indent", "2"])
        assert result.stdout.startswith("{\n  ")

    def test_invalid_layout_choice(self, snapshot_file: Path) -> None:
        result = CliRunner().invoke(cli, ["build", str(snapshot_file), "--layout", "radial"])
        assert result.exit_code == 2

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = CliRunner().invoke(cli, ["build", str(path)])
        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_malformed_snapshot(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"servers": [{"id": "x"}]}))
        result = CliRunner().invoke(cli, ["build", str(path)])
        assert result.exit_code == 2
        assert "requires an integer 'id'" in result.output

    def test_invalid_environment(self, snapshot_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESMAP_LAYOUT", "radial")
        result = CliRunner().invoke(cli, ["build", str(snapshot_file)])
        assert result.exit_code == 2
        assert "RESMAP_" in result.output


class TestStatsCommand:
    def test_counts(self, snapshot_file: Path) -> None:
        result = CliRunner().invoke(cli, ["stats", str(snapshot_file)])
        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert lines[0].split() == ["servers", "2"]
        assert lines[3].split() == ["domains", "1"]

    def test_empty_snapshot(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("{}")
        result = CliRunner().invoke(cli, ["stats", str(path)])
        assert result.stdout.strip() == "No resources in snapshot."


class TestServeCommand:
    def test_serve_runs_uvicorn_with_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict[str, Any]] = []

        def _fake_run(app: Any, **kwargs: Any) -> None:
            calls.append({"app": app, **kwargs})

        monkeypatch.setattr("uvicorn.run", _fake_run)
        result = CliRunner().invoke(cli, ["serve", "--host", "127.0.0.1", "--port", "9001", "--layout", "flat"])
        assert result.exit_code == 0, result.output
        assert calls[0]["host"] == "127.0.0.1"
        assert calls[0]["port"] == 9001
        assert calls[0]["app"].state.config.graph.layout == "flat"

    def test_port_range_is_validated(self) -> None:
        result = CliRunner().invoke(cli, ["serve", "--port", "80"])
        assert result.exit_code == 2
