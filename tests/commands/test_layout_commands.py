"""Tests for show, export and import."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from userlayout.cli import cli


@pytest.mark.usefixtures("_isolated_project")
class TestShow:
    def test_show_empty_layout(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["show"])
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("<?xml")
        assert '<folder ID="root"' in result.stdout

    def test_show_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "show"])
        data = json.loads(result.stdout)
        assert data["op"] == "show"
        assert "cache_key" in data["meta"]

    def test_show_unknown_node(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["show", "zz"])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.stderr
        assert result.stdout == ""


@pytest.mark.usefixtures("_isolated_project")
class TestExportImport:
    def test_export_to_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        cli_runner.invoke(cli, ["add", "folder", "root", "--name", "Main"])
        result = cli_runner.invoke(cli, ["export", "out.xml"])
        assert result.exit_code == 0, result.output
        assert 'name="Main"' in (tmp_path / "out.xml").read_text(encoding="utf-8")
        assert "export_file" in result.stdout

    def test_export_stdout(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["export"])
        assert result.stdout.startswith("<?xml")

    def test_round_trip(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        cli_runner.invoke(cli, ["add", "folder", "root", "--name", "Main"])
        cli_runner.invoke(cli, ["export", "saved.xml"])
        cli_runner.invoke(cli, ["delete", "s1"])

        result = cli_runner.invoke(cli, ["--json", "import", str(tmp_path / "saved.xml")])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["data"]["nodes"] == 2

        shown = cli_runner.invoke(cli, ["show"])
        assert 'name="Main"' in shown.stdout

    def test_import_stdin(self, cli_runner: CliRunner) -> None:
        xml = cli_runner.invoke(cli, ["export"]).stdout
        edited = xml.replace("Root folder", "Home")
        result = cli_runner.invoke(cli, ["import", "-"], input=edited)
        assert result.exit_code == 0, result.output
        assert 'name="Home"' in cli_runner.invoke(cli, ["show"]).stdout

    def test_import_malformed(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["import", "-"], input="<layout>")
        assert result.exit_code == 1
        assert "MALFORMED_LAYOUT" in result.stderr
