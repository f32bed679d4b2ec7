"""Tests for node queries and mutations through the CLI."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from userlayout.cli import cli


def _json(runner: CliRunner, *args: str) -> dict:
    result = runner.invoke(cli, ["--json", *args])
    return json.loads(result.stdout or result.stderr)


@pytest.fixture
def populated(cli_runner: CliRunner, _isolated_project: None) -> CliRunner:
    """root > s1 [n1 weather], n2 clock."""
    cli_runner.invoke(cli, ["add", "folder", "root", "--name", "Main"])
    cli_runner.invoke(cli, ["add", "channel", "s1", "--fname", "weather", "--param", "zip=02139"])
    cli_runner.invoke(cli, ["add", "channel", "root", "--fname", "clock"])
    return cli_runner


class TestAdd:
    def test_add_persists(self, populated: CliRunner) -> None:
        data = _json(populated, "children", "root")
        assert [item["id"] for item in data["data"]["items"]] == ["s1", "n2"]

    def test_add_before(self, populated: CliRunner) -> None:
        data = _json(populated, "add", "folder", "root", "--before", "s1", "--name", "Top")
        assert data["data"]["id"] == "s2"
        assert _json(populated, "children", "root")["data"]["items"][0]["id"] == "s2"

    def test_add_into_channel_denied(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["add", "channel", "n1"])
        assert result.exit_code == 1
        assert "NOT_PERMITTED" in result.stderr

    def test_bad_param(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["add", "channel", "root", "--param", "novalue"])
        assert result.exit_code == 2
        assert "KEY=VALUE" in result.stderr

    def test_quiet_prints_id(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["-q", "add", "channel", "s1"])
        assert result.stdout.strip() == "n3"


class TestQueries:
    def test_node(self, populated: CliRunner) -> None:
        data = _json(populated, "node", "n1")["data"]
        assert data["parent_id"] == "s1"
        assert data["depth"] == 2
        assert data["parameters"] == {"zip": "02139"}

    def test_node_rich(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["node", "n1"])
        assert result.exit_code == 0
        assert "param zip = 02139" in result.stdout

    def test_subscribe_id(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["-q", "subscribe-id", "weather"])
        assert result.stdout.strip() == "n1"

    def test_subscribe_id_unknown(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["subscribe-id", "nope"])
        assert result.exit_code == 1

    def test_cache_key_changes(self, populated: CliRunner) -> None:
        before = _json(populated, "cache-key")["data"]["cache_key"]
        assert _json(populated, "cache-key")["data"]["cache_key"] == before
        populated.invoke(cli, ["delete", "n2"])
        assert _json(populated, "cache-key")["data"]["cache_key"] != before


class TestMoveDelete:
    def test_move(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["move", "n2", "s1", "--before", "n1"])
        assert result.exit_code == 0, result.output
        items = _json(populated, "children", "s1")["data"]["items"]
        assert [item["id"] for item in items] == ["n2", "n1"]

    def test_move_into_own_subtree(self, populated: CliRunner) -> None:
        populated.invoke(cli, ["add", "folder", "s1", "--name", "Inner"])
        result = populated.invoke(cli, ["move", "s1", "s2"])
        assert result.exit_code == 1

    def test_delete(self, populated: CliRunner) -> None:
        assert populated.invoke(cli, ["delete", "s1"]).exit_code == 0
        assert populated.invoke(cli, ["node", "n1"]).exit_code == 1

    def test_delete_root(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["delete", "root"])
        assert result.exit_code == 1
        assert "NOT_PERMITTED" in result.stderr


class TestUpdate:
    def test_rename(self, populated: CliRunner) -> None:
        data = _json(populated, "update", "s1", "--name", "Daily")
        assert data["data"]["fields_changed"] == ["name"]
        assert _json(populated, "node", "s1")["data"]["name"] == "Daily"

    def test_param_merge(self, populated: CliRunner) -> None:
        populated.invoke(cli, ["update", "n1", "--param", "units=metric"])
        params = _json(populated, "node", "n1")["data"]["parameters"]
        assert params == {"zip": "02139", "units": "metric"}

    def test_unremovable_blocks_delete(self, populated: CliRunner) -> None:
        populated.invoke(cli, ["update", "n2", "--unremovable"])
        assert populated.invoke(cli, ["delete", "n2"]).exit_code == 1

    def test_immutable_folder_rejects_add(self, populated: CliRunner) -> None:
        populated.invoke(cli, ["update", "s1", "--immutable"])
        assert populated.invoke(cli, ["add", "channel", "s1"]).exit_code == 1

    def test_no_changes(self, populated: CliRunner) -> None:
        result = populated.invoke(cli, ["update", "s1"])
        assert result.exit_code == 1
        assert "No changes" in result.stderr


class TestOwners:
    def test_owners_are_separate(self, populated: CliRunner) -> None:
        data = _json(populated, "--owner", "bob", "children", "root")
        assert data["data"]["count"] == 0
