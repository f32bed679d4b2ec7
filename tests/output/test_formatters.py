"""Tests for output mode selection."""

import json

from userlayout.output.formatters import OutputSettings, format_result
from userlayout.services.result import ServiceResult


def _result() -> ServiceResult:
    return ServiceResult(ok=True, op="delete_node", data={"id": "n2"})


class TestFormatResult:
    def test_json(self) -> None:
        output = format_result(_result(), settings=OutputSettings(json_output=True))
        parsed = json.loads(output)
        assert parsed["ok"] is True
        assert parsed["data"] == {"id": "n2"}

    def test_quiet(self) -> None:
        assert format_result(_result(), settings=OutputSettings(quiet=True)) == "n2"

    def test_default_is_rich(self) -> None:
        output = format_result(_result())
        assert "OK" in output
        assert "delete_node" in output

    def test_json_beats_quiet(self) -> None:
        settings = OutputSettings(json_output=True, quiet=True)
        assert json.loads(format_result(_result(), settings=settings))["op"] == "delete_node"
