"""Tests for node ID patterns, validation, and generation."""

import pytest

from userlayout.domain.ids import (
    ID_PATTERNS,
    ROOT_FOLDER_ID,
    TYPE_PREFIXES,
    format_node_id,
    highest_sequence,
    id_sequence,
    next_node_id,
    validate_id,
)


class TestValidateId:
    @pytest.mark.parametrize(
        ("node_id", "node_type"),
        [("s1", "folder"), ("s120", "folder"), ("n7", "channel"), (ROOT_FOLDER_ID, "folder")],
    )
    def test_valid(self, node_id: str, node_type: str) -> None:
        assert validate_id(node_id, node_type)

    @pytest.mark.parametrize(
        ("node_id", "node_type"),
        [("n1", "folder"), ("s1", "channel"), ("s", "folder"), ("root", "channel"), ("x1", "x")],
    )
    def test_invalid(self, node_id: str, node_type: str) -> None:
        assert not validate_id(node_id, node_type)


class TestSequences:
    def test_id_sequence(self) -> None:
        assert id_sequence("s12", "folder") == 12
        assert id_sequence("root", "folder") is None
        assert id_sequence("n3", "unknown") is None

    def test_highest_sequence_ignores_other_types(self) -> None:
        ids = ["root", "s1", "s9", "n42", "s3"]
        assert highest_sequence(ids, "folder") == 9
        assert highest_sequence(ids, "channel") == 42

    def test_highest_sequence_empty(self) -> None:
        assert highest_sequence([], "folder") == 0

    def test_format_node_id(self) -> None:
        assert format_node_id("folder", 4) == "s4"
        assert format_node_id("channel", 10) == "n10"

    def test_next_node_id(self) -> None:
        assert next_node_id(["root", "s1", "s3", "n9"], "folder") == "s4"
        assert next_node_id(["root"], "channel") == "n1"

    def test_next_node_id_respects_floor(self) -> None:
        assert next_node_id(["n1"], "channel", floor=5) == "n6"

    def test_format_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError, match="No ID prefix"):
            format_node_id("widget", 1)

    def test_prefixes_match_patterns(self) -> None:
        assert set(TYPE_PREFIXES) == set(ID_PATTERNS)
        for node_type, prefix in TYPE_PREFIXES.items():
            assert validate_id(f"{prefix}1", node_type)
