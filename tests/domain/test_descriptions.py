"""Tests for node description models and the description factory."""

import pytest
from pydantic import ValidationError

from userlayout.domain.descriptions import (
    DEFAULT_CHANNEL_TIMEOUT,
    ChannelDescription,
    FolderDescription,
    create_node_description,
    description_from_payload,
    get_description_model,
    require_description,
)
from userlayout.domain.errors import ErrorCode, LayoutError
from userlayout.domain.types import FolderType, NodeType


class TestModels:
    def test_folder_defaults(self) -> None:
        folder = FolderDescription()
        assert folder.id is None
        assert folder.folder_type == FolderType.REGULAR
        assert folder.node_type == NodeType.FOLDER
        assert not folder.hidden and not folder.immutable and not folder.unremovable

    def test_channel_defaults(self) -> None:
        channel = ChannelDescription()
        assert channel.node_type == NodeType.CHANNEL
        assert channel.timeout == DEFAULT_CHANNEL_TIMEOUT
        assert channel.parameters == {}

    def test_frozen(self) -> None:
        folder = FolderDescription(name="x")
        with pytest.raises(ValidationError):
            folder.name = "y"  # type: ignore[misc]

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FolderDescription(fname="nope")  # type: ignore[call-arg]

    def test_with_id_copies(self) -> None:
        folder = FolderDescription(name="x")
        placed = folder.with_id("s1")
        assert placed.id == "s1"
        assert folder.id is None
        assert placed.with_id("s1") is placed

    def test_parameters_frozen(self) -> None:
        source = {"zip": "02139"}
        channel = ChannelDescription(parameters=source)
        source["zip"] = "10001"
        assert channel.parameters == {"zip": "02139"}
        with pytest.raises(TypeError):
            channel.parameters["zip"] = "10001"  # type: ignore[index]
        assert channel.model_dump()["parameters"] == {"zip": "02139"}
        assert '"parameters":{"zip":"02139"}' in channel.model_dump_json()

    def test_frozen_copy_revalidates(self) -> None:
        loose = ChannelDescription().model_copy(update={"parameters": {"a": "b"}})
        placed = loose.frozen_copy("n1")
        assert placed.id == "n1"
        assert placed.parameters == {"a": "b"}
        with pytest.raises(TypeError):
            placed.parameters["a"] = "c"  # type: ignore[index]

    def test_value_equality(self) -> None:
        assert ChannelDescription(fname="a") == ChannelDescription(fname="a")
        assert ChannelDescription(fname="a") != ChannelDescription(fname="b")


class TestFactory:
    @pytest.mark.parametrize("node_type", ["folder", "channel", NodeType.FOLDER])
    def test_create_node_description(self, node_type: object) -> None:
        description = create_node_description(node_type)
        assert description.id is None
        assert str(description.node_type) == str(node_type)

    @pytest.mark.parametrize("node_type", ["widget", None, 3])
    def test_unsupported_type(self, node_type: object) -> None:
        with pytest.raises(LayoutError) as exc_info:
            get_description_model(node_type)
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_TYPE

    def test_from_payload_coerces_strings(self) -> None:
        channel = description_from_payload(
            "channel", {"id": "n1", "hidden": "true", "timeout": "250"}
        )
        assert isinstance(channel, ChannelDescription)
        assert channel.hidden is True
        assert channel.timeout == 250

    def test_from_payload_invalid_is_malformed(self) -> None:
        with pytest.raises(LayoutError) as exc_info:
            description_from_payload("folder", {"id": "s1", "folder_type": "sidebar"})
        assert exc_info.value.code == ErrorCode.MALFORMED_LAYOUT
        assert exc_info.value.detail["node_id"] == "s1"

    def test_require_description(self) -> None:
        folder = FolderDescription()
        assert require_description(folder) is folder
        with pytest.raises(LayoutError) as exc_info:
            require_description({"name": "dict"})
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_TYPE
