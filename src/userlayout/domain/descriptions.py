"""Node description models — metadata snapshots of layout nodes.

A description is everything about a node except its position in the
tree. Descriptions are frozen: changing a node means building a new
description (``model_copy(update=...)``) and handing it to the manager.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, ClassVar, Self, TypeAlias

from pydantic import BaseModel, Field, ValidationError, field_serializer, field_validator

from userlayout.domain.errors import ErrorCode, LayoutError
from userlayout.domain.types import FolderType, NodeType

DEFAULT_CHANNEL_TIMEOUT = 5000  # milliseconds


class NodeDescription(BaseModel):
    """Attributes shared by every layout node.

    Attributes:
        id: Node ID, or None for a node not yet placed in a layout.
        name: Display name.
        hidden: Node is rendered hidden.
        immutable: Node (and, for folders, its child list) may not change.
        unremovable: Node may not be deleted or leave its parent.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    node_type: ClassVar[NodeType]

    id: str | None = None
    name: str = ""
    hidden: bool = False
    immutable: bool = False
    unremovable: bool = False

    def with_id(self, node_id: str | None) -> Self:
        """Return a copy carrying *node_id*."""
        if self.id == node_id:
            return self
        return self.model_copy(update={"id": node_id})

    def frozen_copy(self, node_id: str | None) -> Self:
        """Return a re-validated copy carrying *node_id*.

        ``model_copy(update=...)`` skips validation, so a description built
        that way may still hold a caller-owned mutable mapping.
        """
        try:
            return type(self).model_validate({**self.model_dump(), "id": node_id})
        except ValidationError as exc:
            raise LayoutError.malformed(
                f"Invalid {self.node_type} attributes: {exc.error_count()} error(s)",
                node_id=node_id,
            ) from exc


class FolderDescription(NodeDescription):
    """A folder groups channels and other folders."""

    node_type: ClassVar[NodeType] = NodeType.FOLDER

    folder_type: FolderType = FolderType.REGULAR


class ChannelDescription(NodeDescription):
    """A channel is a leaf node rendering one published portlet."""

    node_type: ClassVar[NodeType] = NodeType.CHANNEL

    fname: str = ""
    title: str = ""
    description: str = ""
    channel_publish_id: str = ""
    channel_type_id: str = ""
    timeout: int = DEFAULT_CHANNEL_TIMEOUT
    editable: bool = False
    has_help: bool = False
    has_about: bool = False
    secure: bool = False
    parameters: Mapping[str, str] = Field(default_factory=lambda: MappingProxyType({}))

    @field_validator("parameters", mode="after")
    @classmethod
    def _freeze_parameters(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("parameters")
    def _dump_parameters(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)


AnyDescription: TypeAlias = FolderDescription | ChannelDescription

DESCRIPTION_REGISTRY: dict[str, type[NodeDescription]] = {
    str(NodeType.FOLDER): FolderDescription,
    str(NodeType.CHANNEL): ChannelDescription,
}


def get_description_model(node_type: object) -> type[NodeDescription]:
    """Return the description model for *node_type*.

    Raises:
        LayoutError: ``UNSUPPORTED_TYPE`` if the type is not registered.
    """
    model_cls = DESCRIPTION_REGISTRY.get(str(node_type)) if node_type is not None else None
    if model_cls is None:
        raise LayoutError(
            ErrorCode.UNSUPPORTED_TYPE,
            f"Unsupported node type: {node_type!r}",
            detail={"node_type": str(node_type)},
        )
    return model_cls


def create_node_description(node_type: object) -> NodeDescription:
    """Factory for an empty, valid description of *node_type*."""
    return get_description_model(node_type)()


def description_from_payload(node_type: object, payload: dict[str, Any]) -> NodeDescription:
    """Validate a raw attribute mapping into a description.

    Raises:
        LayoutError: ``UNSUPPORTED_TYPE`` for an unknown type,
            ``MALFORMED_LAYOUT`` for invalid attributes.
    """
    model_cls = get_description_model(node_type)
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        raise LayoutError.malformed(
            f"Invalid {node_type} attributes: {exc.error_count()} error(s)",
            node_id=payload.get("id"),
            errors=[err["msg"] for err in exc.errors()],
        ) from exc


def require_description(description: object) -> NodeDescription:
    """Reject anything that is not a node description."""
    if not isinstance(description, NodeDescription):
        raise LayoutError(
            ErrorCode.UNSUPPORTED_TYPE,
            f"Expected a node description, got {type(description).__name__}",
        )
    return description
