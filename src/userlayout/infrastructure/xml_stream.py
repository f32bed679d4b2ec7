"""Layout <-> SAX event streams.

Output: :func:`write_layout` drives any ``xml.sax.handler.ContentHandler``
with the layout vocabulary below. :func:`render_layout` and
:func:`build_dom` wrap it for text and ``xml.dom.minidom`` output.

Input: :class:`LayoutBuilder` is a ContentHandler that rebuilds a
:class:`UserLayout` from the same vocabulary; :func:`parse_layout` runs
it over an XML document.

Vocabulary::

    <layout ID="root" layoutId="7" sequences="channel:4 folder:2" cacheKey="...">
      <folder ID="root" name="Root folder" type="regular" ...>
        <add_target nextID="n3"/>
        <channel ID="n3" fname="weather" ...>
          <parameter name="zip" value="02139"/>
        </channel>
        <move_target nextID=""/>
      </folder>
    </layout>

Markings (``add_target`` / ``move_target``) sit inside the target folder
at the insertion point; an empty ``nextID`` means "append". They are
ignored on input.

``sequences`` lists the last issued ID sequence per node type, so a
re-imported layout never hands out the ID of a node deleted before export.
"""

from __future__ import annotations

import io
import xml.sax
from collections import defaultdict
from typing import TYPE_CHECKING
from xml.dom import minidom
from xml.sax.handler import ContentHandler
from xml.sax.saxutils import XMLGenerator
from xml.sax.xmlreader import AttributesImpl

from userlayout.domain.descriptions import (
    ChannelDescription,
    NodeDescription,
    description_from_payload,
)
from userlayout.domain.errors import ErrorCode, LayoutError
from userlayout.domain.ids import ROOT_FOLDER_ID
from userlayout.domain.layout import UserLayout
from userlayout.domain.types import MarkingType, NodeType

if TYPE_CHECKING:
    from userlayout.domain.layout import Marking

LAYOUT_ELEMENT = "layout"
PARAMETER_ELEMENT = "parameter"
MARKING_ELEMENTS: dict[MarkingType, str] = {
    MarkingType.ADD: "add_target",
    MarkingType.MOVE: "move_target",
}

# description field -> XML attribute
_COMMON_ATTRS: dict[str, str] = {
    "name": "name",
    "hidden": "hidden",
    "immutable": "immutable",
    "unremovable": "unremovable",
}
_FOLDER_ATTRS: dict[str, str] = {**_COMMON_ATTRS, "folder_type": "type"}
_CHANNEL_ATTRS: dict[str, str] = {
    **_COMMON_ATTRS,
    "fname": "fname",
    "title": "title",
    "description": "description",
    "channel_publish_id": "chanID",
    "channel_type_id": "typeID",
    "timeout": "timeout",
    "editable": "editable",
    "has_help": "hasHelp",
    "has_about": "hasAbout",
    "secure": "secure",
}
_ATTR_MAPS: dict[str, dict[str, str]] = {
    str(NodeType.FOLDER): _FOLDER_ATTRS,
    str(NodeType.CHANNEL): _CHANNEL_ATTRS,
}


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _node_attrs(description: NodeDescription) -> dict[str, str]:
    attrs = {"ID": description.id or ""}
    for field_name, attr_name in _ATTR_MAPS[str(description.node_type)].items():
        attrs[attr_name] = _format_value(getattr(description, field_name))
    return attrs


def format_sequences(sequences: dict[str, int]) -> str:
    """``{"channel": 4, "folder": 2}`` -> ``"channel:4 folder:2"``."""
    return " ".join(f"{key}:{value}" for key, value in sorted(sequences.items()))


def parse_sequences(raw: str) -> dict[str, int]:
    """Inverse of :func:`format_sequences`.

    Raises:
        LayoutError: ``MALFORMED_LAYOUT`` for an entry that is not ``type:number``.
    """
    sequences: dict[str, int] = {}
    for entry in raw.split():
        key, sep, value = entry.partition(":")
        if not sep or not key or not value.isdigit():
            raise LayoutError.malformed(f"Invalid sequences entry: {entry!r}")
        sequences[key] = int(value)
    return sequences


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def write_layout(
    layout: UserLayout,
    handler: ContentHandler,
    *,
    node_id: str | None = None,
    cache_key: str | None = None,
) -> None:
    """Emit *layout* (or the subtree at *node_id*) as SAX events into *handler*.

    Raises:
        LayoutError: ``NOT_FOUND`` if *node_id* does not exist (before any
            event is emitted), ``SERIALIZATION_FAILED`` if the handler raises.
    """
    start = ROOT_FOLDER_ID if node_id is None else node_id
    layout.get(start)

    by_parent: dict[str, list[Marking]] = defaultdict(list)
    for marking in layout.markings:
        by_parent[marking.parent_id].append(marking)

    root_attrs = {"ID": start, "layoutId": str(layout.layout_id)}
    if layout.sequences:
        root_attrs["sequences"] = format_sequences(layout.sequences)
    if cache_key is not None:
        root_attrs["cacheKey"] = cache_key

    try:
        handler.startDocument()
        handler.startElement(LAYOUT_ELEMENT, AttributesImpl(root_attrs))
        _write_node(layout, start, handler, by_parent)
        handler.endElement(LAYOUT_ELEMENT)
        handler.endDocument()
    except LayoutError:
        raise
    except Exception as exc:
        raise LayoutError(
            ErrorCode.SERIALIZATION_FAILED,
            f"Layout serialization failed: {exc}",
            detail={"node_id": start},
        ) from exc


def _write_node(
    layout: UserLayout,
    node_id: str,
    handler: ContentHandler,
    by_parent: dict[str, list[Marking]],
) -> None:
    description = layout.get(node_id)
    element = str(description.node_type)
    handler.startElement(element, AttributesImpl(_node_attrs(description)))

    if isinstance(description, ChannelDescription):
        for name, value in description.parameters.items():
            handler.startElement(PARAMETER_ELEMENT, AttributesImpl({"name": name, "value": value}))
            handler.endElement(PARAMETER_ELEMENT)
    else:
        markings = by_parent.get(node_id, [])
        for child_id in layout.child_ids(node_id):
            _write_markings(handler, markings, child_id)
            _write_node(layout, child_id, handler, by_parent)
        _write_markings(handler, markings, None)

    handler.endElement(element)


def _write_markings(handler: ContentHandler, markings: list[Marking], next_id: str | None) -> None:
    for marking in markings:
        if marking.next_sibling_id != next_id:
            continue
        element = MARKING_ELEMENTS[marking.kind]
        handler.startElement(element, AttributesImpl({"nextID": next_id or ""}))
        handler.endElement(element)


def render_layout(
    layout: UserLayout,
    *,
    node_id: str | None = None,
    cache_key: str | None = None,
) -> str:
    """Serialize *layout* to an XML string."""
    buffer = io.StringIO()
    generator = XMLGenerator(buffer, encoding="utf-8", short_empty_elements=True)
    write_layout(layout, generator, node_id=node_id, cache_key=cache_key)
    return buffer.getvalue()


def build_dom(
    layout: UserLayout,
    *,
    node_id: str | None = None,
    cache_key: str | None = None,
) -> minidom.Document:
    """Build a DOM document from the layout event stream."""
    text = render_layout(layout, node_id=node_id, cache_key=cache_key)
    return minidom.parseString(text.encode("utf-8"))


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class LayoutBuilder(ContentHandler):
    """ContentHandler that rebuilds a :class:`UserLayout` from layout events."""

    def __init__(self) -> None:
        super().__init__()
        self.layout_id = 0
        self.sequences: dict[str, int] = {}
        self._pairs: list[tuple[str | None, NodeDescription]] = []
        self._stack: list[str] = []
        self._channel: tuple[str | None, dict[str, object]] | None = None
        self._parameters: dict[str, str] = {}

    def startElement(self, name: str, attrs: AttributesImpl) -> None:  # noqa: N802
        if name == LAYOUT_ELEMENT:
            self._start_layout(attrs)
        elif name in _ATTR_MAPS:
            self._start_node(name, attrs)
        elif name == PARAMETER_ELEMENT:
            if self._channel is None:
                raise LayoutError.malformed("<parameter> outside a channel")
            self._parameters[attrs.get("name", "")] = attrs.get("value", "")
        elif name not in MARKING_ELEMENTS.values():
            raise LayoutError.malformed(f"Unknown layout element: <{name}>")

    def endElement(self, name: str) -> None:  # noqa: N802
        if name not in _ATTR_MAPS:
            return
        self._stack.pop()
        if name == str(NodeType.CHANNEL) and self._channel is not None:
            parent_id, payload = self._channel
            payload["parameters"] = self._parameters
            self._pairs.append((parent_id, description_from_payload(NodeType.CHANNEL, payload)))
            self._channel = None
            self._parameters = {}

    def build(self) -> UserLayout:
        """The validated layout described by the events seen so far."""
        if self._stack:
            raise LayoutError.malformed("Layout document ended inside a node")
        return UserLayout.from_nodes(
            self._pairs, layout_id=self.layout_id, sequences=self.sequences
        )

    def _start_layout(self, attrs: AttributesImpl) -> None:
        raw = attrs.get("layoutId", "0")
        try:
            self.layout_id = int(raw)
        except ValueError:
            raise LayoutError.malformed(f"Invalid layoutId: {raw!r}") from None
        self.sequences = parse_sequences(attrs.get("sequences", ""))

    def _start_node(self, name: str, attrs: AttributesImpl) -> None:
        if self._channel is not None:
            raise LayoutError.malformed("Channels cannot contain nodes")
        node_id = attrs.get("ID")
        if not node_id:
            raise LayoutError.malformed(f"<{name}> without an ID attribute")
        parent_id = self._stack[-1] if self._stack else None
        self._stack.append(node_id)

        payload: dict[str, object] = {"id": node_id}
        for field_name, attr_name in _ATTR_MAPS[name].items():
            if attr_name in attrs:
                payload[field_name] = attrs[attr_name]

        if name == str(NodeType.FOLDER):
            self._pairs.append((parent_id, description_from_payload(NodeType.FOLDER, payload)))
        else:
            self._channel = (parent_id, payload)


def parse_layout(source: str | bytes) -> UserLayout:
    """Parse an XML layout document.

    Raises:
        LayoutError: ``MALFORMED_LAYOUT`` for invalid XML, unknown
            elements, bad attribute values, or an invalid tree.
    """
    builder = LayoutBuilder()
    data = source.encode("utf-8") if isinstance(source, str) else source
    try:
        xml.sax.parseString(data, builder)
    except xml.sax.SAXException as exc:
        raise LayoutError.malformed(f"Invalid layout XML: {exc}") from exc
    return builder.build()

