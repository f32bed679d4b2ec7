"""Command group: permission checks that never change the layout."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from userlayout.commands._base import LayoutGroup
from userlayout.commands.nodes import NODE_TYPES, node_attributes

if TYPE_CHECKING:
    from userlayout.commands._context import AppContext

_CAN_EXAMPLES = """\
  userlayout can add channel s2 --fname weather
  userlayout can move n3 root --before n5
  userlayout -q can delete s2"""


@click.group(cls=LayoutGroup, examples=_CAN_EXAMPLES)
def can() -> None:
    """Ask whether an add, move or delete would be permitted."""


@can.command("add")
@click.argument("node_type", type=NODE_TYPES)
@click.argument("parent_id")
@click.option("--before", default=None, help="Sibling the node would precede.")
@click.option("--fname", default=None, help="Channel functional name.")
@click.pass_obj
def can_add(
    app: AppContext,
    node_type: str,
    parent_id: str,
    before: str | None,
    fname: str | None,
) -> None:
    """Could a new NODE_TYPE be added under PARENT_ID?"""
    attributes = node_attributes(fname=fname)
    result = app.service.can_add(
        node_type.lower(), parent_id, before=before, attributes=attributes
    )
    app.emit(result)


@can.command("move")
@click.argument("node_id")
@click.argument("parent_id")
@click.option("--before", default=None, help="Sibling the node would precede.")
@click.pass_obj
def can_move(app: AppContext, node_id: str, parent_id: str, before: str | None) -> None:
    """Could NODE_ID be moved under PARENT_ID?"""
    app.emit(app.service.can_move(node_id, parent_id, before=before))


@can.command("delete")
@click.argument("node_id")
@click.pass_obj
def can_delete(app: AppContext, node_id: str) -> None:
    """Could NODE_ID be deleted?"""
    app.emit(app.service.can_delete(node_id))
