"""Command group: drop-target discovery for add and move."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from userlayout.commands._base import LayoutGroup
from userlayout.commands.nodes import NODE_TYPES

if TYPE_CHECKING:
    from userlayout.commands._context import AppContext

_TARGETS_EXAMPLES = """\
  userlayout targets add channel
  userlayout targets move n3
  userlayout -v targets move s2     # include the marked-up XML"""


@click.group(cls=LayoutGroup, examples=_TARGETS_EXAMPLES)
def targets() -> None:
    """List the locations where a node could be dropped."""


@targets.command("add")
@click.argument("node_type", type=NODE_TYPES)
@click.pass_obj
def add_targets(app: AppContext, node_type: str) -> None:
    """Every folder slot a new NODE_TYPE could be added to."""
    app.emit(app.service.add_targets(node_type.lower()))


@targets.command("move")
@click.argument("node_id")
@click.pass_obj
def move_targets(app: AppContext, node_id: str) -> None:
    """Every folder slot NODE_ID could be moved to."""
    app.emit(app.service.move_targets(node_id))
