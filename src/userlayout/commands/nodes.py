"""Commands: single-node queries and mutations."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from userlayout.commands._base import LayoutCommand

if TYPE_CHECKING:
    from userlayout.commands._context import AppContext

NODE_TYPES = click.Choice(["folder", "channel"], case_sensitive=False)


def parse_params(values: tuple[str, ...]) -> dict[str, str]:
    """Turn repeated ``--param key=value`` options into a mapping."""
    params: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {raw!r}", param_hint="--param")
        params[key] = value
    return params


def node_attributes(
    *,
    name: str | None = None,
    fname: str | None = None,
    title: str | None = None,
    params: tuple[str, ...] = (),
) -> dict[str, object]:
    """Attribute payload for a new node from the shared CLI options."""
    attributes: dict[str, object] = {}
    if name is not None:
        attributes["name"] = name
    if fname is not None:
        attributes["fname"] = fname
    if title is not None:
        attributes["title"] = title
    if params:
        attributes["parameters"] = parse_params(params)
    return attributes


@click.command(cls=LayoutCommand, examples="  userlayout node n3\n  userlayout --json node root")
@click.argument("node_id")
@click.pass_obj
def node(app: AppContext, node_id: str) -> None:
    """Show one node's attributes and position."""
    app.emit(app.service.get_node(node_id))


@click.command(
    cls=LayoutCommand,
    examples="  userlayout children root\n  userlayout -q children s2",
)
@click.argument("node_id")
@click.pass_obj
def children(app: AppContext, node_id: str) -> None:
    """List the children of NODE_ID in order."""
    app.emit(app.service.children(node_id))


@click.command(
    cls=LayoutCommand,
    examples="""\
  userlayout add folder root --name "News"
  userlayout add channel s2 --fname weather --name Weather --param zip=02139
  userlayout add channel root --before n3 --fname bookmarks""",
)
@click.argument("node_type", type=NODE_TYPES)
@click.argument("parent_id")
@click.option("--before", default=None, help="Insert before this sibling (default: append).")
@click.option("--name", default=None, help="Display name.")
@click.option("--fname", default=None, help="Channel functional name.")
@click.option("--title", default=None, help="Channel title.")
@click.option("--param", "params", multiple=True, help="Channel parameter KEY=VALUE.")
@click.pass_obj
def add(
    app: AppContext,
    node_type: str,
    parent_id: str,
    before: str | None,
    name: str | None,
    fname: str | None,
    title: str | None,
    params: tuple[str, ...],
) -> None:
    """Add a folder or channel under PARENT_ID."""
    attributes = node_attributes(name=name, fname=fname, title=title, params=params)
    result = app.service.add_node(
        node_type.lower(), parent_id, before=before, attributes=attributes
    )
    app.emit(result)


@click.command(
    cls=LayoutCommand,
    examples="  userlayout move n3 s2\n  userlayout move n3 root --before n5",
)
@click.argument("node_id")
@click.argument("parent_id")
@click.option("--before", default=None, help="Place before this sibling (default: append).")
@click.pass_obj
def move(app: AppContext, node_id: str, parent_id: str, before: str | None) -> None:
    """Move NODE_ID (with its subtree) under PARENT_ID."""
    app.emit(app.service.move_node(node_id, parent_id, before=before))


@click.command(cls=LayoutCommand, examples="  userlayout delete n3")
@click.argument("node_id")
@click.pass_obj
def delete(app: AppContext, node_id: str) -> None:
    """Delete NODE_ID and everything under it."""
    app.emit(app.service.delete_node(node_id))


@click.command(
    cls=LayoutCommand,
    examples="""\
  userlayout update s2 --name "Daily news"
  userlayout update n3 --hidden
  userlayout update n3 --param zip=10001 --param units=metric""",
)
@click.argument("node_id")
@click.option("--name", default=None, help="New display name.")
@click.option("--hidden/--visible", default=None, help="Hide or show the node.")
@click.option("--immutable", is_flag=True, default=None, help="Lock the node against changes.")
@click.option("--unremovable", is_flag=True, default=None, help="Protect the node from deletion.")
@click.option("--param", "params", multiple=True, help="Set channel parameter KEY=VALUE.")
@click.pass_obj
def update(
    app: AppContext,
    node_id: str,
    name: str | None,
    hidden: bool | None,
    immutable: bool | None,
    unremovable: bool | None,
    params: tuple[str, ...],
) -> None:
    """Change attributes of NODE_ID."""
    changes: dict[str, object] = {}
    if name is not None:
        changes["name"] = name
    if hidden is not None:
        changes["hidden"] = hidden
    if immutable:
        changes["immutable"] = True
    if unremovable:
        changes["unremovable"] = True
    if params:
        changes["parameters"] = parse_params(params)

    if not changes:
        click.echo("No changes specified. Use --help for options.", err=True)
        raise SystemExit(1)

    app.emit(app.service.update_node(node_id, changes=changes))


@click.command("subscribe-id", cls=LayoutCommand, examples="  userlayout subscribe-id weather")
@click.argument("fname")
@click.pass_obj
def subscribe_id(app: AppContext, fname: str) -> None:
    """Print the ID of the channel subscribed under FNAME."""
    app.emit(app.service.subscribe_id(fname))


@click.command("cache-key", cls=LayoutCommand, examples="  userlayout cache-key")
@click.pass_obj
def cache_key(app: AppContext) -> None:
    """Print the layout's current cache key and cache tag."""
    app.emit(app.service.cache_key())
