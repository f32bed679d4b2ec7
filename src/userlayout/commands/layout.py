"""Commands: whole-layout rendering, import and export."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

import click

from userlayout.commands._base import LayoutCommand

if TYPE_CHECKING:
    from userlayout.commands._context import AppContext


@click.command(
    cls=LayoutCommand,
    examples="""\
  userlayout show
  userlayout show s2
  userlayout --json show""",
)
@click.argument("node_id", required=False, default=None)
@click.pass_obj
def show(app: AppContext, node_id: str | None) -> None:
    """Print the layout (or the subtree at NODE_ID) as XML."""
    app.emit(app.service.show(node_id))


@click.command(
    "export",
    cls=LayoutCommand,
    examples="""\
  userlayout export
  userlayout export layout.xml
  userlayout export --node s2 folder.xml""",
)
@click.argument("output", required=False, type=click.Path(dir_okay=False), default=None)
@click.option("--node", "node_id", default=None, help="Export only this subtree.")
@click.pass_obj
def export_cmd(app: AppContext, output: str | None, node_id: str | None) -> None:
    """Write the layout XML to OUTPUT (stdout when omitted)."""
    result = app.service.export_layout(node_id)
    if output is None or not result.ok:
        app.emit(result)
        return
    with click.open_file(output, "w", encoding="utf-8") as fh:
        fh.write(result.data["xml"])
    app.emit(result.model_copy(update={"op": "export_file", "data": {"output_file": output}}))


@click.command(
    "import",
    cls=LayoutCommand,
    examples="""\
  userlayout import layout.xml
  userlayout export | sed 's/Root folder/Home/' | userlayout import -""",
)
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_obj
def import_cmd(app: AppContext, source: IO[str]) -> None:
    """Replace the whole layout with the XML document in SOURCE."""
    app.emit(app.service.import_layout(source.read()))
