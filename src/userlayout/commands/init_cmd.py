"""Command: project initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from userlayout.commands._base import LayoutCommand

if TYPE_CHECKING:
    from userlayout.commands._context import AppContext

_INIT_EXAMPLES = """\
  userlayout init
  userlayout --owner alice init /srv/portal
  userlayout init . --store-path layouts.db"""


@click.command("init", cls=LayoutCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option(
    "--store-path",
    default=None,
    help="SQLite store location, relative to PATH unless absolute.",
)
@click.pass_obj
def init_cmd(app: AppContext, path: str, store_path: str | None) -> None:
    """Create userlayout.toml and the layout store, and seed the owner's layout."""
    from userlayout.services.init import InitService

    app.emit(
        InitService.init_project(
            Path(path).resolve(),
            owner=app.settings.effective_owner,
            root_name=app.settings.layout.root_name,
            store_path=store_path or app.settings.store.path,
        )
    )
