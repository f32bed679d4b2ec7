"""Subcommand modules for userlayout.

Provides register_commands(), which imports command modules only when
the root group is built.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from userlayout.commands.can import can
    from userlayout.commands.targets import targets

    cli.add_command(can)
    cli.add_command(targets)

    # --- Standalone commands ---
    from userlayout.commands.init_cmd import init_cmd
    from userlayout.commands.layout import export_cmd, import_cmd, show
    from userlayout.commands.nodes import (
        add,
        cache_key,
        children,
        delete,
        move,
        node,
        subscribe_id,
        update,
    )

    cli.add_command(init_cmd)
    cli.add_command(show)
    cli.add_command(node)
    cli.add_command(children)
    cli.add_command(add)
    cli.add_command(move)
    cli.add_command(delete)
    cli.add_command(update)
    cli.add_command(subscribe_id)
    cli.add_command(cache_key)
    cli.add_command(import_cmd)
    cli.add_command(export_cmd)
