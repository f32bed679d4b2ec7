"""Rich Console factory and theme for userlayout output.

Consoles render to a StringIO buffer so renderers keep a plain
``str`` contract. In non-TTY environments (tests, pipes) Rich
disables color codes automatically.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

LAYOUT_THEME = Theme(
    {
        "layout.ok": "bold green",
        "layout.error": "bold red",
        "layout.op": "bold cyan",
        "layout.key": "dim",
        "layout.id": "bold blue",
        "layout.name": "bold",
        "layout.folder": "yellow",
        "layout.channel": "green",
        "layout.allowed": "green",
        "layout.denied": "red",
    }
)

_TYPE_STYLES: dict[str, str] = {
    "folder": "layout.folder",
    "channel": "layout.channel",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=LAYOUT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_type(node_type: str) -> str:
    """Rich style name for a node type."""
    return _TYPE_STYLES.get(node_type, "")
