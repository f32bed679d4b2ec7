"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias

from rich.table import Table
from rich.text import Text

from userlayout.output.console import create_console, get_output, style_for_type

if TYPE_CHECKING:
    from rich.console import Console

    from userlayout.services.result import ServiceResult

Renderer: TypeAlias = Callable[..., None]


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a string via Rich."""
    if result.ok and "xml" in result.data and result.op in _XML_OPS:
        # Layout documents go out verbatim so they can be piped.
        return str(result.data["xml"])

    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if result.op in _XML_OPS:
        return str(result.data.get("xml", ""))
    if "allowed" in result.data:
        return "yes" if result.data["allowed"] else "no"
    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item.get("id", "")) for item in items)
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="layout.ok"), Text(f"  {result.op}", style="layout.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="layout.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="layout.id")
    elif key == "name":
        v = Text(str(value), style="layout.name")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


def _node_table(items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="layout.id", no_wrap=True)
    table.add_column("Type")
    table.add_column("Name", style="layout.name")
    table.add_column("Flags")
    if verbose:
        table.add_column("Fname")

    for item in items:
        node_type = str(item.get("type", ""))
        flags = [f for f in ("hidden", "immutable", "unremovable") if item.get(f)]
        row: list[str | Text] = [
            str(item.get("id", "")),
            Text(node_type, style=style_for_type(node_type)),
            str(item.get("name", "")),
            ",".join(flags),
        ]
        if verbose:
            row.append(str(item.get("fname", "")))
        table.add_row(*row)
    return table


# ── Renderers ─────────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="layout.error"),
        Text(f"  {result.op}{code}", style="layout.op"),
        Text(" — "),
        msg,
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render add/move/delete/update/import results."""
    _status_line(console, result)
    for key in ("id", "type", "name", "parent_id", "before", "fields_changed", "nodes"):
        if result.data.get(key) is not None:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_node(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_node as a field list, parameters last."""
    d = result.data
    _status_line(console, result)
    for key, value in d.items():
        if key == "parameters":
            continue
        if not verbose and (value is None or value is False or value == ""):
            continue
        _field(console, key, value)
    for name, value in d.get("parameters", {}).items():
        console.print(f"    param {name} = {value}")


def _render_children(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_node_table(items, verbose=verbose))
    console.print(f"\n{result.data.get('count', len(items))} children of {result.data.get('id')}")


def _render_permission(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    allowed = bool(result.data.get("allowed"))
    if allowed:
        label = Text("allowed", style="layout.allowed")
    else:
        label = Text("denied", style="layout.denied")
    console.print(Text(f"{result.op}: "), label)
    if verbose:
        for key, value in result.data.items():
            if key != "allowed":
                _field(console, key, value)


def _render_targets(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    targets = result.data.get("targets", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Folder", style="layout.id", no_wrap=True)
    table.add_column("Before", no_wrap=True)
    for target in targets:
        table.add_row(str(target["parent_id"]), str(target["before"] or "(end)"))
    console.print(table)
    console.print(f"\n{len(targets)} targets")
    if verbose:
        console.print(result.data.get("xml", ""), markup=False)


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("project_root", "config_file", "store_path", "owner", "layout_id"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _field(console, "config_created", result.data.get("config_created"))
        _field(console, "layout_created", result.data.get("layout_created"))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_XML_OPS = frozenset({"show", "export_layout"})

_OP_RENDERERS: dict[str, Renderer] = {
    # Mutations
    "add_node": _render_mutation,
    "move_node": _render_mutation,
    "delete_node": _render_mutation,
    "update_node": _render_mutation,
    "import_layout": _render_mutation,
    # Queries
    "get_node": _render_node,
    "children": _render_children,
    # Permissions
    "can_add": _render_permission,
    "can_move": _render_permission,
    "can_delete": _render_permission,
    # Targets
    "add_targets": _render_targets,
    "move_targets": _render_targets,
    # Init
    "init_project": _render_init,
}
