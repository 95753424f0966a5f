"""Rich/JSON output for ServiceResult.

The CLI renders ServiceResult for humans (Rich tables) or machines
(--json). Renderers are dispatched by ``result.op``; unknown ops fall
through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from mindmat.output.console import create_console, get_output, style_for_step

if TYPE_CHECKING:
    from rich.console import Console

    from mindmat.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display according to *settings*."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return _render_quiet(result)

    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console)
        if settings.verbose and result.meta:
            _render_meta(result.meta, console)
    else:
        _render_error(result, console)
    return get_output(console).rstrip("\n")


def _render_quiet(result: ServiceResult) -> str:
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    final = result.data.get("final")
    if isinstance(final, dict):
        stats = final.get("stats", {})
        return f"{stats.get('loaded_count', 0)}/{stats.get('total_nodes', 0)}"
    return f"OK: {result.op}"


# ── Renderers ─────────────────────────────────────────────────────────


def _render_plan(result: ServiceResult, console: Console) -> None:
    data = result.data
    table = Table(title="Materialization plan", title_justify="left")
    table.add_column("#", justify="right", style="mm.key")
    table.add_column("step")
    table.add_column("added", justify="right", style="mm.count")
    table.add_column("loaded", justify="right")
    table.add_column("progress", justify="right")
    table.add_column("batches", justify="right")
    table.add_column("more")

    for i, step in enumerate(data.get("steps", []), start=1):
        stats = step["stats"]
        label = step["op"]
        if "center" in step:
            label = f"{label} ({step['center']['x']:g}, {step['center']['y']:g})"
        table.add_row(
            str(i),
            Text(label, style=style_for_step(step["op"])),
            str(step["added"]),
            f"{stats['loaded_count']}/{stats['total_nodes']}",
            f"{step['progress']:.1%}",
            str(stats["batches_loaded"]),
            "yes" if step["has_more"] else "no",
        )
    console.print(table)

    final = data.get("final", {})
    line = Text()
    line.append("OK", style="mm.ok")
    line.append(f" plan — phase {final.get('phase', '?')}, progress ")
    line.append(f"{final.get('progress', 0):.1%}", style="mm.count")
    console.print(line)


def _render_config(result: ServiceResult, console: Console) -> None:
    table = Table(title="Effective configuration", title_justify="left")
    table.add_column("option", style="mm.key")
    table.add_column("value")
    for key, value in result.data.items():
        table.add_row(key, str(value))
    console.print(table)


def _render_generic(result: ServiceResult, console: Console) -> None:
    console.print(Text.assemble(("OK", "mm.ok"), ": ", (result.op, "mm.op")))
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            value = _json.dumps(value, separators=(",", ":"))
        console.print(Text.assemble(("  " + key, "mm.key"), f": {value}"))


def _render_error(result: ServiceResult, console: Console) -> None:
    message = result.error.message if result.error else "Unknown error"
    console.print(Text.assemble(("ERROR", "mm.error"), f": {result.op} — {message}"))
    if result.error and result.error.detail:
        for key, value in result.error.detail.items():
            console.print(Text(f"  {key}: {value}", style="mm.key"))


def _render_meta(meta: dict[str, Any], console: Console) -> None:
    telemetry = meta.get("telemetry")
    if telemetry:
        console.print(
            Text(f"{telemetry['name']}: {telemetry['duration_ms']}ms", style="mm.key")
        )


_OP_RENDERERS: dict[str, Callable[[ServiceResult, Console], None]] = {
    "plan": _render_plan,
    "config": _render_config,
}
