"""Rich Console factory and theme for mindmat output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

MINDMAT_THEME = Theme(
    {
        "mm.ok": "bold green",
        "mm.error": "bold red",
        "mm.warning": "bold yellow",
        "mm.op": "bold cyan",
        "mm.key": "dim",
        "mm.count": "magenta",
        "mm.step.initialize": "green",
        "mm.step.advance": "blue",
        "mm.step.viewport": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=MINDMAT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_step(op: str) -> str:
    return f"mm.step.{op}" if op in {"initialize", "advance", "viewport"} else ""
