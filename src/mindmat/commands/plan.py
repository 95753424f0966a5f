"""Commands: offline materialization planning and config echo."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from mindmat.commands._base import MindmatCommand
from mindmat.services.plan import PlanService, build_config
from mindmat.services.result import ServiceResult

if TYPE_CHECKING:
    from mindmat.commands._context import AppContext


class PointParamType(click.ParamType):
    """``X,Y`` pair parsed into a float tuple."""

    name = "x,y"

    def convert(
        self, value: object, param: click.Parameter | None, ctx: click.Context | None
    ) -> tuple[float, float]:
        if isinstance(value, tuple):
            return value  # type: ignore[return-value]
        try:
            x, y = (float(part) for part in str(value).split(","))
        except ValueError:
            self.fail(f"{value!r} is not an X,Y pair", param, ctx)
        return (x, y)


POINT = PointParamType()


@click.command(
    cls=MindmatCommand,
    examples="""\
  mindmat plan map.json
  mindmat plan map.json --advance 3
  mindmat plan map.json --viewport 0,0 --viewport 400,120 --batch-size 10
  mindmat --json plan map.json --advance 2 --ids""",
)
@click.argument("nodes_file", type=click.Path(path_type=Path))
@click.option("--advance", "advances", default=0, type=int, help="Batch advances to apply.")
@click.option(
    "--viewport",
    "viewports",
    multiple=True,
    type=POINT,
    help="Viewport center for a spatial advance (repeatable).",
)
@click.option("--initial-load-count", type=int, default=None, help="Override initial pass size.")
@click.option("--batch-size", type=int, default=None, help="Override nodes per advance.")
@click.option("--preload-distance", type=float, default=None, help="Override viewport radius.")
@click.option("--disabled", is_flag=True, help="Materialize everything at once.")
@click.option("--ids", "include_ids", is_flag=True, help="Include node ids per step.")
@click.pass_obj
def plan(
    app: AppContext,
    nodes_file: Path,
    advances: int,
    viewports: tuple[tuple[float, float], ...],
    initial_load_count: int | None,
    batch_size: int | None,
    preload_distance: float | None,
    disabled: bool,
    include_ids: bool,
) -> None:
    """Replay initialize/advance/viewport steps over a JSON node dump."""
    config = build_config(
        app.settings.materialize,
        {
            "initial_load_count": initial_load_count,
            "batch_size": batch_size,
            "preload_distance": preload_distance,
            "enabled": False if disabled else None,
        },
    )
    if isinstance(config, ServiceResult):
        app.emit(config)
        return
    app.emit(
        PlanService(config, hooks=app.hooks).plan_file(
            nodes_file,
            advances=advances,
            viewports=viewports,
            include_ids=include_ids,
        )
    )


@click.command(
    name="config",
    cls=MindmatCommand,
    examples="""\
  mindmat config
  mindmat --json config
  MINDMAT_MATERIALIZE__BATCH_SIZE=10 mindmat config""",
)
@click.pass_obj
def config_cmd(app: AppContext) -> None:
    """Show the effective materialization configuration."""
    app.emit(PlanService(app.settings.materialize).describe_config())
