"""PlanService — replay a materialization session offline.

Drives a :class:`MaterializationController` on a virtual clock so a node dump
can be inspected without a UI: how many nodes each step materializes, in
which order, and where viewport advances find nothing to load.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from mindmat.config.models import ConfigurationError, MaterializationConfig, normalize_config
from mindmat.domain.nodes import MindMapNode, Point, coerce_point, load_nodes
from mindmat.engine.controller import MaterializationController
from mindmat.engine.scheduling import VirtualScheduler
from mindmat.services.result import ServiceResult
from mindmat.services.telemetry import traced

if TYPE_CHECKING:
    from mindmat.engine.hooks import HookDispatcher

logger = logging.getLogger(__name__)


class PlanService:
    """Offline planner for a node collection under one configuration."""

    def __init__(
        self,
        config: MaterializationConfig | None = None,
        *,
        hooks: HookDispatcher | None = None,
    ) -> None:
        self._config = normalize_config(config)
        self._hooks = hooks

    @traced
    def describe_config(self) -> ServiceResult:
        """Echo the effective configuration."""
        return ServiceResult(ok=True, op="config", data=self._config.model_dump())

    @traced
    def plan(
        self,
        nodes: Sequence[MindMapNode],
        *,
        advances: int = 0,
        viewports: Sequence[Point | tuple[float, float]] = (),
        include_ids: bool = False,
    ) -> ServiceResult:
        """Initialize, then apply *advances* batch advances and one viewport
        advance per entry of *viewports*.

        Each batch advance drains both the throttle window and the deferral,
        so every step is accepted while nodes remain.
        """
        warnings: list[str] = []
        scheduler = VirtualScheduler()
        drain = (self._config.throttle_ms + self._config.defer_ms) / 1000
        steps: list[dict[str, Any]] = []

        with MaterializationController(
            nodes, self._config, scheduler=scheduler, hooks=self._hooks
        ) as ctl:
            steps.append(self._step("initialize", ctl, len(ctl.loaded_nodes), include_ids))

            for i in range(advances):
                before = len(ctl.loaded_nodes)
                if not ctl.advance():
                    warnings.append(f"advance #{i + 1} ignored ({ctl.phase})")
                    break
                scheduler.advance(drain)
                steps.append(
                    self._step("advance", ctl, len(ctl.loaded_nodes) - before, include_ids)
                )

            for raw in viewports:
                center = coerce_point(raw)
                added = ctl.advance_by_viewport(center)
                if not added:
                    warnings.append(f"viewport ({center.x:g}, {center.y:g}) loaded nothing")
                step = self._step("viewport", ctl, len(added), include_ids)
                step["center"] = {"x": center.x, "y": center.y}
                steps.append(step)

            final = ctl.state.to_dict(include_ids=include_ids)
            final["phase"] = str(ctl.phase)

        logger.debug("Planned %d step(s) over %d node(s)", len(steps), len(nodes))
        return ServiceResult(
            ok=True,
            op="plan",
            data={"steps": steps, "final": final, "config": self._config.model_dump()},
            warnings=warnings,
        )

    def plan_file(self, path: Path, **kwargs: Any) -> ServiceResult:
        """Load a JSON node dump from *path*, then :meth:`plan` it."""
        if not path.is_file():
            return ServiceResult.failure("plan", "NODES_NOT_FOUND", f"No such file: {path}")
        try:
            nodes = load_nodes(path)
        except ValidationError as exc:
            return ServiceResult.failure(
                "plan",
                "INVALID_NODES",
                f"Invalid node data in {path}",
                {"errors": exc.errors(include_url=False, include_context=False)},
            )
        except ValueError as exc:
            return ServiceResult.failure("plan", "INVALID_NODES", str(exc))
        return self.plan(nodes, **kwargs)

    @staticmethod
    def _step(
        kind: str, ctl: MaterializationController, added: int, include_ids: bool
    ) -> dict[str, Any]:
        step = {"op": kind, "added": added, **ctl.state.to_dict()}
        if include_ids:
            step["added_ids"] = [n.id for n in ctl.loaded_nodes[-added:]] if added else []
        return step


def build_config(
    base: MaterializationConfig, overrides: dict[str, Any]
) -> MaterializationConfig | ServiceResult:
    """Layer non-None *overrides* onto *base*.

    Returns a failure ServiceResult instead of raising so commands can emit it.
    """
    updates = {k: v for k, v in overrides.items() if v is not None}
    if not updates:
        return base
    try:
        return normalize_config({**base.model_dump(), **updates})
    except ConfigurationError as exc:
        return ServiceResult.failure(
            "config",
            "INVALID_CONFIG",
            str(exc),
            {"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors]},
        )
