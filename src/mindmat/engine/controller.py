"""MaterializationController — decides which nodes are available to render.

Single-threaded and cooperative. ``initialize``, ``advance_by_viewport`` and
``reset`` run to completion synchronously; only ``advance`` defers its batch
through the scheduler so the caller's event loop gets a chance to run.

At most one deferred batch is outstanding at a time. This is enforced by the
``is_loading`` guard: a second ``advance`` while one is pending is dropped,
never queued. Calls that hit a guard are benign races between caller events
(scroll, pan, resize) and engine state, so they return quietly instead of
raising.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping, Sequence
from itertools import islice
from typing import TYPE_CHECKING, Any, TypeAlias

from mindmat.config.models import MaterializationConfig, normalize_config
from mindmat.domain.nodes import MindMapNode, Point, coerce_point, distance_to
from mindmat.domain.priority import sort_by_priority
from mindmat.domain.state import MaterializationState, MaterializationStats, Phase
from mindmat.engine.scheduling import AsyncioScheduler, Scheduler, TimerHandle
from mindmat.services.telemetry import trace_span

if TYPE_CHECKING:
    from mindmat.domain.nodes import ViewportSize
    from mindmat.engine.hooks import HookDispatcher

logger = logging.getLogger(__name__)

PointLike: TypeAlias = Point | Sequence[float] | Mapping[str, float]


def _unique_by_id(nodes: Sequence[MindMapNode]) -> tuple[MindMapNode, ...]:
    """Drop repeated ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[MindMapNode] = []
    for node in nodes:
        if node.id in seen:
            continue
        seen.add(node.id)
        unique.append(node)
    if len(unique) != len(nodes):
        logger.warning("Dropped %d node(s) with duplicate ids", len(nodes) - len(unique))
    return tuple(unique)


class MaterializationController:
    """Owns the materialized subset of one node collection.

    Parameters:
        nodes: Full node collection. When given, ``initialize`` runs at once.
        config: A :class:`MaterializationConfig`, a mapping of overrides, or
            None for defaults. Invalid values raise ``ConfigurationError``.
        scheduler: Deferral mechanism for ``advance``. Defaults to the
            running asyncio loop.
        hooks: Optional dispatcher notified after every state change.

    Usage::

        with MaterializationController(nodes, {"batch_size": 10}) as ctl:
            ctl.advance()
            ...
    """

    def __init__(
        self,
        nodes: Sequence[MindMapNode] | None = None,
        config: MaterializationConfig | Mapping[str, Any] | None = None,
        *,
        scheduler: Scheduler | None = None,
        hooks: HookDispatcher | None = None,
    ) -> None:
        self._config = normalize_config(config)
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._hooks = hooks
        self._source: Sequence[MindMapNode] | None = None
        self._nodes: tuple[MindMapNode, ...] = ()
        self._state = MaterializationState()
        self._initialized = False
        self._disposed = False
        self._pending: TimerHandle | None = None
        self._generation = 0
        self._last_accepted: float | None = None
        if nodes is not None:
            self.initialize(nodes)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def config(self) -> MaterializationConfig:
        """Effective configuration after defaults were applied."""
        return self._config

    @property
    def state(self) -> MaterializationState:
        return self._state

    @property
    def nodes(self) -> tuple[MindMapNode, ...]:
        return self._nodes

    @property
    def phase(self) -> Phase:
        if self._disposed:
            return Phase.DISPOSED
        if not self._initialized:
            return Phase.UNINITIALIZED
        if self._state.is_loading:
            return Phase.ADVANCING
        if not self._state.has_more:
            return Phase.EXHAUSTED
        return Phase.IDLE

    @property
    def loaded_nodes(self) -> tuple[MindMapNode, ...]:
        return self._state.loaded_nodes

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def has_more(self) -> bool:
        return self._state.has_more

    @property
    def progress(self) -> float:
        return self._state.progress

    @property
    def stats(self) -> MaterializationStats:
        return self._state.stats

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, all_nodes: Sequence[MindMapNode]) -> MaterializationState:
        """Materialize the first pass of *all_nodes*, replacing any prior state."""
        if self._disposed:
            logger.debug("initialize ignored: controller disposed")
            return self._state
        self._cancel_pending()
        self._source = all_nodes
        self._nodes = _unique_by_id(all_nodes)
        self._initialized = True

        if not self._config.enabled or not self._nodes:
            loaded = self._nodes
        else:
            loaded = tuple(sort_by_priority(self._nodes)[: self._config.initial_load_count])
        self._commit(loaded, batches_loaded=1)
        logger.debug(
            "Initialized %d/%d nodes (enabled=%s)",
            len(loaded),
            len(self._nodes),
            self._config.enabled,
        )
        self._dispatch("post_initialize", state=self._state)
        return self._state

    def set_nodes(self, all_nodes: Sequence[MindMapNode]) -> MaterializationState:
        """Change notification: re-initialize only when the collection identity changed."""
        if all_nodes is self._source and self._initialized:
            return self._state
        return self.initialize(all_nodes)

    def reconfigure(
        self, config: MaterializationConfig | Mapping[str, Any]
    ) -> MaterializationState:
        """Swap the effective config.

        Changing ``enabled`` or ``initial_load_count`` re-initializes against
        the current collection; other options apply to later advances.
        """
        if self._disposed:
            logger.debug("reconfigure ignored: controller disposed")
            return self._state
        new_config = normalize_config(config)
        old_config, self._config = self._config, new_config
        needs_init = (
            new_config.enabled != old_config.enabled
            or new_config.initial_load_count != old_config.initial_load_count
        )
        if needs_init and self._initialized and self._source is not None:
            return self.initialize(self._source)
        return self._state

    def reset(self) -> MaterializationState:
        """Cancel pending work and rebuild the initial state for the same collection."""
        if self._disposed:
            logger.debug("reset ignored: controller disposed")
            return self._state
        self._cancel_pending()
        self._last_accepted = None
        self.initialize(self._source if self._source is not None else ())
        self._dispatch("post_reset", state=self._state)
        return self._state

    def dispose(self) -> None:
        """Cancel pending work. No state mutation happens afterwards."""
        if self._disposed:
            return
        self._cancel_pending()
        self._disposed = True
        logger.debug("Controller disposed")
        self._dispatch("post_dispose")

    def __enter__(self) -> MaterializationController:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    # ------------------------------------------------------------------
    # Advances
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        """Schedule the next priority-ordered batch.

        Returns True when the call was accepted. Calls within
        ``throttle_ms`` of the previous accepted call are dropped.
        """
        if not self._can_advance("advance"):
            return False

        now = self._scheduler.time()
        window = self._config.throttle_ms / 1000
        if self._last_accepted is not None and now - self._last_accepted < window:
            logger.debug("advance throttled")
            return False

        # Nothing is recorded until the batch is actually scheduled.
        self._pending = self._scheduler.call_later(
            self._config.defer_ms / 1000,
            functools.partial(self._apply_deferred_batch, self._generation),
        )
        self._last_accepted = now
        self._state = self._state.with_loading(True)
        return True

    load_more = advance

    def advance_by_viewport(
        self,
        viewport_center: PointLike,
        viewport_size: ViewportSize | None = None,
    ) -> tuple[MindMapNode, ...]:
        """Materialize the unloaded nodes closest to *viewport_center*.

        Runs synchronously and ignores the throttle. Nodes farther than
        ``preload_distance`` are never picked. *viewport_size* is accepted
        but does not affect selection. Returns the newly materialized nodes.
        """
        if not self._can_advance("advance_by_viewport"):
            return ()

        center = coerce_point(viewport_center)
        loaded_ids = self._state.loaded_ids
        candidates = [
            (distance_to(node, center), node)
            for node in sort_by_priority(self._nodes)
            if node.id not in loaded_ids
        ]
        eligible = [c for c in candidates if c[0] <= self._config.preload_distance]
        eligible.sort(key=lambda c: c[0])
        batch = tuple(node for _, node in eligible[: self._config.batch_size])
        if not batch:
            logger.debug("No nodes within %.1f of %s", self._config.preload_distance, center)
            return ()

        with trace_span("materialize.viewport") as span:
            self._append(batch)
            if span:
                span.nodes = len(batch)
        self._dispatch("post_batch", state=self._state, batch=batch, trigger="viewport")
        return batch

    load_by_viewport = advance_by_viewport

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _can_advance(self, op: str) -> bool:
        if self._disposed or not self._initialized:
            reason = "disposed" if self._disposed else "uninitialized"
        elif not self._config.enabled:
            reason = "disabled"
        elif self._state.is_loading:
            reason = "already loading"
        elif not self._state.has_more:
            reason = "exhausted"
        else:
            return True
        logger.debug("%s ignored: %s", op, reason)
        return False

    def _apply_deferred_batch(self, generation: int) -> None:
        # A stale callback from before initialize/reset/dispose must not mutate state.
        if generation != self._generation or self._disposed:
            return
        self._pending = None

        loaded_ids = self._state.loaded_ids
        remaining = (n for n in sort_by_priority(self._nodes) if n.id not in loaded_ids)
        batch = tuple(islice(remaining, self._config.batch_size))
        with trace_span("materialize.batch") as span:
            self._append(batch)
            if span:
                span.nodes = len(batch)
        self._dispatch("post_batch", state=self._state, batch=batch, trigger="advance")

    def _append(self, batch: tuple[MindMapNode, ...]) -> None:
        self._commit(
            self._state.loaded_nodes + batch,
            batches_loaded=self._state.stats.batches_loaded + 1,
        )
        logger.debug(
            "Materialized %d node(s), %d/%d loaded",
            len(batch),
            self._state.stats.loaded_count,
            self._state.stats.total_nodes,
        )

    def _commit(self, loaded: tuple[MindMapNode, ...], *, batches_loaded: int) -> None:
        self._state = MaterializationState.build(
            loaded,
            total_nodes=len(self._nodes),
            batches_loaded=batches_loaded,
        )

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _dispatch(self, hook_name: str, **kwargs: Any) -> None:
        if self._hooks is not None:
            self._hooks.dispatch(hook_name, **kwargs)
