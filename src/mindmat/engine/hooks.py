"""Pluggy hooks for observing materialization state.

The rendering layer subscribes by registering an object whose methods are
decorated with :data:`hookimpl`. Hooks are dispatched synchronously, right
after the controller commits a new state snapshot.

INVARIANT: Hook failures are warnings, never errors.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from mindmat.domain.nodes import MindMapNode
    from mindmat.domain.state import MaterializationState

PROJECT_NAME = "mindmat"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)

logger = logging.getLogger(__name__)


class MaterializationHookSpec:
    """Hook specifications for controller lifecycle events."""

    @hookspec
    def post_initialize(self, state: MaterializationState) -> None:
        """Called after ``initialize`` (including re-initialization)."""

    @hookspec
    def post_batch(
        self,
        state: MaterializationState,
        batch: tuple[MindMapNode, ...],
        trigger: str,
    ) -> None:
        """Called after a batch is appended. *trigger* is ``advance`` or ``viewport``."""

    @hookspec
    def post_reset(self, state: MaterializationState) -> None:
        """Called after ``reset``."""

    @hookspec
    def post_dispose(self) -> None:
        """Called once when the controller is disposed."""


class HookDispatcher:
    """Owns a pluggy PluginManager and dispatches hooks without raising."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(MaterializationHookSpec)

    def register(self, plugin: object, name: str | None = None) -> None:
        """Register a subscriber instance."""
        resolved_name = name or f"{plugin.__class__.__name__}-{id(plugin):x}"
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered hook plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def load_entrypoints(self) -> int:
        """Load subscribers advertised under the ``mindmat.plugins`` entry point group.

        Returns the number of plugins loaded.
        """
        count = self._pm.load_setuptools_entrypoints(f"{PROJECT_NAME}.plugins")
        self._instantiate_classes()
        return count

    def _instantiate_classes(self) -> None:
        # An entry point may name a class; its hookimpls need an instance.
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate entry-point plugin %s", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def dispatch(self, hook_name: str, **kwargs: Any) -> None:
        """Call *hook_name* on every subscriber; failures are logged."""
        hook = getattr(self._pm.hook, hook_name)
        try:
            hook(**kwargs)
        except Exception:
            logger.warning("Hook %s failed", hook_name, exc_info=True)
