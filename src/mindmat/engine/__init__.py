"""Engine layer — materialization controller, schedulers, and hooks."""

from mindmat.engine.controller import MaterializationController
from mindmat.engine.hooks import HookDispatcher, hookimpl
from mindmat.engine.scheduling import AsyncioScheduler, Scheduler, VirtualScheduler

__all__ = [
    "AsyncioScheduler",
    "HookDispatcher",
    "MaterializationController",
    "Scheduler",
    "VirtualScheduler",
    "hookimpl",
]
