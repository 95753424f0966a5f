"""Materialization state snapshots.

The controller never mutates a snapshot in place: every transition builds a
new :class:`MaterializationState`, so a reference handed to the rendering
layer stays consistent.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from functools import cached_property
from typing import Any

from mindmat.domain.nodes import MindMapNode


class Phase(StrEnum):
    """Lifecycle phase of a materialization controller."""

    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    ADVANCING = "advancing"
    EXHAUSTED = "exhausted"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class MaterializationStats:
    total_nodes: int = 0
    loaded_count: int = 0
    batches_loaded: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_nodes": self.total_nodes,
            "loaded_count": self.loaded_count,
            "batches_loaded": self.batches_loaded,
        }


@dataclass(frozen=True)
class MaterializationState:
    """Read-only view of what is currently materialized.

    Attributes:
        loaded_nodes: Materialized nodes in materialization order.
        is_loading: True only while a deferred advance is pending.
        has_more: True iff fewer nodes are loaded than exist.
        progress: ``loaded / total``; 1.0 for an empty collection.
        stats: Counters for display.
    """

    loaded_nodes: tuple[MindMapNode, ...] = ()
    is_loading: bool = False
    has_more: bool = False
    progress: float = 1.0
    stats: MaterializationStats = field(default_factory=MaterializationStats)

    @classmethod
    def build(
        cls,
        loaded_nodes: tuple[MindMapNode, ...],
        *,
        total_nodes: int,
        batches_loaded: int,
        is_loading: bool = False,
    ) -> MaterializationState:
        """Derive ``has_more``, ``progress`` and ``stats`` from the loaded set."""
        loaded_count = len(loaded_nodes)
        return cls(
            loaded_nodes=loaded_nodes,
            is_loading=is_loading,
            has_more=loaded_count < total_nodes,
            progress=loaded_count / total_nodes if total_nodes else 1.0,
            stats=MaterializationStats(
                total_nodes=total_nodes,
                loaded_count=loaded_count,
                batches_loaded=batches_loaded,
            ),
        )

    @cached_property
    def loaded_ids(self) -> frozenset[str]:
        return frozenset(node.id for node in self.loaded_nodes)

    def with_loading(self, is_loading: bool) -> MaterializationState:
        return replace(self, is_loading=is_loading)

    def to_dict(self, *, include_ids: bool = False) -> dict[str, Any]:
        """JSON-friendly summary. Node ids are listed only on request."""
        result: dict[str, Any] = {
            "is_loading": self.is_loading,
            "has_more": self.has_more,
            "progress": round(self.progress, 4),
            "stats": self.stats.to_dict(),
        }
        if include_ids:
            result["loaded_ids"] = [node.id for node in self.loaded_nodes]
        return result
