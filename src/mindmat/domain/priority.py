"""Priority ordering for non-spatial materialization.

Structurally important nodes come first so a partially materialized map
still reads as a coherent tree: roots, then shallow levels, then older
nodes within a level.
"""

from __future__ import annotations

from collections.abc import Iterable

from mindmat.domain.nodes import MindMapNode


def priority_key(node: MindMapNode) -> tuple[int, int, float]:
    """Sort key: (not root, level, created_at or 0)."""
    return (0 if node.level == 0 else 1, node.level, node.created_at or 0)


def sort_by_priority(nodes: Iterable[MindMapNode]) -> list[MindMapNode]:
    """Return a new list of *nodes* in materialization order.

    Pure and deterministic; the input is never mutated. Nodes with equal
    keys keep their input order.
    """
    return sorted(nodes, key=priority_key)
