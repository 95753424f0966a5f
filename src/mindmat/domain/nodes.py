"""Mind map node model and viewport geometry.

Nodes are owned by the caller and treated as read-only by the engine.
JSON dumps produced by the web client use camelCase keys (``parentId``,
``createdAt``); both spellings are accepted.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Point(BaseModel):
    """2-D canvas coordinate."""

    model_config = {"frozen": True}

    x: float = 0.0
    y: float = 0.0


ORIGIN = Point()


class ViewportSize(BaseModel):
    """Visible canvas extent. Carried along with viewport advances."""

    model_config = {"frozen": True}

    width: float = Field(default=0.0, ge=0)
    height: float = Field(default=0.0, ge=0)


class MindMapNode(BaseModel):
    """A single mind map node.

    Attributes:
        id: Unique identifier, stable for the node's lifetime.
        level: Depth in the hierarchy; roots are level 0.
        parent_id: Owning node, or None for roots.
        position: Canvas position; absent nodes sit at the origin for
            distance computations.
        created_at: Creation timestamp, used only as an ordering tie-breaker.
    """

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    id: str
    content: str = ""
    level: int = Field(default=0, ge=0)
    parent_id: str | None = None
    children: tuple[str, ...] = ()
    position: Point | None = None
    collapsed: bool = False
    created_at: float | None = None
    updated_at: float | None = None

    @property
    def is_root(self) -> bool:
        return self.level == 0


def coerce_point(value: Point | Sequence[float] | Mapping[str, float]) -> Point:
    """Accept a Point, an ``(x, y)`` pair, or an ``{"x", "y"}`` mapping."""
    if isinstance(value, Point):
        return value
    if isinstance(value, Mapping):
        return Point.model_validate(dict(value))
    x, y = value
    return Point(x=x, y=y)


def distance_to(node: MindMapNode, center: Point) -> float:
    """Euclidean distance from *node* (origin when unplaced) to *center*."""
    pos = node.position or ORIGIN
    return math.hypot(pos.x - center.x, pos.y - center.y)


def parse_nodes(data: Any) -> list[MindMapNode]:
    """Validate raw JSON data into nodes.

    Accepts a bare list of node objects or a mind map document with a
    ``nodes`` key. Raises ``ValueError`` (pydantic's ``ValidationError``
    included) on malformed input.
    """
    if isinstance(data, Mapping):
        if "nodes" not in data:
            msg = "Mind map document has no 'nodes' key"
            raise ValueError(msg)
        data = data["nodes"]
    if not isinstance(data, list):
        msg = f"Expected a list of nodes, got {type(data).__name__}"
        raise ValueError(msg)
    return [MindMapNode.model_validate(item) for item in data]


def load_nodes(path: Path) -> list[MindMapNode]:
    """Read and validate a JSON node dump from *path*."""
    raw = path.read_text(encoding="utf-8")
    return parse_nodes(json.loads(raw))
