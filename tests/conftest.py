"""Shared pytest fixtures and test helpers for mindmat tests."""

from __future__ import annotations

import importlib
import importlib.metadata
import json
import sys
from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

import pytest
from click.testing import CliRunner

from mindmat.domain.nodes import MindMapNode, Point
from mindmat.engine.scheduling import VirtualScheduler
from mindmat.services.telemetry import _current_span, enable_telemetry

NodeFactory: TypeAlias = Callable[..., list[MindMapNode]]


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """The CLI enables telemetry under -v; keep it from leaking across tests."""
    yield
    enable_telemetry(False)
    _current_span.set(None)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


def build_tree(count: int, *, fanout: int = 4) -> list[MindMapNode]:
    """Build a breadth-first tree of *count* nodes.

    Node ``n0`` is the root. Nodes are returned in reverse creation order so
    that priority sorting has real work to do.
    """
    nodes: list[MindMapNode] = []
    levels: dict[str, int] = {}
    for i in range(count):
        node_id = f"n{i}"
        parent = None if i == 0 else f"n{(i - 1) // fanout}"
        level = 0 if parent is None else levels[parent] + 1
        levels[node_id] = level
        nodes.append(
            MindMapNode(
                id=node_id,
                content=f"Node {i}",
                level=level,
                parent_id=parent,
                position=Point(x=float(i * 10), y=float(level * 100)),
                created_at=float(i),
            )
        )
    return list(reversed(nodes))


@pytest.fixture
def make_nodes() -> NodeFactory:
    return build_tree


@pytest.fixture
def write_nodes(tmp_path: Path) -> Callable[[Any], Path]:
    """Write raw JSON node data to a temp file and return its path."""

    def _write(data: Any, name: str = "map.json") -> Path:
        if isinstance(data, list) and data and isinstance(data[0], MindMapNode):
            data = [n.model_dump(by_alias=True, mode="json") for n in data]
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write



_PLUGIN_SOURCE = '''\
from mindmat.engine.hooks import hookimpl

CALLS = []


class RecordingPlugin:
    @hookimpl
    def post_batch(self, state, batch, trigger):
        CALLS.append((trigger, len(batch)))
'''


@dataclass
class _FakeDistribution:
    entry_points: list[importlib.metadata.EntryPoint]


@pytest.fixture
def entrypoint_plugin(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[list[tuple[str, int]]]:
    """Publish ``RecordingPlugin`` under the ``mindmat.plugins`` entry point group.

    Yields the list the plugin appends ``(trigger, batch size)`` to.
    """
    module_name = "mm_recording_plugin"
    plugin_dir = tmp_path / "plugins"
    plugin_dir.mkdir()
    (plugin_dir / f"{module_name}.py").write_text(_PLUGIN_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(plugin_dir))

    entry_point = importlib.metadata.EntryPoint(
        name="recorder",
        value=f"{module_name}:RecordingPlugin",
        group="mindmat.plugins",
    )
    dist = _FakeDistribution(entry_points=[entry_point])
    monkeypatch.setattr(importlib.metadata, "distributions", lambda: [dist])

    module = importlib.import_module(module_name)
    yield module.CALLS
    sys.modules.pop(module_name, None)
