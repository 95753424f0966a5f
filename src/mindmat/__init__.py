"""mindmat — progressive node materialization for large mind maps."""

from mindmat.config.models import ConfigurationError, MaterializationConfig
from mindmat.domain.nodes import MindMapNode, Point, ViewportSize
from mindmat.domain.priority import sort_by_priority
from mindmat.domain.state import MaterializationState, Phase
from mindmat.engine.controller import MaterializationController

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "MaterializationConfig",
    "MaterializationController",
    "MaterializationState",
    "MindMapNode",
    "Phase",
    "Point",
    "ViewportSize",
    "__version__",
    "sort_by_priority",
]
