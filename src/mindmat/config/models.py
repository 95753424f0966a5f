"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, mindmat.toml only contains overrides.
Keys are accepted in snake_case (TOML, env) or camelCase (web client payloads).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel


class ConfigurationError(ValueError):
    """Raised when materialization options are out of range.

    Policy is fail-fast: invalid values are rejected at normalization time,
    never clamped.
    """

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class MaterializationConfig(BaseModel):
    """[materialize] section.

    Attributes:
        initial_load_count: Nodes materialized on the first pass.
        batch_size: Nodes appended per accepted advance.
        scroll_threshold: Caller-side hint (px) for when to call advance.
            The engine never reads it.
        enabled: When False every node is materialized immediately.
        preload_distance: Max distance from the viewport center for a node
            to be picked by a viewport advance.
        throttle_ms: Minimum interval between accepted ``advance()`` calls.
        defer_ms: Delay before a batch is applied, yielding to the event loop.
    """

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "forbid",
    }

    initial_load_count: int = Field(default=50, ge=1)
    batch_size: int = Field(default=25, ge=1)
    scroll_threshold: float = Field(default=200.0, ge=0)
    enabled: bool = True
    preload_distance: float = Field(default=300.0, ge=0)
    throttle_ms: float = Field(default=100.0, ge=0)
    defer_ms: float = Field(default=50.0, ge=0)


class LoggingConfig(BaseModel):
    """[logging] section. Feeds the ``verbose`` and ``log_json`` settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    verbose: bool = False
    json_output: bool = False


def normalize_config(
    value: MaterializationConfig | Mapping[str, Any] | None = None,
) -> MaterializationConfig:
    """Apply defaults to *value* and validate it.

    Raises:
        ConfigurationError: An option is unknown or out of range, e.g. a
            ``batch_size`` of 0 which would stall the engine.
    """
    if value is None:
        return MaterializationConfig()
    if isinstance(value, MaterializationConfig):
        return value
    try:
        return MaterializationConfig.model_validate(dict(value))
    except ValidationError as exc:
        # Report field names even when the caller used camelCase keys.
        names = {f.alias or n: n for n, f in MaterializationConfig.model_fields.items()}
        fields = ", ".join(
            names.get(str(err["loc"][0]), str(err["loc"][0])) if err["loc"] else "?"
            for err in exc.errors()
        )
        msg = f"Invalid materialization config ({fields})"
        raise ConfigurationError(msg, errors=exc.errors()) from exc
